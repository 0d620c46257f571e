"""Query layer: runs registry operations and reports typed results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from typed_shapes.access import access_value, validate_key
from typed_shapes.errors import ShapeError
from typed_shapes.keys import UnionKeyPolicy, keys_of
from typed_shapes.parsing import ShapeParser, apply_declarations
from typed_shapes.registry import ShapeRegistry
from typed_shapes.types import (
    DeclarationKind,
    FieldType,
    ResolvedShape,
    ResolvedUnion,
    ShapeId,
    describe_resolved,
    format_type,
)


@dataclass
class CheckResult:
    """Result of a checker operation."""

    columns: list[str]
    rows: list[dict[str, Any]]
    message: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DeclareResult(CheckResult):
    """Result of declaring or loading shapes."""

    shape_ids: list[ShapeId] = field(default_factory=list)


@dataclass
class KeysResult(CheckResult):
    """Result of deriving the keys of a shape."""

    keys: tuple[str, ...] = ()


@dataclass
class AccessResult(CheckResult):
    """Result of validating a key or reading a value through it."""

    field_type: FieldType | None = None
    value: Any = None


@dataclass
class MatchResult(CheckResult):
    """Result of matching a concrete value against a shape."""

    matched: bool = False


class ShapeChecker:
    """Runs declarations and queries against a ShapeRegistry.

    Every method returns a result object instead of raising; the
    ``error`` attribute holds the classified error on failure.
    """

    def __init__(
        self,
        registry: ShapeRegistry | None = None,
        policy: UnionKeyPolicy = UnionKeyPolicy.COMMON,
    ) -> None:
        self.registry = registry if registry is not None else ShapeRegistry()
        self.policy = policy
        self._parser = ShapeParser()

    def load(self, source: str) -> DeclareResult:
        """Parse declaration text and apply it to the registry."""
        try:
            declarations = self._parser.parse(source)
        except SyntaxError as e:
            return DeclareResult(columns=[], rows=[], message=str(e), error=e)

        before = len(self.registry)
        try:
            apply_declarations(declarations, self.registry)
        except ShapeError as e:
            return DeclareResult(columns=[], rows=[], message=str(e), error=e)

        names = self.registry.list_shapes()
        return DeclareResult(
            columns=["shape", "kind"],
            rows=[
                {"shape": name, "kind": self.registry.kind_of(name).value}
                for name in names[before:]
            ],
            message=f"Loaded {len(declarations)} declaration(s)",
            shape_ids=[self.registry.id_of(name) for name in names[before:]],
        )

    def declare(
        self,
        name: str,
        kind: DeclarationKind,
        fields: Mapping[str, FieldType] | None = None,
        *,
        body: FieldType | None = None,
    ) -> DeclareResult:
        try:
            shape_id = self.registry.declare(name, kind, fields, body=body)
        except ShapeError as e:
            return DeclareResult(columns=[], rows=[], message=str(e), error=e)
        return DeclareResult(
            columns=["shape", "kind"],
            rows=[{"shape": name, "kind": kind.value}],
            message=f"Declared {kind.value} '{name}'",
            shape_ids=[shape_id],
        )

    def extend(
        self,
        child_name: str,
        parent_names: Sequence[str],
        fields: Mapping[str, FieldType] | None = None,
    ) -> DeclareResult:
        try:
            shape_id = self.registry.extend(child_name, parent_names, fields)
        except ShapeError as e:
            return DeclareResult(columns=[], rows=[], message=str(e), error=e)
        return DeclareResult(
            columns=["shape", "parents"],
            rows=[{"shape": child_name, "parents": ", ".join(parent_names)}],
            message=f"Declared '{child_name}' extending {', '.join(parent_names)}",
            shape_ids=[shape_id],
        )

    def list_shapes(self) -> CheckResult:
        """List declared shapes with their kind and lifecycle state."""
        rows = [
            {
                "shape": name,
                "kind": self.registry.kind_of(name).value,
                "state": self.registry.state_of(name).value,
            }
            for name in self.registry.list_shapes()
        ]
        return CheckResult(columns=["shape", "kind", "state"], rows=rows)

    def describe(self, name: str) -> CheckResult:
        """Show the accessible fields of a shape and their types."""
        try:
            resolved = self.registry.resolve(name)
            rows = [
                {"field": key, "type": format_type(validate_key(resolved, key, self.policy))}
                for key in keys_of(resolved, self.policy)
            ]
        except ShapeError as e:
            return CheckResult(columns=[], rows=[], message=str(e), error=e)

        if isinstance(resolved, ResolvedUnion):
            members = " | ".join(
                m.display_name if isinstance(m, ResolvedShape) else format_type(m)
                for m in resolved.members
            )
            message = f"{name} = {members}"
        elif isinstance(resolved, ResolvedShape):
            message = f"{name}: {len(rows)} field(s)"
        else:
            message = f"{name} = {describe_resolved(resolved)}"
        return CheckResult(columns=["field", "type"], rows=rows, message=message)

    def keys(self, name: str) -> KeysResult:
        """Derive the ordered key set of a shape."""
        try:
            derived = keys_of(self.registry.resolve(name), self.policy)
        except ShapeError as e:
            return KeysResult(columns=[], rows=[], message=str(e), error=e)
        return KeysResult(
            columns=["key"],
            rows=[{"key": k} for k in derived],
            keys=derived,
        )

    def check(self, name: str, key: str) -> AccessResult:
        """Validate that ``key`` is a legal accessor of the shape."""
        try:
            field_type = validate_key(self.registry.resolve(name), key, self.policy)
        except ShapeError as e:
            return AccessResult(columns=[], rows=[], message=str(e), error=e)
        return AccessResult(
            columns=["key", "type"],
            rows=[{"key": key, "type": format_type(field_type)}],
            message=f"{name}.{key}: {format_type(field_type)}",
            field_type=field_type,
        )

    def access(self, value: Mapping[str, Any], name: str, key: str) -> AccessResult:
        """Read ``key`` from a concrete value declared to have the shape."""
        try:
            resolved = self.registry.resolve(name)
            result = access_value(value, resolved, key, self.policy)
            field_type = validate_key(resolved, key, self.policy)
        except ShapeError as e:
            return AccessResult(columns=[], rows=[], message=str(e), error=e)
        return AccessResult(
            columns=["key", "value"],
            rows=[{"key": key, "value": result}],
            field_type=field_type,
            value=result,
        )

    def match(self, value: Any, name: str) -> MatchResult:
        """Check whether a concrete value structurally matches the shape."""
        try:
            matched = self.registry.matches(value, name)
        except ShapeError as e:
            return MatchResult(columns=[], rows=[], message=str(e), error=e)
        verdict = "matches" if matched else "does not match"
        return MatchResult(
            columns=["shape", "matches"],
            rows=[{"shape": name, "matches": matched}],
            message=f"Value {verdict} '{name}'",
            matched=matched,
        )
