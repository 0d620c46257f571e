"""Type definitions for the typed_shapes engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NewType, Union

# Stable handle for a declared (named) shape: its index in the registry arena
ShapeId = NewType("ShapeId", int)


class PrimitiveKind(Enum):
    """Built-in primitive kinds supported by the type system."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


# Mapping from type name strings to PrimitiveKind enum values
PRIMITIVE_KIND_NAMES: dict[str, PrimitiveKind] = {pk.value: pk for pk in PrimitiveKind}


class DeclarationKind(Enum):
    """How repeated declarations under one name are treated."""

    MERGEABLE_NAMED = "interface"
    SINGLE_ALIASED = "type"


class ShapeState(Enum):
    """Lifecycle of a named shape: UNRESOLVED -> RESOLVED -> FROZEN."""

    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    FROZEN = "frozen"

    @property
    def is_mutable(self) -> bool:
        return self is ShapeState.UNRESOLVED


@dataclass(frozen=True)
class FieldType:
    """Base class for all field type variants."""

    @property
    def is_primitive(self) -> bool:
        return False

    @property
    def is_literal(self) -> bool:
        return False

    @property
    def is_reference(self) -> bool:
        return False

    @property
    def is_object(self) -> bool:
        return False


@dataclass(frozen=True)
class PrimitiveType(FieldType):
    """A primitive type such as ``string`` or ``number``."""

    kind: PrimitiveKind

    @property
    def is_primitive(self) -> bool:
        return True


@dataclass(frozen=True)
class LiteralType(FieldType):
    """A single literal value: a string, a number or a boolean."""

    value: str | int | float | bool

    @property
    def is_literal(self) -> bool:
        return True

    @property
    def primitive_kind(self) -> PrimitiveKind:
        """Return the primitive kind this literal belongs to."""
        # bool must be checked before int, bool is an int subclass
        if isinstance(self.value, bool):
            return PrimitiveKind.BOOLEAN
        if isinstance(self.value, str):
            return PrimitiveKind.STRING
        return PrimitiveKind.NUMBER

    def __eq__(self, other: object) -> bool:
        # True == 1 in Python; the literal types must stay distinct
        if not isinstance(other, LiteralType):
            return NotImplemented
        return type(self.value) is type(other.value) and self.value == other.value

    def __hash__(self) -> int:
        return hash((type(self.value), self.value))


@dataclass(frozen=True)
class ReferenceType(FieldType):
    """Reference to a named shape, resolved lazily through the registry."""

    name: str

    @property
    def is_reference(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class _CompoundType(FieldType):
    """Members keep declaration order but compare as a set."""

    members: tuple[FieldType, ...]

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return frozenset(self.members) == frozenset(other.members)  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, frozenset(self.members)))


@dataclass(frozen=True, eq=False)
class UnionType(_CompoundType):
    """Satisfied by a value matching any one member."""


@dataclass(frozen=True, eq=False)
class IntersectionType(_CompoundType):
    """Satisfied only by a value matching every member."""


@dataclass(frozen=True)
class ObjectType(FieldType):
    """An inline anonymous shape, e.g. ``{ x: number }``.

    Fields are stored as an ordered tuple of ``(name, type)`` pairs so the
    object stays hashable. Two ObjectTypes are equal when they carry the same
    field set, regardless of field order.
    """

    fields: tuple[tuple[str, FieldType], ...] = ()

    @classmethod
    def from_mapping(cls, fields: dict[str, FieldType]) -> ObjectType:
        return cls(fields=tuple(fields.items()))

    @property
    def is_object(self) -> bool:
        return True

    def field_map(self) -> dict[str, FieldType]:
        return dict(self.fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectType):
            return NotImplemented
        return self.field_map() == other.field_map()

    def __hash__(self) -> int:
        return hash(frozenset(self.fields))


def make_union(members: list[FieldType] | tuple[FieldType, ...]) -> FieldType:
    """Build a union, flattening nested unions and collapsing single members."""
    flat = _flatten(members, UnionType)
    if len(flat) == 1:
        return flat[0]
    return UnionType(members=flat)


def make_intersection(members: list[FieldType] | tuple[FieldType, ...]) -> FieldType:
    """Build an intersection, flattening nested intersections."""
    flat = _flatten(members, IntersectionType)
    if len(flat) == 1:
        return flat[0]
    return IntersectionType(members=flat)


def _flatten(members: Any, compound: type) -> tuple[FieldType, ...]:
    flat: dict[FieldType, None] = {}
    for m in members:
        if isinstance(m, compound):
            flat.update(dict.fromkeys(m.members))
        else:
            flat[m] = None
    return tuple(flat)


def format_type(field_type: FieldType) -> str:
    """Render a field type in declaration syntax.

    Union and intersection members are sorted by their rendering so the
    output is stable across runs.
    """
    if isinstance(field_type, PrimitiveType):
        return field_type.kind.value
    if isinstance(field_type, LiteralType):
        value = field_type.value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            return f'"{value}"'
        return repr(value)
    if isinstance(field_type, ReferenceType):
        return field_type.name
    if isinstance(field_type, ObjectType):
        if not field_type.fields:
            return "{}"
        body = ", ".join(f"{n}: {format_type(t)}" for n, t in field_type.fields)
        return "{ " + body + " }"
    if isinstance(field_type, UnionType):
        return " | ".join(sorted(_format_member(m) for m in field_type.members))
    if isinstance(field_type, IntersectionType):
        return " & ".join(sorted(_format_member(m) for m in field_type.members))
    raise TypeError(f"Unknown field type: {field_type!r}")


def _format_member(member: FieldType) -> str:
    text = format_type(member)
    if isinstance(member, (UnionType, IntersectionType)):
        return f"({text})"
    return text


@dataclass(frozen=True)
class FieldDefinition:
    """Definition of a field within a resolved shape."""

    name: str
    type: FieldType


@dataclass
class Shape:
    """Accumulator for every declaration made under one name.

    MergeableNamed shapes gain fields and parents with each declaration
    until they are resolved. SingleAliased shapes carry a ``body`` and are
    immutable from creation.
    """

    id: ShapeId
    name: str
    kind: DeclarationKind
    fields: dict[str, FieldType] = field(default_factory=dict)
    parents: list[str] = field(default_factory=list)
    body: FieldType | None = None
    state: ShapeState = ShapeState.UNRESOLVED

    @property
    def is_alias(self) -> bool:
        return self.kind is DeclarationKind.SINGLE_ALIASED


@dataclass(frozen=True)
class ResolvedShape:
    """A flattened object shape: every field after merges and extension.

    ``name`` is None for anonymous shapes produced by the algebra; those are
    compared structurally with :func:`structurally_equal`.
    """

    name: str | None
    fields: tuple[FieldDefinition, ...] = ()

    @classmethod
    def from_mapping(cls, name: str | None, fields: dict[str, FieldType]) -> ResolvedShape:
        return cls(
            name=name,
            fields=tuple(FieldDefinition(name=n, type=t) for n, t in fields.items()),
        )

    @property
    def display_name(self) -> str:
        return self.name if self.name is not None else format_type(self.as_object())

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def field_map(self) -> dict[str, FieldType]:
        return {f.name: f.type for f in self.fields}

    def as_object(self) -> ObjectType:
        return ObjectType(fields=tuple((f.name, f.type) for f in self.fields))


@dataclass(frozen=True)
class ResolvedUnion:
    """A resolved union; members are shapes or scalar types, in order."""

    name: str | None
    members: tuple[ResolvedMember, ...]

    @property
    def display_name(self) -> str:
        if self.name is not None:
            return self.name
        return " | ".join(_display(m) for m in self.members)


def _display(member: Any) -> str:
    if isinstance(member, ResolvedShape):
        return member.display_name
    return format_type(member)


def structurally_equal(a: ResolvedMember, b: ResolvedMember) -> bool:
    """Compare two resolved members by content, ignoring names and field order."""
    if isinstance(a, ResolvedShape) and isinstance(b, ResolvedShape):
        return a.field_map() == b.field_map()
    return a == b


ResolvedMember = Union[ResolvedShape, PrimitiveType, LiteralType]
ResolvedType = Union[ResolvedShape, ResolvedUnion, PrimitiveType, LiteralType]


def describe_resolved(resolved: ResolvedType) -> str:
    """Human-readable name for a resolved type, used in error messages."""
    if isinstance(resolved, (ResolvedShape, ResolvedUnion)):
        return resolved.display_name
    return format_type(resolved)
