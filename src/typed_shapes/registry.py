"""Registry of named shape declarations."""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack
from typing import Any, Mapping, Sequence

from typed_shapes import access, keys
from typed_shapes.algebra import extend_fields, intersect_resolved, union
from typed_shapes.errors import (
    ConflictingMergeError,
    CyclicExtensionError,
    DuplicateAliasError,
    NonObjectParentError,
    ShapeFrozenError,
    UnknownParentError,
    UnknownShapeError,
)
from typed_shapes.keys import UnionKeyPolicy
from typed_shapes.types import (
    DeclarationKind,
    FieldType,
    IntersectionType,
    LiteralType,
    ObjectType,
    PrimitiveType,
    ReferenceType,
    ResolvedShape,
    ResolvedType,
    ResolvedUnion,
    Shape,
    ShapeId,
    ShapeState,
    UnionType,
    format_type,
)

logger = logging.getLogger(__name__)


class ShapeRegistry:
    """Registry of all declared shapes.

    Shapes live in an arena addressed by ShapeId. Interface-like
    (MERGEABLE_NAMED) declarations accumulate under their name until the
    shape is resolved; alias-like (SINGLE_ALIASED) declarations are written
    once.

    Declarations of one name are serialized by a per-name lock. Resolution
    runs under a single registry-wide lock and takes the per-name lock of
    every shape it reads.
    """

    def __init__(self) -> None:
        self._shapes: list[Shape] = []
        self._ids: dict[str, ShapeId] = {}
        self._resolved: dict[ShapeId, ResolvedType] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._arena_lock = threading.Lock()
        self._resolve_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def declare(
        self,
        name: str,
        kind: DeclarationKind,
        fields: Mapping[str, FieldType] | None = None,
        *,
        body: FieldType | None = None,
    ) -> ShapeId:
        """Declare a shape, merging into an existing interface of the same name.

        Args:
            name: Name of the shape.
            kind: MERGEABLE_NAMED for interface-like shapes, SINGLE_ALIASED
                for type aliases.
            fields: Field name to type mapping, in declaration order.
            body: Alias body (union, intersection, reference, scalar). Only
                valid for SINGLE_ALIASED; mutually exclusive with ``fields``.

        Returns:
            The ShapeId of the (possibly pre-existing) shape.

        Raises:
            DuplicateAliasError: If the name is already taken by an alias, or
                an alias is declared over an existing name.
            ConflictingMergeError: If a merged field changes its type.
            ShapeFrozenError: If the interface has already been resolved.
        """
        if fields is not None and body is not None:
            raise ValueError("Pass either fields or body, not both")

        with self._lock_for(name):
            existing = self.get(name)

            if kind is DeclarationKind.SINGLE_ALIASED:
                if existing is not None:
                    raise DuplicateAliasError(name)
                if body is None:
                    body = ObjectType.from_mapping(dict(fields or {}))
                shape = self._create(name, kind, body=body)
                logger.debug("Declared alias '%s' = %s", name, format_type(body))
                return shape.id

            if body is not None:
                raise ValueError(f"Interface '{name}' cannot have an alias body")
            shape = self._mergeable(name, existing)
            self._merge_fields(shape, fields or {})
            return shape.id

    def extend(
        self,
        child_name: str,
        parent_names: Sequence[str],
        fields: Mapping[str, FieldType] | None = None,
    ) -> ShapeId:
        """Declare an interface that extends one or more parents.

        Parents are only looked up when the child is resolved, so they may
        be declared later. Extending an existing interface merges fields and
        appends any new parent edges.
        """
        with self._lock_for(child_name):
            shape = self._mergeable(child_name, self.get(child_name))
            self._merge_fields(shape, fields or {})
            for parent_name in parent_names:
                if parent_name not in shape.parents:
                    shape.parents.append(parent_name)
            logger.debug("'%s' extends %s", child_name, shape.parents)
            return shape.id

    def _mergeable(self, name: str, existing: Shape | None) -> Shape:
        if existing is None:
            return self._create(name, DeclarationKind.MERGEABLE_NAMED)
        if existing.is_alias:
            raise DuplicateAliasError(name)
        if not existing.state.is_mutable:
            raise ShapeFrozenError(name)
        return existing

    def _merge_fields(self, shape: Shape, fields: Mapping[str, FieldType]) -> None:
        """Merge fields into an interface; all-or-nothing on conflict."""
        for field_name, field_type in fields.items():
            current = shape.fields.get(field_name)
            if current is not None and current != field_type:
                raise ConflictingMergeError(shape.name, field_name)

        for field_name, field_type in fields.items():
            if field_name not in shape.fields:
                shape.fields[field_name] = field_type
                logger.debug("Merged field '%s.%s: %s'", shape.name, field_name, format_type(field_type))

    def _create(
        self, name: str, kind: DeclarationKind, body: FieldType | None = None
    ) -> Shape:
        with self._arena_lock:
            shape_id = ShapeId(len(self._shapes))
            shape = Shape(id=shape_id, name=name, kind=kind, body=body)
            self._shapes.append(shape)
            self._ids[name] = shape_id
        return shape

    def _lock_for(self, name: str) -> threading.RLock:
        with self._arena_lock:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.RLock()
            return lock

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, shape: ShapeId | str) -> ResolvedType:
        """Flatten a shape's merges, extension edges and alias body.

        The result is cached: repeated calls return the same object. The
        shape and every shape read while resolving it move to RESOLVED and
        stop accepting declarations. Nothing is cached and no state changes
        when resolution fails.

        Raises:
            UnknownShapeError: If the shape was never declared.
            UnknownParentError: If a parent was never declared.
            CyclicExtensionError: If the shape depends on itself.
            NonObjectParentError: If a parent is not an object shape.
        """
        name = self._name_of(shape)
        with self._resolve_lock, ExitStack() as held:
            pending: dict[ShapeId, ResolvedType] = {}
            resolved = self._resolve_named(name, [], pending, held)
            for shape_id, result in pending.items():
                target = self._shapes[shape_id]
                self._resolved[shape_id] = result
                if target.state is ShapeState.UNRESOLVED:
                    target.state = ShapeState.RESOLVED
                logger.debug("Resolved '%s'", target.name)
            return resolved

    def _resolve_named(
        self,
        name: str,
        path: list[str],
        pending: dict[ShapeId, ResolvedType],
        held: ExitStack,
    ) -> ResolvedType:
        # Results land in ``pending``; the per-name locks in ``held`` stay
        # taken until resolve() commits them.
        if name in path:
            cycle = path[path.index(name):] + [name]
            raise CyclicExtensionError(name, cycle)

        shape = self.get(name)
        if shape is None:
            raise UnknownShapeError(name)

        cached = self._resolved.get(shape.id, pending.get(shape.id))
        if cached is not None:
            logger.debug("Resolved '%s' from cache", name)
            return cached

        path = path + [name]
        held.enter_context(self._lock_for(name))
        if shape.body is not None:
            resolved = _named(self._resolve_type(shape.body, path, pending, held), name)
        else:
            parents = [
                self._resolve_parent(name, p, path, pending, held) for p in shape.parents
            ]
            resolved = ResolvedShape.from_mapping(name, extend_fields(parents, shape.fields))

        pending[shape.id] = resolved
        return resolved

    def _resolve_parent(
        self,
        child_name: str,
        parent_name: str,
        path: list[str],
        pending: dict[ShapeId, ResolvedType],
        held: ExitStack,
    ) -> ResolvedShape:
        if parent_name not in self:
            raise UnknownParentError(parent_name, child_name)
        resolved = self._resolve_named(parent_name, path, pending, held)
        if not isinstance(resolved, ResolvedShape):
            raise NonObjectParentError(child_name, parent_name)
        return resolved

    def _resolve_type(
        self,
        field_type: FieldType,
        path: list[str],
        pending: dict[ShapeId, ResolvedType],
        held: ExitStack,
    ) -> ResolvedType:
        """Resolve an alias body. Field-level references stay lazy."""
        if isinstance(field_type, (PrimitiveType, LiteralType)):
            return field_type
        if isinstance(field_type, ObjectType):
            return ResolvedShape.from_mapping(None, field_type.field_map())
        if isinstance(field_type, ReferenceType):
            return self._resolve_named(field_type.name, path, pending, held)
        if isinstance(field_type, UnionType):
            return union([self._resolve_type(m, path, pending, held) for m in field_type.members])
        if isinstance(field_type, IntersectionType):

            def scalar_alias(ref_name: str) -> FieldType | None:
                ref = self.get(ref_name)
                if ref is None or not ref.is_alias or ref_name in path:
                    return None
                target = self._resolve_named(ref_name, path, pending, held)
                return target if isinstance(target, (PrimitiveType, LiteralType)) else None

            return intersect_resolved(
                [self._resolve_type(m, path, pending, held) for m in field_type.members],
                resolver=scalar_alias,
            )
        raise TypeError(f"Unknown field type: {field_type!r}")

    def freeze(self, shape: ShapeId | str) -> ResolvedType:
        """Resolve a shape and move it to the terminal FROZEN state."""
        resolved = self.resolve(shape)
        target = self.get_or_raise(self._name_of(shape))
        with self._lock_for(target.name):
            target.state = ShapeState.FROZEN
        return resolved

    def freeze_all(self) -> dict[str, ResolvedType]:
        """Freeze every declared shape, in declaration order."""
        return {name: self.freeze(name) for name in self.list_shapes()}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> Shape | None:
        """Get a shape by name."""
        shape_id = self._ids.get(name)
        return None if shape_id is None else self._shapes[shape_id]

    def get_or_raise(self, name: str) -> Shape:
        """Get a shape by name, raising if not found."""
        shape = self.get(name)
        if shape is None:
            raise UnknownShapeError(name)
        return shape

    def id_of(self, name: str) -> ShapeId:
        return self.get_or_raise(name).id

    def kind_of(self, shape: ShapeId | str) -> DeclarationKind:
        return self.get_or_raise(self._name_of(shape)).kind

    def state_of(self, shape: ShapeId | str) -> ShapeState:
        return self.get_or_raise(self._name_of(shape)).state

    def list_shapes(self) -> list[str]:
        """List all declared shape names, in declaration order."""
        return [s.name for s in self._shapes]

    def _name_of(self, shape: ShapeId | str) -> str:
        if isinstance(shape, str):
            if shape not in self._ids:
                raise UnknownShapeError(shape)
            return shape
        if not 0 <= shape < len(self._shapes):
            raise UnknownShapeError(f"#{shape}")
        return self._shapes[shape].name

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._shapes)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def keys_of(
        self, shape: ShapeId | str, policy: UnionKeyPolicy = UnionKeyPolicy.COMMON
    ) -> tuple[str, ...]:
        return keys.keys_of(self.resolve(shape), policy)

    def validate_key(
        self, shape: ShapeId | str, key: str, policy: UnionKeyPolicy = UnionKeyPolicy.COMMON
    ) -> FieldType:
        return access.validate_key(self.resolve(shape), key, policy)

    def access_value(
        self,
        value: Mapping[str, Any],
        shape: ShapeId | str,
        key: str,
        policy: UnionKeyPolicy = UnionKeyPolicy.COMMON,
    ) -> Any:
        return access.access_value(value, self.resolve(shape), key, policy)

    def matches(self, value: Any, shape: ShapeId | str) -> bool:
        """Check whether a concrete value structurally matches a shape."""
        return access.matches(value, self.resolve(shape), self.resolve)


def _named(resolved: ResolvedType, name: str) -> ResolvedType:
    if isinstance(resolved, ResolvedShape):
        return ResolvedShape(name=name, fields=resolved.fields)
    if isinstance(resolved, ResolvedUnion):
        return ResolvedUnion(name=name, members=resolved.members)
    return resolved
