"""Access validation: legal keys, value access and structural value matching."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from typed_shapes.errors import InvalidKeyError, MissingValueError
from typed_shapes.keys import UnionKeyPolicy, keys_of
from typed_shapes.types import (
    FieldType,
    IntersectionType,
    LiteralType,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    ReferenceType,
    ResolvedShape,
    ResolvedType,
    ResolvedUnion,
    UnionType,
    describe_resolved,
    make_union,
)

# Resolves a shape name to its resolved type (normally ShapeRegistry.resolve)
Resolver = Callable[[str], ResolvedType]


def validate_key(
    resolved: ResolvedType,
    key: str,
    policy: UnionKeyPolicy = UnionKeyPolicy.COMMON,
) -> FieldType:
    """Return the declared type of ``key`` on ``resolved``.

    For a union the result is the union of the members' types for that key.

    Raises:
        InvalidKeyError: If ``key`` is not among ``keys_of(resolved, policy)``.
    """
    if key not in keys_of(resolved, policy):
        raise InvalidKeyError(describe_resolved(resolved), key)

    if isinstance(resolved, ResolvedShape):
        return resolved.get_field(key).type  # type: ignore[union-attr]

    if not isinstance(resolved, ResolvedUnion):
        raise InvalidKeyError(describe_resolved(resolved), key)
    member_types = [
        f.type
        for m in resolved.members
        if isinstance(m, ResolvedShape)
        for f in m.fields
        if f.name == key
    ]
    return make_union(member_types)


def access_value(
    value: Mapping[str, Any],
    resolved: ResolvedType,
    key: str,
    policy: UnionKeyPolicy = UnionKeyPolicy.COMMON,
) -> Any:
    """Read ``key`` from a concrete value after checking it against the shape.

    Raises:
        InvalidKeyError: If ``key`` is not a valid key of the shape.
        MissingValueError: If the key is valid but the value lacks it.
    """
    validate_key(resolved, key, policy)
    if not isinstance(value, Mapping) or key not in value:
        raise MissingValueError(key)
    return value[key]


def matches(
    value: Any,
    target: FieldType | ResolvedType,
    resolver: Optional[Resolver] = None,
) -> bool:
    """Check whether a concrete value structurally matches a type.

    Extra keys on a mapping are allowed. References need a ``resolver``.
    """
    if isinstance(target, PrimitiveType):
        return _matches_primitive(value, target.kind)

    if isinstance(target, LiteralType):
        return _matches_literal(value, target.value)

    if isinstance(target, ReferenceType):
        if resolver is None:
            raise TypeError(f"Cannot match reference '{target.name}' without a resolver")
        return matches(value, resolver(target.name), resolver)

    if isinstance(target, (ResolvedShape, ObjectType)):
        fields = target.field_map()
        if not isinstance(value, Mapping):
            return False
        return all(
            name in value and matches(value[name], field_type, resolver)
            for name, field_type in fields.items()
        )

    if isinstance(target, (UnionType, ResolvedUnion)):
        return any(matches(value, m, resolver) for m in target.members)

    if isinstance(target, IntersectionType):
        return all(matches(value, m, resolver) for m in target.members)

    raise TypeError(f"Unknown type: {target!r}")


def _matches_primitive(value: Any, kind: PrimitiveKind) -> bool:
    if kind is PrimitiveKind.STRING:
        return isinstance(value, str)
    if kind is PrimitiveKind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is PrimitiveKind.BOOLEAN:
        return isinstance(value, bool)
    return value is None


def _matches_literal(value: Any, literal: str | int | float | bool) -> bool:
    if isinstance(literal, bool) or isinstance(value, bool):
        return value is literal
    if isinstance(literal, str):
        return isinstance(value, str) and value == literal
    return isinstance(value, (int, float)) and value == literal
