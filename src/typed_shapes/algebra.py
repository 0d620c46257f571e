"""Shape algebra: extension, union and intersection over resolved shapes."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Sequence

from typed_shapes.errors import EmptyAlgebraError, IncompatibleIntersectionError
from typed_shapes.types import (
    FieldType,
    LiteralType,
    ObjectType,
    PrimitiveType,
    ReferenceType,
    ResolvedMember,
    ResolvedShape,
    ResolvedType,
    ResolvedUnion,
    describe_resolved,
    format_type,
    make_intersection,
    structurally_equal,
)

logger = logging.getLogger(__name__)

# Maps a referenced shape name to the scalar it aliases, or None to keep the
# reference symbolic.
ScalarResolver = Callable[[str], Optional[FieldType]]


def extend_fields(
    parents: Sequence[ResolvedShape], own: Mapping[str, FieldType]
) -> dict[str, FieldType]:
    """Combine parent fields with a child's own fields.

    Parents are applied left to right and a parent field is only taken if no
    earlier parent supplied it. The child's own fields always win. Keys keep
    the position where they were first introduced; the child's new keys come
    last.
    """
    result: dict[str, FieldType] = {}
    for parent in parents:
        for f in parent.fields:
            if f.name not in result:
                result[f.name] = f.type
    for name, field_type in own.items():
        if name in result and result[name] != field_type:
            logger.debug("Field '%s' overrides inherited type %s", name, format_type(result[name]))
        result[name] = field_type
    return result


def union(
    members: Sequence[ResolvedMember | ResolvedUnion], name: str | None = None
) -> ResolvedUnion:
    """Form a union of resolved members.

    Nested unions are flattened and structurally duplicate members dropped,
    keeping the first occurrence.
    """
    if not members:
        raise EmptyAlgebraError("union")

    flat: list[ResolvedMember] = []
    for member in members:
        candidates = member.members if isinstance(member, ResolvedUnion) else (member,)
        for candidate in candidates:
            if not any(structurally_equal(candidate, seen) for seen in flat):
                flat.append(candidate)
    return ResolvedUnion(name=name, members=tuple(flat))
def intersection(
    members: Sequence[ResolvedShape],
    name: str | None = None,
    resolver: ScalarResolver | None = None,
) -> ResolvedShape:
    """Intersect object shapes.

    The result carries every key of every member, in first-introduced order.
    A key present in several members gets the intersection of their types.
    ``resolver`` expands references to scalar aliases before field types are
    compared.
    """
    if not members:
        raise EmptyAlgebraError("intersection")

    fields: dict[str, FieldType] = {}
    for member in members:
        for f in member.fields:
            if f.name in fields:
                fields[f.name] = intersect_types(
                    fields[f.name], f.type, key=f.name, resolver=resolver
                )
            else:
                fields[f.name] = f.type
    return ResolvedShape.from_mapping(name, fields)


def intersect_types(
    left: FieldType,
    right: FieldType,
    key: str | None = None,
    resolver: ScalarResolver | None = None,
) -> FieldType:
    """Intersect two field types.

    Scalars must agree: a literal narrows its own primitive kind, anything
    else is incompatible. Inline objects are intersected field by field.
    References and unions are kept symbolic, except references that
    ``resolver`` maps to a scalar.
    """
    if left == right:
        return left

    if resolver is not None:
        left = _expand(left, resolver)
        right = _expand(right, resolver)
        if left == right:
            return left

    left_scalar = _is_scalar(left)
    right_scalar = _is_scalar(right)

    if left_scalar and right_scalar:
        for lit, other in ((left, right), (right, left)):
            if (
                isinstance(lit, LiteralType)
                and isinstance(other, PrimitiveType)
                and lit.primitive_kind is other.kind
            ):
                return lit
        raise IncompatibleIntersectionError(key, format_type(left), format_type(right))

    if (left_scalar and right.is_object) or (right_scalar and left.is_object):
        raise IncompatibleIntersectionError(key, format_type(left), format_type(right))

    if isinstance(left, ObjectType) and isinstance(right, ObjectType):
        fields = left.field_map()
        for sub_name, sub_type in right.fields:
            if sub_name in fields:
                sub_key = sub_name if key is None else f"{key}.{sub_name}"
                fields[sub_name] = intersect_types(
                    fields[sub_name], sub_type, key=sub_key, resolver=resolver
                )
            else:
                fields[sub_name] = sub_type
        return ObjectType.from_mapping(fields)

    return make_intersection([left, right])


def intersect_resolved(
    members: Sequence[ResolvedType],
    name: str | None = None,
    resolver: ScalarResolver | None = None,
) -> ResolvedType:
    """Intersect arbitrary resolved types.

    Unions are distributed: ``A & (B | C)`` becomes ``(A & B) | (A & C)``.
    Branches that turn out incompatible are dropped; if every branch is
    incompatible the last error is raised.
    """
    if not members:
        raise EmptyAlgebraError("intersection")

    for i, member in enumerate(members):
        if isinstance(member, ResolvedUnion):
            branches: list[ResolvedType] = []
            errors: list[IncompatibleIntersectionError] = []
            for alternative in member.members:
                try:
                    branches.append(
                        intersect_resolved(
                            [*members[:i], alternative, *members[i + 1:]], resolver=resolver
                        )
                    )
                except IncompatibleIntersectionError as e:
                    logger.debug("Dropping incompatible branch: %s", e)
                    errors.append(e)
            if not branches:
                raise errors[-1]
            if len(branches) == 1 and not isinstance(branches[0], ResolvedUnion):
                return _renamed(branches[0], name)
            return union(branches, name=name)

    shapes = [m for m in members if isinstance(m, ResolvedShape)]
    scalars = [m for m in members if not isinstance(m, ResolvedShape)]

    if shapes and scalars:
        raise IncompatibleIntersectionError(
            None, describe_resolved(shapes[0]), format_type(scalars[0])
        )
    if scalars:
        result: FieldType = scalars[0]
        for scalar in scalars[1:]:
            result = intersect_types(result, scalar, resolver=resolver)
        return result  # type: ignore[return-value]
    return intersection(shapes, name=name, resolver=resolver)


def _renamed(resolved: ResolvedType, name: str | None) -> ResolvedType:
    if name is not None and isinstance(resolved, ResolvedShape):
        return ResolvedShape(name=name, fields=resolved.fields)
    return resolved


def _expand(field_type: FieldType, resolver: ScalarResolver) -> FieldType:
    if isinstance(field_type, ReferenceType):
        scalar = resolver(field_type.name)
        if scalar is not None:
            return scalar
    return field_type


def _is_scalar(field_type: FieldType) -> bool:
    return isinstance(field_type, (PrimitiveType, LiteralType))
