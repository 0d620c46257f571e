"""Key derivation (``keyof``) over resolved types."""

from __future__ import annotations

from enum import Enum

from typed_shapes.types import ResolvedShape, ResolvedType, ResolvedUnion


class UnionKeyPolicy(Enum):
    """Which keys of a union are accessible.

    COMMON only allows keys present in every member. ANY allows a key
    present in at least one member.
    """

    COMMON = "common"
    ANY = "any"


def keys_of(
    resolved: ResolvedType, policy: UnionKeyPolicy = UnionKeyPolicy.COMMON
) -> tuple[str, ...]:
    """Return the valid field names of a resolved type, in declaration order.

    Object shapes yield their fields. Unions yield the keys common to every
    member (or, under ``UnionKeyPolicy.ANY``, every key of any member).
    Primitives and literals have no keys.
    """
    if isinstance(resolved, ResolvedShape):
        return tuple(f.name for f in resolved.fields)
    if isinstance(resolved, ResolvedUnion):
        member_keys = [keys_of(m) for m in resolved.members]
        if policy is UnionKeyPolicy.ANY:
            return all_keys(member_keys)
        return common_keys(member_keys)
    return ()


def common_keys(key_sets: list[tuple[str, ...]]) -> tuple[str, ...]:
    """Keys present in every set, in the order of the first set."""
    if not key_sets:
        return ()
    rest = [set(ks) for ks in key_sets[1:]]
    return tuple(k for k in key_sets[0] if all(k in s for s in rest))


def all_keys(key_sets: list[tuple[str, ...]]) -> tuple[str, ...]:
    """Keys present in any set, in first-introduced order."""
    return tuple(dict.fromkeys(k for ks in key_sets for k in ks))
