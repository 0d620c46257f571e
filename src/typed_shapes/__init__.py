"""Typed Shapes - A structural type engine for object shapes."""

from typed_shapes.access import access_value, matches, validate_key
from typed_shapes.algebra import extend_fields, intersection, union
from typed_shapes.checker import ShapeChecker
from typed_shapes.errors import (
    ConflictingMergeError,
    CyclicExtensionError,
    DuplicateAliasError,
    EmptyAlgebraError,
    IncompatibleIntersectionError,
    InvalidKeyError,
    MissingValueError,
    ShapeError,
    ShapeFrozenError,
    UnknownParentError,
)
from typed_shapes.keys import UnionKeyPolicy, keys_of
from typed_shapes.parsing import ShapeParser, load_declarations
from typed_shapes.registry import ShapeRegistry
from typed_shapes.types import (
    DeclarationKind,
    FieldType,
    IntersectionType,
    LiteralType,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    ReferenceType,
    ResolvedShape,
    ResolvedUnion,
    ShapeState,
    UnionType,
)

__all__ = [
    # Main API
    "ShapeRegistry",
    "ShapeChecker",
    "ShapeParser",
    "load_declarations",
    # Operations
    "extend_fields",
    "union",
    "intersection",
    "keys_of",
    "validate_key",
    "access_value",
    "matches",
    "UnionKeyPolicy",
    # Type definitions
    "DeclarationKind",
    "ShapeState",
    "FieldType",
    "PrimitiveKind",
    "PrimitiveType",
    "LiteralType",
    "ReferenceType",
    "UnionType",
    "IntersectionType",
    "ObjectType",
    "ResolvedShape",
    "ResolvedUnion",
    # Errors
    "ShapeError",
    "ConflictingMergeError",
    "DuplicateAliasError",
    "UnknownParentError",
    "CyclicExtensionError",
    "ShapeFrozenError",
    "EmptyAlgebraError",
    "IncompatibleIntersectionError",
    "InvalidKeyError",
    "MissingValueError",
]

__version__ = "0.1.0"
