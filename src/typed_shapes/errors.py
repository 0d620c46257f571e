"""Error taxonomy for the typed_shapes engine.

Every error is recoverable and carries the structured attributes a consumer
needs to render its own diagnostic. ``str(error)`` gives a plain message.
"""

from __future__ import annotations


class ShapeError(Exception):
    """Base class for all typed_shapes errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        # KeyError subclasses would otherwise repr() the message
        return self.message


class DeclarationError(ShapeError, ValueError):
    """A declaration could not be accepted or resolved."""


class ConflictingMergeError(DeclarationError):
    def __init__(self, name: str, field: str) -> None:
        super().__init__(
            f"Field '{field}' of '{name}' is redeclared with a different type"
        )
        self.name = name
        self.field = field


class DuplicateAliasError(DeclarationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Type '{name}' is already defined")
        self.name = name


class UnknownParentError(DeclarationError):
    def __init__(self, parent_name: str, child_name: str | None = None) -> None:
        where = f" (extended by '{child_name}')" if child_name else ""
        super().__init__(f"Unknown parent type: {parent_name}{where}")
        self.parent_name = parent_name
        self.child_name = child_name


class CyclicExtensionError(DeclarationError):
    """The extension or alias graph loops back on itself."""

    def __init__(self, name: str, path: list[str] | None = None) -> None:
        path = list(path or [name])
        super().__init__(
            f"Circular definition: '{name}' depends on itself ({' -> '.join(path)})"
        )
        self.name = name
        self.path = path


class NonObjectParentError(DeclarationError):
    def __init__(self, name: str, parent_name: str) -> None:
        super().__init__(
            f"'{name}' can only extend object shapes, not '{parent_name}'"
        )
        self.name = name
        self.parent_name = parent_name


class ShapeFrozenError(DeclarationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Shape '{name}' has already been resolved and cannot change")
        self.name = name


class UnknownShapeError(ShapeError, KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Shape '{name}' not found")
        self.name = name


class AlgebraError(ShapeError, ValueError):
    """A union or intersection could not be formed."""


class EmptyAlgebraError(AlgebraError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot form {operation} of zero members")
        self.operation = operation


class IncompatibleIntersectionError(AlgebraError):
    def __init__(self, key: str | None, left: str = "", right: str = "") -> None:
        if key is None:
            message = f"Cannot intersect '{left}' with '{right}'"
        else:
            message = f"Field '{key}' has incompatible types '{left}' and '{right}'"
        super().__init__(message)
        self.key = key
        self.left = left
        self.right = right


class AccessError(ShapeError, KeyError):
    """A key could not be used to access a shape or a value."""


class InvalidKeyError(AccessError):
    def __init__(self, shape: str, key: str) -> None:
        super().__init__(f"'{key}' is not a valid key of '{shape}'")
        self.shape = shape
        self.key = key


class MissingValueError(AccessError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Value has no entry for key '{key}'")
        self.key = key
