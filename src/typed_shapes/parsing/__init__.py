"""Parsing module for the shape declaration DSL."""

from typed_shapes.parsing.shape_parser import (
    AliasDecl,
    Declaration,
    InterfaceDecl,
    ShapeParser,
    apply_declarations,
    load_declarations,
)

__all__ = [
    "AliasDecl",
    "Declaration",
    "InterfaceDecl",
    "ShapeParser",
    "apply_declarations",
    "load_declarations",
]
