"""Parser for the shape declaration DSL.

Example::

    interface Animal { name: string }
    interface Animal { age: number }
    interface Dog extends Animal { breed: string }
    type Status = "active" | "inactive"
    type Named = Animal & { nickname: string }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

import ply.yacc as yacc

from typed_shapes.parsing.shape_lexer import ShapeLexer
from typed_shapes.registry import ShapeRegistry
from typed_shapes.types import (
    PRIMITIVE_KIND_NAMES,
    DeclarationKind,
    FieldType,
    LiteralType,
    ObjectType,
    PrimitiveType,
    ReferenceType,
    make_intersection,
    make_union,
)


@dataclass
class InterfaceDecl:
    """An ``interface`` declaration before it is applied to a registry."""

    name: str
    parents: list[str] = field(default_factory=list)
    fields: dict[str, FieldType] = field(default_factory=dict)
    line: int = 0


@dataclass
class AliasDecl:
    """A ``type X = ...`` declaration before it is applied to a registry."""

    name: str
    body: FieldType
    line: int = 0


Declaration = Union[InterfaceDecl, AliasDecl]


class ShapeParser:
    """Parser for the shape declaration DSL."""

    tokens = ShapeLexer.tokens

    def __init__(self) -> None:
        self.lexer = ShapeLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema :"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1] + [p[2]]

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : interface_def
                     | alias_def"""
        p[0] = p[1]

    def p_interface_def(self, p: yacc.YaccProduction) -> None:
        """interface_def : INTERFACE IDENTIFIER field_block"""
        p[0] = InterfaceDecl(name=p[2], fields=self._field_dict(p[3], p.lineno(1)), line=p.lineno(1))

    def p_interface_def_extends(self, p: yacc.YaccProduction) -> None:
        """interface_def : INTERFACE IDENTIFIER EXTENDS name_list field_block"""
        p[0] = InterfaceDecl(
            name=p[2],
            parents=p[4],
            fields=self._field_dict(p[5], p.lineno(1)),
            line=p.lineno(1),
        )

    def p_name_list_single(self, p: yacc.YaccProduction) -> None:
        """name_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_name_list_multiple(self, p: yacc.YaccProduction) -> None:
        """name_list : name_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_alias_def(self, p: yacc.YaccProduction) -> None:
        """alias_def : TYPE IDENTIFIER EQUALS type_expr
                     | TYPE IDENTIFIER EQUALS type_expr SEMI"""
        p[0] = AliasDecl(name=p[2], body=p[4], line=p.lineno(1))

    def p_field_block_empty(self, p: yacc.YaccProduction) -> None:
        """field_block : LBRACE RBRACE"""
        p[0] = []

    def p_field_block(self, p: yacc.YaccProduction) -> None:
        """field_block : LBRACE field_list RBRACE
                       | LBRACE field_list separator RBRACE"""
        p[0] = p[2]

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list separator field"""
        p[0] = p[1] + [p[3]]

    def p_separator(self, p: yacc.YaccProduction) -> None:
        """separator : COMMA
                     | SEMI"""

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : field_name COLON type_expr"""
        p[0] = (p[1], p[3])

    def p_field_name(self, p: yacc.YaccProduction) -> None:
        """field_name : IDENTIFIER
                      | TYPE
                      | INTERFACE
                      | EXTENDS"""
        p[0] = p[1]

    def p_type_expr(self, p: yacc.YaccProduction) -> None:
        """type_expr : union_expr"""
        p[0] = p[1]

    def p_union_expr_single(self, p: yacc.YaccProduction) -> None:
        """union_expr : intersection_expr
                      | PIPE intersection_expr"""
        p[0] = p[len(p) - 1]

    def p_union_expr_multiple(self, p: yacc.YaccProduction) -> None:
        """union_expr : union_expr PIPE intersection_expr"""
        p[0] = make_union([p[1], p[3]])

    def p_intersection_expr_single(self, p: yacc.YaccProduction) -> None:
        """intersection_expr : atom"""
        p[0] = p[1]

    def p_intersection_expr_multiple(self, p: yacc.YaccProduction) -> None:
        """intersection_expr : intersection_expr AMP atom"""
        p[0] = make_intersection([p[1], p[3]])

    def p_atom_name(self, p: yacc.YaccProduction) -> None:
        """atom : IDENTIFIER"""
        kind = PRIMITIVE_KIND_NAMES.get(p[1])
        p[0] = PrimitiveType(kind=kind) if kind is not None else ReferenceType(name=p[1])

    def p_atom_literal(self, p: yacc.YaccProduction) -> None:
        """atom : STRING
                | NUMBER"""
        p[0] = LiteralType(value=p[1])

    def p_atom_true(self, p: yacc.YaccProduction) -> None:
        """atom : TRUE"""
        p[0] = LiteralType(value=True)

    def p_atom_false(self, p: yacc.YaccProduction) -> None:
        """atom : FALSE"""
        p[0] = LiteralType(value=False)

    def p_atom_object(self, p: yacc.YaccProduction) -> None:
        """atom : field_block"""
        p[0] = ObjectType.from_mapping(self._field_dict(p[1], p.lineno(1)))

    def p_atom_group(self, p: yacc.YaccProduction) -> None:
        """atom : LPAREN type_expr RPAREN"""
        p[0] = p[2]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    @staticmethod
    def _field_dict(pairs: list[tuple[str, FieldType]], line: int) -> dict[str, FieldType]:
        fields: dict[str, FieldType] = {}
        for name, field_type in pairs:
            if name in fields:
                raise SyntaxError(f"Duplicate field '{name}' (line {line})")
            fields[name] = field_type
        return fields

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> list[Declaration]:
        """Parse declarations, in source order."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.lexer.lineno = 1
        declarations = self.parser.parse(data, lexer=self.lexer.lexer)
        return declarations or []


def apply_declarations(
    declarations: list[Declaration], registry: ShapeRegistry | None = None
) -> ShapeRegistry:
    """Apply parsed declarations to a registry, in order."""
    if registry is None:
        registry = ShapeRegistry()

    for decl in declarations:
        if isinstance(decl, AliasDecl):
            registry.declare(decl.name, DeclarationKind.SINGLE_ALIASED, body=decl.body)
        elif decl.parents:
            registry.extend(decl.name, decl.parents, decl.fields)
        else:
            registry.declare(decl.name, DeclarationKind.MERGEABLE_NAMED, decl.fields)
    return registry


def load_declarations(data: str, registry: ShapeRegistry | None = None) -> ShapeRegistry:
    """Parse declaration text and apply it to a (new) registry."""
    return apply_declarations(ShapeParser().parse(data), registry)
