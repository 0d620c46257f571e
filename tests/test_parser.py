"""Tests for the declaration DSL parser."""

import pytest

from typed_shapes.errors import ConflictingMergeError, DuplicateAliasError
from typed_shapes.parsing import (
    AliasDecl,
    InterfaceDecl,
    ShapeParser,
    apply_declarations,
    load_declarations,
)
from typed_shapes.parsing.shape_lexer import ShapeLexer
from typed_shapes.registry import ShapeRegistry
from typed_shapes.types import (
    DeclarationKind,
    IntersectionType,
    LiteralType,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    ReferenceType,
    UnionType,
)

STRING = PrimitiveType(PrimitiveKind.STRING)
NUMBER = PrimitiveType(PrimitiveKind.NUMBER)
NULL = PrimitiveType(PrimitiveKind.NULL)


@pytest.fixture
def parser():
    """Create a fresh ShapeParser."""
    p = ShapeParser()
    p.build(debug=False, write_tables=False)
    return p


class TestShapeLexer:
    """Tests for the shape lexer."""

    def test_tokenize_interface(self):
        lexer = ShapeLexer()
        lexer.build()

        tokens = lexer.tokenize("interface Dog extends Animal { breed: string }")
        token_types = [t.type for t in tokens]

        assert token_types == [
            "INTERFACE",
            "IDENTIFIER",
            "EXTENDS",
            "IDENTIFIER",
            "LBRACE",
            "IDENTIFIER",
            "COLON",
            "IDENTIFIER",
            "RBRACE",
        ]

    def test_tokenize_alias(self):
        lexer = ShapeLexer()
        lexer.build()

        tokens = lexer.tokenize('type Status = "active" | \'inactive\' & 3 | true')
        token_types = [t.type for t in tokens]

        assert token_types == [
            "TYPE",
            "IDENTIFIER",
            "EQUALS",
            "STRING",
            "PIPE",
            "STRING",
            "AMP",
            "NUMBER",
            "PIPE",
            "TRUE",
        ]
        assert tokens[3].value == "active"
        assert tokens[5].value == "inactive"
        assert tokens[7].value == 3

    def test_numbers(self):
        lexer = ShapeLexer()
        lexer.build()

        values = [t.value for t in lexer.tokenize("1 -2 3.5")]
        assert values == [1, -2, 3.5]

    def test_string_escapes_keep_non_ascii_text(self):
        lexer = ShapeLexer()
        lexer.build()

        values = [t.value for t in lexer.tokenize('"café\\n" "日\\t" "plain é"')]
        assert values == ["café\n", "日\t", "plain é"]

    def test_comments_ignored(self):
        lexer = ShapeLexer()
        lexer.build()

        tokens = lexer.tokenize("# a comment\ntype X = string // trailing\n")
        assert [t.type for t in tokens] == ["TYPE", "IDENTIFIER", "EQUALS", "IDENTIFIER"]

    def test_line_numbers(self):
        lexer = ShapeLexer()
        lexer.build()

        tokens = lexer.tokenize("type\n\nX")
        assert tokens[1].lineno == 3

    def test_illegal_character(self):
        lexer = ShapeLexer()
        lexer.build()

        with pytest.raises(SyntaxError):
            lexer.tokenize("type X = string @")


class TestShapeParser:
    """Tests for the shape parser."""

    def test_empty_input(self, parser):
        assert parser.parse("") == []
        assert parser.parse("# only a comment\n") == []

    def test_parse_interface(self, parser):
        decls = parser.parse("interface Person { name: string, age: number }")
        assert decls == [
            InterfaceDecl(name="Person", fields={"name": STRING, "age": NUMBER}, line=1)
        ]

    def test_field_order_preserved(self, parser):
        (decl,) = parser.parse("interface P { z: string; a: number; m: null; }")
        assert list(decl.fields) == ["z", "a", "m"]

    def test_empty_interface(self, parser):
        (decl,) = parser.parse("interface Marker {}")
        assert decl.fields == {}

    def test_trailing_separator(self, parser):
        (decl,) = parser.parse("interface P { x: number, }")
        assert decl.fields == {"x": NUMBER}

    def test_keyword_field_names(self, parser):
        (decl,) = parser.parse("interface Node { type: string, interface: string, extends: string }")
        assert list(decl.fields) == ["type", "interface", "extends"]

    def test_parse_extends(self, parser):
        (decl,) = parser.parse("interface Dog extends Animal, Named { breed: string }")
        assert decl.parents == ["Animal", "Named"]
        assert decl.fields == {"breed": STRING}

    def test_parse_literal_union(self, parser):
        (decl,) = parser.parse('type Status = "active" | "inactive"')
        assert isinstance(decl, AliasDecl)
        assert decl.body == UnionType(members=(LiteralType("active"), LiteralType("inactive")))
        assert decl.body.members == (LiteralType("active"), LiteralType("inactive"))

    def test_leading_pipe(self, parser):
        (decl,) = parser.parse("type T =\n  | string\n  | number;")
        assert decl.body == UnionType(members=(STRING, NUMBER))

    def test_intersection_binds_tighter(self, parser):
        (decl,) = parser.parse("type T = A & B | C")
        assert decl.body == UnionType(
            members=(
                IntersectionType(members=(ReferenceType("A"), ReferenceType("B"))),
                ReferenceType("C"),
            )
        )

    def test_parentheses(self, parser):
        (decl,) = parser.parse("type T = A & (B | C)")
        assert decl.body == IntersectionType(
            members=(
                ReferenceType("A"),
                UnionType(members=(ReferenceType("B"), ReferenceType("C"))),
            )
        )

    def test_object_alias(self, parser):
        (decl,) = parser.parse("type Point = { x: number, y: number }")
        assert decl.body == ObjectType.from_mapping({"x": NUMBER, "y": NUMBER})

    def test_literals(self, parser):
        (decl,) = parser.parse("type T = true | false | 0 | 'x'")
        assert set(decl.body.members) == {
            LiteralType(True),
            LiteralType(False),
            LiteralType(0),
            LiteralType("x"),
        }

    def test_primitive_names(self, parser):
        (decl,) = parser.parse("interface P { a: string, b: number, c: boolean, d: null, e: Other }")
        assert decl.fields["c"] == PrimitiveType(PrimitiveKind.BOOLEAN)
        assert decl.fields["d"] == NULL
        assert decl.fields["e"] == ReferenceType("Other")

    def test_statements_in_order(self, parser):
        decls = parser.parse("""
        interface Animal { name: string }
        type Status = "a" | "b"
        interface Animal { age: number }
        """)
        assert [(type(d).__name__, d.name) for d in decls] == [
            ("InterfaceDecl", "Animal"),
            ("AliasDecl", "Status"),
            ("InterfaceDecl", "Animal"),
        ]
        assert decls[2].line == 4

    def test_duplicate_field_in_block(self, parser):
        with pytest.raises(SyntaxError):
            parser.parse("interface P { x: string, x: string }")

    def test_syntax_error(self, parser):
        with pytest.raises(SyntaxError, match="line 2"):
            parser.parse("interface P { x: string }\ninterface { }")

    def test_unexpected_end(self, parser):
        with pytest.raises(SyntaxError, match="end of input"):
            parser.parse("type T =")

    def test_parser_is_reusable(self, parser):
        parser.parse("type A = string")
        with pytest.raises(SyntaxError, match="line 1"):
            parser.parse("type = string")


class TestLoadDeclarations:
    """Tests for applying parsed declarations to a registry."""

    def test_scenarios(self):
        registry = load_declarations("""
        interface Animal { name: string }
        interface Animal { age: number }
        interface Dog extends Animal { breed: string }
        type Status = "active" | "inactive"
        interface Person { name: string, age: number, email: string }
        """)
        assert registry.keys_of("Animal") == ("name", "age")
        assert registry.keys_of("Dog") == ("name", "age", "breed")
        assert registry.keys_of("Status") == ()
        assert registry.validate_key("Person", "name") == STRING

    def test_kinds(self):
        registry = load_declarations("interface A {}\ntype B = string")
        assert registry.kind_of("A") is DeclarationKind.MERGEABLE_NAMED
        assert registry.kind_of("B") is DeclarationKind.SINGLE_ALIASED

    def test_into_existing_registry(self):
        registry = ShapeRegistry()
        registry.declare("Animal", DeclarationKind.MERGEABLE_NAMED, {"name": STRING})
        result = load_declarations("interface Animal { age: number }", registry)
        assert result is registry
        assert registry.keys_of("Animal") == ("name", "age")

    def test_duplicate_alias(self):
        with pytest.raises(DuplicateAliasError):
            load_declarations("type A = string\ntype A = string")

    def test_conflicting_merge(self):
        with pytest.raises(ConflictingMergeError):
            load_declarations("interface A { x: string }\ninterface A { x: number }")

    def test_apply_declarations(self):
        decls = [
            InterfaceDecl(name="Base", fields={"id": STRING}),
            InterfaceDecl(name="Child", parents=["Base"], fields={"n": NUMBER}),
            AliasDecl(name="Id", body=STRING),
        ]
        registry = apply_declarations(decls)
        assert registry.keys_of("Child") == ("id", "n")
        assert registry.resolve("Id") == STRING
