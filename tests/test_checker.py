"""Tests for the ShapeChecker query layer."""

import pytest

from typed_shapes.checker import ShapeChecker
from typed_shapes.errors import (
    ConflictingMergeError,
    DuplicateAliasError,
    InvalidKeyError,
    MissingValueError,
    UnknownParentError,
    UnknownShapeError,
)
from typed_shapes.keys import UnionKeyPolicy
from typed_shapes.types import DeclarationKind, PrimitiveKind, PrimitiveType

STRING = PrimitiveType(PrimitiveKind.STRING)
NUMBER = PrimitiveType(PrimitiveKind.NUMBER)

SOURCE = """
interface Animal { name: string }
interface Animal { age: number }
interface Dog extends Animal { breed: string }
interface Cat extends Animal { lives: number }
type Pet = Dog | Cat
type Status = "active" | "inactive"
interface Person { name: string, age: number, email: string }
"""


@pytest.fixture
def checker():
    """Create a ShapeChecker loaded with the sample declarations."""
    c = ShapeChecker()
    result = c.load(SOURCE)
    assert result.ok, result.message
    return c


class TestLoad:
    """Tests for loading declaration text."""

    def test_load_reports_new_shapes(self):
        c = ShapeChecker()
        result = c.load(SOURCE)
        assert result.ok
        assert [row["shape"] for row in result.rows] == [
            "Animal", "Dog", "Cat", "Pet", "Status", "Person",
        ]
        assert result.shape_ids == [0, 1, 2, 3, 4, 5]
        assert result.message == "Loaded 7 declaration(s)"

    def test_syntax_error(self):
        result = ShapeChecker().load("interface {")
        assert not result.ok
        assert isinstance(result.error, SyntaxError)

    def test_declaration_error(self):
        result = ShapeChecker().load("type A = string\ntype A = number")
        assert not result.ok
        assert isinstance(result.error, DuplicateAliasError)
        assert result.message == "Type 'A' is already defined"


class TestDeclare:
    """Tests for programmatic declarations through the checker."""

    def test_declare(self):
        c = ShapeChecker()
        result = c.declare("A", DeclarationKind.MERGEABLE_NAMED, {"x": STRING})
        assert result.ok
        assert result.shape_ids == [0]

    def test_declare_conflict(self):
        c = ShapeChecker()
        c.declare("A", DeclarationKind.MERGEABLE_NAMED, {"x": STRING})
        result = c.declare("A", DeclarationKind.MERGEABLE_NAMED, {"x": NUMBER})
        assert not result.ok
        assert isinstance(result.error, ConflictingMergeError)

    def test_extend(self):
        c = ShapeChecker()
        c.declare("Base", DeclarationKind.MERGEABLE_NAMED, {"id": STRING})
        result = c.extend("Child", ["Base"], {"n": NUMBER})
        assert result.ok
        assert c.keys("Child").keys == ("id", "n")


class TestQueries:
    """Tests for keys, describe, check and access."""

    def test_keys(self, checker):
        assert checker.keys("Animal").keys == ("name", "age")
        assert checker.keys("Dog").keys == ("name", "age", "breed")
        assert checker.keys("Pet").keys == ("name", "age")
        assert checker.keys("Status").keys == ()

    def test_keys_unknown(self, checker):
        result = checker.keys("Nope")
        assert not result.ok
        assert isinstance(result.error, UnknownShapeError)

    def test_keys_any_policy(self):
        c = ShapeChecker(policy=UnionKeyPolicy.ANY)
        c.load(SOURCE)
        assert c.keys("Pet").keys == ("name", "age", "breed", "lives")

    def test_check_valid(self, checker):
        result = checker.check("Person", "name")
        assert result.ok
        assert result.field_type == STRING
        assert result.message == "Person.name: string"

    def test_check_invalid(self, checker):
        result = checker.check("Person", "address")
        assert not result.ok
        assert isinstance(result.error, InvalidKeyError)
        assert result.error.shape == "Person"
        assert result.error.key == "address"

    def test_access(self, checker):
        result = checker.access({"name": "Rex", "age": 3, "breed": "lab"}, "Dog", "breed")
        assert result.ok
        assert result.value == "lab"
        assert result.field_type == STRING

    def test_access_missing(self, checker):
        result = checker.access({"name": "Rex"}, "Dog", "age")
        assert isinstance(result.error, MissingValueError)

    def test_describe_shape(self, checker):
        result = checker.describe("Dog")
        assert result.rows == [
            {"field": "name", "type": "string"},
            {"field": "age", "type": "number"},
            {"field": "breed", "type": "string"},
        ]
        assert result.message == "Dog: 3 field(s)"

    def test_describe_union(self, checker):
        result = checker.describe("Status")
        assert result.rows == []
        assert result.message == 'Status = "active" | "inactive"'

    def test_describe_unresolvable(self):
        c = ShapeChecker()
        c.load("interface Dog extends Animal {}")
        result = c.describe("Dog")
        assert isinstance(result.error, UnknownParentError)

    def test_list_shapes_shows_state(self, checker):
        checker.keys("Dog")
        states = {row["shape"]: row["state"] for row in checker.list_shapes().rows}
        assert states["Dog"] == "resolved"
        assert states["Animal"] == "resolved"
        assert states["Person"] == "unresolved"

    def test_match(self, checker):
        assert checker.match({"name": "Tom", "age": 2, "lives": 9}, "Pet").matched
        assert not checker.match({"name": "Tom", "age": 2}, "Pet").matched
        assert checker.match("active", "Status").matched
        result = checker.match({}, "Nope")
        assert not result.ok
