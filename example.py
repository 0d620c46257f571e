"""Example usage of the typed_shapes library."""

from typed_shapes import InvalidKeyError, MissingValueError, load_declarations
from typed_shapes.types import format_type

# Declare shapes using the DSL
declarations = """
interface Animal { name: string }
interface Animal { age: number }       # merged into Animal

interface Dog extends Animal { breed: string }
interface Cat extends Animal { lives: number }

type Pet = Dog | Cat
type Status = "active" | "inactive"
type Tagged = Dog & { tag: string }
"""

registry = load_declarations(declarations)

print("Keys of each shape:")
for name in registry.list_shapes():
    print(f"  {name:<8} {list(registry.keys_of(name))}")

print("\nKey checks on Pet (only keys common to Dog and Cat are allowed):")
for key in ["name", "breed"]:
    try:
        field_type = registry.validate_key("Pet", key)
        print(f"  Pet.{key}: ok ({format_type(field_type)})")
    except InvalidKeyError as e:
        print(f"  Pet.{key}: {e}")

print("\nReading values:")
rex = {"name": "Rex", "breed": "lab"}
for key in ["breed", "age"]:
    try:
        print(f"  rex.{key} = {registry.access_value(rex, 'Dog', key)!r}")
    except MissingValueError as e:
        print(f"  rex.{key}: {e}")

print("\nMatching values:")
print(f"  'active' is a Status: {registry.matches('active', 'Status')}")
print(f"  rex is a Pet: {registry.matches(rex, 'Pet')}")
