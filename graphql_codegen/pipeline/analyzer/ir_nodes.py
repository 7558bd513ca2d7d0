"""
IR (Intermediate Representation) node definitions.

These nodes describe the schema in a form ready for code generation: every
field type is resolved into a TypeRef and every fragment (definition plus
extensions) of a type is merged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from graphql.language import ListTypeNode, NamedTypeNode, NonNullTypeNode, TypeNode


class TypeKind(Enum):
    """Kind of type in the IR."""

    NAMED = "named"  # Scalar, enum, object, interface, union or input object
    LIST = "list"  # [T]


class ClassKind(Enum):
    """What a generated class was built from."""

    OBJECT = "object"
    INTERFACE = "interface"
    INPUT_OBJECT = "input_object"


class RootOperation(Enum):
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


@dataclass
class TypeRef:
    """A resolved field type."""

    kind: TypeKind = TypeKind.NAMED
    name: str = ""  # Named type (NAMED only)
    of_type: TypeRef | None = None  # Item type (LIST only)
    nullable: bool = True

    @property
    def named_type(self) -> str:
        """The innermost named type."""
        type_ref = self
        while type_ref.of_type is not None:
            type_ref = type_ref.of_type
        return type_ref.name


def resolve_type_ref(type_node: TypeNode) -> TypeRef:
    """
    Resolve a GraphQL type AST node into a TypeRef.

    Examples:
        String       -> TypeRef(NAMED, "String", nullable=True)
        [Int!]!      -> TypeRef(LIST, of_type=TypeRef(NAMED, "Int", nullable=False), nullable=False)

    Args:
        type_node: NamedType, ListType or NonNullType node

    Returns:
        The resolved TypeRef
    """
    if isinstance(type_node, NonNullTypeNode):
        type_ref = resolve_type_ref(type_node.type)
        type_ref.nullable = False
        return type_ref

    if isinstance(type_node, ListTypeNode):
        return TypeRef(kind=TypeKind.LIST, of_type=resolve_type_ref(type_node.type))

    if isinstance(type_node, NamedTypeNode):
        return TypeRef(kind=TypeKind.NAMED, name=type_node.name.value)

    raise TypeError(f"Unexpected type node: {type_node!r}")


@dataclass
class ArgumentDef:
    """A field argument."""

    name: str = ""
    type_ref: TypeRef | None = None
    default_value: Any = None
    has_default: bool = False
    description: str | None = None


@dataclass
class FieldDef:
    """A field of an object, interface or input object type."""

    name: str = ""
    original_name: str = ""  # GraphQL field name
    type_ref: TypeRef | None = None
    description: str | None = None
    arguments: list[ArgumentDef] = field(default_factory=list)
    default_value: Any = None
    has_default: bool = False
    deprecation_reason: str | None = None


@dataclass
class EnumValueDef:
    name: str = ""
    original_name: str = ""
    description: str | None = None
    deprecation_reason: str | None = None


@dataclass
class EnumDef:
    """An enum definition."""

    name: str = ""
    description: str | None = None
    values: list[EnumValueDef] = field(default_factory=list)


@dataclass
class UnionDef:
    """A union definition."""

    name: str = ""
    description: str | None = None
    members: list[str] = field(default_factory=list)


@dataclass
class ClassDef:
    """A class built from an object, interface or input object type."""

    name: str = ""
    kind: ClassKind = ClassKind.OBJECT
    description: str | None = None
    fields: list[FieldDef] = field(default_factory=list)

    # Interfaces declared by the type, in declaration order
    implements: list[str] = field(default_factory=list)

    # Set for Query / Mutation / Subscription types
    root_operation: RootOperation | None = None


@dataclass
class IR:
    """Complete intermediate representation for code generation."""

    classes: list[ClassDef] = field(default_factory=list)
    enums: list[EnumDef] = field(default_factory=list)
    unions: list[UnionDef] = field(default_factory=list)
    scalars: list[str] = field(default_factory=list)

    @property
    def root_operations(self) -> list[ClassDef]:
        return [class_def for class_def in self.classes if class_def.root_operation is not None]

    @property
    def models(self) -> list[ClassDef]:
        return [class_def for class_def in self.classes if class_def.root_operation is None]
