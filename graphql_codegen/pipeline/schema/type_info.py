"""
Symbol table built while traversing a GraphQL schema document.

SchemaTypeInfo is mutated only by the traversal that owns it (through
`enter` / `leave`) and exposes a read-only query surface to visit callbacks
and to consumers once the traversal has finished.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence, Set
from types import MappingProxyType

from graphql import GraphQLSchema
from graphql.language import (
    DocumentNode,
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    EnumValueDefinitionNode,
    FieldDefinitionNode,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InputValueDefinitionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    Node,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
)

from ...errors import DuplicateFieldError, SchemaStructureError

logger = logging.getLogger(__name__)

EnumTypeNode = EnumTypeDefinitionNode | EnumTypeExtensionNode
InputObjectTypeNode = InputObjectTypeDefinitionNode | InputObjectTypeExtensionNode
InterfaceTypeNode = InterfaceTypeDefinitionNode | InterfaceTypeExtensionNode
ObjectTypeNode = ObjectTypeDefinitionNode | ObjectTypeExtensionNode
UnionTypeNode = UnionTypeDefinitionNode | UnionTypeExtensionNode

# Type definitions that own fields and act as the parent type of their children
ParentTypeNode = InputObjectTypeNode | InterfaceTypeNode | ObjectTypeNode

ENUM_TYPE_NODES = (EnumTypeDefinitionNode, EnumTypeExtensionNode)
INPUT_OBJECT_TYPE_NODES = (InputObjectTypeDefinitionNode, InputObjectTypeExtensionNode)
INTERFACE_TYPE_NODES = (InterfaceTypeDefinitionNode, InterfaceTypeExtensionNode)
OBJECT_TYPE_NODES = (ObjectTypeDefinitionNode, ObjectTypeExtensionNode)
UNION_TYPE_NODES = (UnionTypeDefinitionNode, UnionTypeExtensionNode)
PARENT_TYPE_NODES = INPUT_OBJECT_TYPE_NODES + INTERFACE_TYPE_NODES + OBJECT_TYPE_NODES

# Input object fields are stored in the same maps as object/interface fields
FieldNode = FieldDefinitionNode | InputValueDefinitionNode


class SchemaTypeInfo:
    """Cross-referenced symbol table over a schema document."""

    def __init__(self, document: DocumentNode, schema: GraphQLSchema):
        self.document = document
        self.schema = schema

        self._enum_definitions: dict[str, list[EnumTypeNode]] = {}
        self._enum_values: dict[str, list[EnumValueDefinitionNode]] = {}
        self._field_definitions: dict[str, FieldNode] = {}
        self._fields_by_parent: dict[str, dict[str, FieldNode]] = {}
        self._input_object_definitions: dict[str, list[InputObjectTypeNode]] = {}
        self._interface_definitions: dict[str, list[InterfaceTypeNode]] = {}
        self._object_definitions: dict[str, list[ObjectTypeNode]] = {}
        self._union_definitions: dict[str, list[UnionTypeNode]] = {}
        self._type_interfaces: dict[str, set[str]] = {}

        # Traversal state, only meaningful while visit_schema is running
        self._parent_stack: list[Node] = []
        self._parent_type: ParentTypeNode | None = None

    # Read-only views

    @property
    def field_definitions(self) -> Mapping[str, FieldNode]:
        """Qualified field name ("Type.field") to field definition node."""
        return MappingProxyType(self._field_definitions)

    @property
    def enum_definitions(self) -> Mapping[str, list[EnumTypeNode]]:
        return MappingProxyType(self._enum_definitions)

    @property
    def input_object_definitions(self) -> Mapping[str, list[InputObjectTypeNode]]:
        return MappingProxyType(self._input_object_definitions)

    @property
    def interface_definitions(self) -> Mapping[str, list[InterfaceTypeNode]]:
        return MappingProxyType(self._interface_definitions)

    @property
    def object_definitions(self) -> Mapping[str, list[ObjectTypeNode]]:
        return MappingProxyType(self._object_definitions)

    @property
    def union_definitions(self) -> Mapping[str, list[UnionTypeNode]]:
        return MappingProxyType(self._union_definitions)

    @property
    def parent_node(self) -> Node | None:
        """The node one level above the node currently being visited."""
        return self._parent_stack[-1] if self._parent_stack else None

    @property
    def parent_type(self) -> ParentTypeNode | None:
        """The object, interface or input object definition currently being visited."""
        return self._parent_type

    # Queries

    def get_enum_values(self, enum_type_name: str) -> Sequence[EnumValueDefinitionNode]:
        enum_values = self._enum_values.get(enum_type_name)
        if enum_values is None:
            raise KeyError(f"No enum values found for enum type: {enum_type_name}")
        return tuple(enum_values)

    def get_field_definition_map(self, parent_type_name: str) -> Mapping[str, FieldNode]:
        fields = self._fields_by_parent.get(parent_type_name)
        if fields is None:
            raise KeyError(f"No field map found for parent type: {parent_type_name}")
        return MappingProxyType(fields)

    def get_field_definitions(self, parent_type_name: str) -> Iterator[FieldNode]:
        return iter(self.get_field_definition_map(parent_type_name).values())

    def get_object_type_definitions(self, type_name: str) -> Sequence[ObjectTypeNode]:
        return self._get_definitions(self._object_definitions, type_name, "object")

    def get_interface_type_definitions(self, type_name: str) -> Sequence[InterfaceTypeNode]:
        return self._get_definitions(self._interface_definitions, type_name, "interface")

    def get_input_object_type_definitions(self, type_name: str) -> Sequence[InputObjectTypeNode]:
        return self._get_definitions(self._input_object_definitions, type_name, "input object")

    def get_enum_type_definitions(self, type_name: str) -> Sequence[EnumTypeNode]:
        return self._get_definitions(self._enum_definitions, type_name, "enum")

    def get_union_type_definitions(self, type_name: str) -> Sequence[UnionTypeNode]:
        return self._get_definitions(self._union_definitions, type_name, "union")

    def _get_definitions(self, definitions: dict[str, list], type_name: str, kind: str) -> Sequence:
        nodes = definitions.get(type_name)
        if nodes is None:
            raise KeyError(f"No {kind} type definitions found for type: {type_name}")
        return tuple(nodes)

    def get_interfaces_for_type(self, type_name: str) -> Set[str]:
        """Interfaces declared directly by an object or interface type (all fragments)."""
        return frozenset(self._type_interfaces.get(type_name, ()))

    def get_object_type_description(self, type_name: str) -> str | None:
        return _join_descriptions(self.get_object_type_definitions(type_name))

    def get_interface_type_description(self, type_name: str) -> str | None:
        return _join_descriptions(self.get_interface_type_definitions(type_name))

    def get_type_description(self, type_name: str) -> str | None:
        """
        Best-effort description of any named type.

        Descriptions of every definition fragment of the name are joined;
        an empty result is reported as None.
        """
        for definitions in (
            self._interface_definitions,
            self._object_definitions,
            self._input_object_definitions,
            self._enum_definitions,
            self._union_definitions,
        ):
            if type_name in definitions:
                return _join_descriptions(definitions[type_name])
        return None

    def is_query_type(self, type_name: str) -> bool:
        return _is_root_type(self.schema.query_type, type_name, "Query")

    def is_mutation_type(self, type_name: str) -> bool:
        return _is_root_type(self.schema.mutation_type, type_name, "Mutation")

    def is_subscription_type(self, type_name: str) -> bool:
        return _is_root_type(self.schema.subscription_type, type_name, "Subscription")

    def is_root_operation_type(self, type_name: str) -> bool:
        return self.is_query_type(type_name) or self.is_mutation_type(type_name) or self.is_subscription_type(type_name)

    def is_enum_type(self, type_name: str) -> bool:
        return type_name in self._enum_definitions

    def is_interface_type(self, type_name: str) -> bool:
        return type_name in self._interface_definitions

    def is_input_object_type(self, type_name: str) -> bool:
        return type_name in self._input_object_definitions

    def is_object_type(self, type_name: str) -> bool:
        return type_name in self._object_definitions

    def is_union_type(self, type_name: str) -> bool:
        return type_name in self._union_definitions

    # Traversal hooks

    def enter(self, node: Node) -> None:
        """Record `node` in the symbol table before its visit callback runs."""
        if isinstance(node, ENUM_TYPE_NODES):
            enum_name = node.name.value
            self._enum_definitions.setdefault(enum_name, []).append(node)
            self._enum_values.setdefault(enum_name, [])

        elif isinstance(node, EnumValueDefinitionNode):
            self._enter_enum_value(node)

        elif isinstance(node, FieldDefinitionNode):
            self._enter_field(node)

        elif isinstance(node, InputValueDefinitionNode):
            # Arguments share the node type, only input object fields are recorded
            if isinstance(self.parent_node, INPUT_OBJECT_TYPE_NODES):
                self._enter_field(node)

        elif isinstance(node, INPUT_OBJECT_TYPE_NODES):
            self._enter_parent_type(node, self._input_object_definitions)

        elif isinstance(node, INTERFACE_TYPE_NODES):
            self._enter_parent_type(node, self._interface_definitions)

        elif isinstance(node, OBJECT_TYPE_NODES):
            self._enter_parent_type(node, self._object_definitions)

        elif isinstance(node, UNION_TYPE_NODES):
            # Unions only parent NamedType nodes, they are not a parent type for fields
            self._union_definitions.setdefault(node.name.value, []).append(node)

    def leave(self, node: Node) -> None:
        if isinstance(node, PARENT_TYPE_NODES):
            self._parent_type = None

    def _enter_parent_type(self, node: ParentTypeNode, definitions: dict[str, list]) -> None:
        type_name = node.name.value
        definitions.setdefault(type_name, []).append(node)
        self._fields_by_parent.setdefault(type_name, {})

        interfaces = getattr(node, "interfaces", None)
        if interfaces:
            declared = self._type_interfaces.setdefault(type_name, set())
            declared.update(interface.name.value for interface in interfaces)

        self._parent_type = node

    def _enter_field(self, node: FieldNode) -> None:
        field_name = node.name.value

        parent = self.parent_node
        if not isinstance(parent, PARENT_TYPE_NODES):
            raise SchemaStructureError(f"Invalid type, field definition: {field_name}, without parent")

        parent_type_name = parent.name.value
        qualified_name = f"{parent_type_name}.{field_name}"

        parent_fields = self._fields_by_parent.get(parent_type_name)
        if parent_fields is None:
            raise SchemaStructureError(
                f"Invalid type, field definition: {qualified_name}, without field from parent map"
            )

        if qualified_name in self._field_definitions or field_name in parent_fields:
            raise DuplicateFieldError(qualified_name)

        parent_fields[field_name] = node
        self._field_definitions[qualified_name] = node

    def _enter_enum_value(self, node: EnumValueDefinitionNode) -> None:
        value_name = node.name.value

        enum_type = self.parent_node
        if not isinstance(enum_type, ENUM_TYPE_NODES):
            raise SchemaStructureError(f"Invalid type, enum value definition: {value_name}, without enum parent")

        enum_name = enum_type.name.value
        enum_values = self._enum_values.get(enum_name)
        if enum_values is None:
            raise SchemaStructureError(
                f"Invalid type, enum type {enum_name} not found in values map, "
                f"for enum value definition: {enum_name}.{value_name}"
            )
        enum_values.append(node)

    def reset_traversal(self) -> None:
        self._parent_stack.clear()
        self._parent_type = None


def _is_root_type(root_type, type_name: str, conventional_name: str) -> bool:
    if root_type is None:
        return type_name == conventional_name
    return root_type.name == type_name


def _join_descriptions(nodes: Sequence[Node]) -> str | None:
    descriptions = [node.description.value for node in nodes if getattr(node, "description", None) is not None]
    return "\n".join(descriptions).strip() or None
