"""
Schema analyzer.

Visits a schema context and builds the IR used by the emission backends.
Type names and union members are collected during the traversal; fields,
interfaces, enum values and descriptions are read from the symbol table
once every fragment of every type has been seen.
"""

from __future__ import annotations

import keyword
import logging

from graphql import value_from_ast_untyped
from graphql.language import (
    DirectiveNode,
    EnumTypeDefinitionNode,
    FieldDefinitionNode,
    InputObjectTypeDefinitionNode,
    InterfaceTypeDefinitionNode,
    NamedTypeNode,
    ObjectTypeDefinitionNode,
    ScalarTypeDefinitionNode,
    StringValueNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
)

from ...utils import camel_to_snake_case
from ..schema import SchemaContext, SchemaTypeInfo, SchemaVisitor
from .ir_nodes import (
    IR,
    ArgumentDef,
    ClassDef,
    ClassKind,
    EnumDef,
    EnumValueDef,
    FieldDef,
    RootOperation,
    UnionDef,
    resolve_type_ref,
)

logger = logging.getLogger(__name__)

DEFAULT_DEPRECATION_REASON = "No longer supported"


def to_identifier(name: str, snake_case: bool = False) -> str:
    """Turn a GraphQL name into a valid Python identifier."""
    identifier = camel_to_snake_case(name) if snake_case else name
    if keyword.iskeyword(identifier):
        return f"{identifier}_"
    return identifier


def get_deprecation_reason(directives: tuple[DirectiveNode, ...] | None) -> str | None:
    for directive in directives or ():
        if directive.name.value != "deprecated":
            continue
        for argument in directive.arguments or ():
            if argument.name.value == "reason" and isinstance(argument.value, StringValueNode):
                return argument.value.value
        return DEFAULT_DEPRECATION_REASON
    return None


class SchemaAnalyzer(SchemaVisitor):
    """Builds an IR from a schema context."""

    def __init__(self, snake_case_fields: bool = False):
        """
        Initialize the analyzer.

        Args:
            snake_case_fields: Convert camelCase field names to snake_case
        """
        self.snake_case_fields = snake_case_fields
        self._class_kinds: dict[str, ClassKind] = {}
        self._enum_names: list[str] = []
        self._scalar_names: list[str] = []
        self._union_members: dict[str, list[str]] = {}

    def analyze(self, context: SchemaContext) -> IR:
        """
        Traverse the schema and build the IR.

        Args:
            context: The schema context

        Returns:
            The IR for every type defined in the schema
        """
        type_info = context.visit_schema(self)

        ir = IR(scalars=list(self._scalar_names))
        for name, kind in self._class_kinds.items():
            ir.classes.append(self._build_class(name, kind, type_info))
        ir.classes = self._order_classes(ir.classes)

        for name in self._enum_names:
            ir.enums.append(self._build_enum(name, type_info))

        for name, members in self._union_members.items():
            ir.unions.append(UnionDef(name=name, description=type_info.get_type_description(name), members=members))

        logger.debug(
            "Analyzed %d classes, %d enums, %d unions", len(ir.classes), len(ir.enums), len(ir.unions)
        )
        return ir

    # Visit callbacks

    def enter_object_type_definition(self, node: ObjectTypeDefinitionNode, type_info: SchemaTypeInfo):
        self._class_kinds.setdefault(node.name.value, ClassKind.OBJECT)

    def enter_object_type_extension(self, node, type_info: SchemaTypeInfo):
        self._class_kinds.setdefault(node.name.value, ClassKind.OBJECT)

    def enter_interface_type_definition(self, node: InterfaceTypeDefinitionNode, type_info: SchemaTypeInfo):
        self._class_kinds.setdefault(node.name.value, ClassKind.INTERFACE)

    def enter_input_object_type_definition(self, node: InputObjectTypeDefinitionNode, type_info: SchemaTypeInfo):
        self._class_kinds.setdefault(node.name.value, ClassKind.INPUT_OBJECT)

    def enter_enum_type_definition(self, node: EnumTypeDefinitionNode, type_info: SchemaTypeInfo):
        if node.name.value not in self._enum_names:
            self._enum_names.append(node.name.value)

    def enter_scalar_type_definition(self, node: ScalarTypeDefinitionNode, type_info: SchemaTypeInfo):
        self._scalar_names.append(node.name.value)

    def enter_union_type_definition(self, node: UnionTypeDefinitionNode, type_info: SchemaTypeInfo):
        self._union_members.setdefault(node.name.value, [])

    def enter_named_type(self, node: NamedTypeNode, type_info: SchemaTypeInfo):
        parent = type_info.parent_node
        if isinstance(parent, (UnionTypeDefinitionNode, UnionTypeExtensionNode)):
            members = self._union_members.setdefault(parent.name.value, [])
            if node.name.value not in members:
                members.append(node.name.value)

    # IR construction

    def _build_class(self, name: str, kind: ClassKind, type_info: SchemaTypeInfo) -> ClassDef:
        root_operation = None
        if kind is ClassKind.OBJECT:
            if type_info.is_query_type(name):
                root_operation = RootOperation.QUERY
            elif type_info.is_mutation_type(name):
                root_operation = RootOperation.MUTATION
            elif type_info.is_subscription_type(name):
                root_operation = RootOperation.SUBSCRIPTION

        return ClassDef(
            name=name,
            kind=kind,
            description=type_info.get_type_description(name),
            fields=[self._build_field(node) for node in type_info.get_field_definitions(name)],
            implements=self._ordered_interfaces(name, type_info),
            root_operation=root_operation,
        )

    def _build_field(self, node) -> FieldDef:
        field_def = FieldDef(
            name=to_identifier(node.name.value, self.snake_case_fields),
            original_name=node.name.value,
            type_ref=resolve_type_ref(node.type),
            description=node.description.value if node.description else None,
            deprecation_reason=get_deprecation_reason(node.directives),
        )

        if isinstance(node, FieldDefinitionNode):
            for argument in node.arguments or ():
                argument_def = ArgumentDef(
                    name=to_identifier(argument.name.value, self.snake_case_fields),
                    type_ref=resolve_type_ref(argument.type),
                    description=argument.description.value if argument.description else None,
                )
                if argument.default_value is not None:
                    argument_def.default_value = value_from_ast_untyped(argument.default_value)
                    argument_def.has_default = True
                field_def.arguments.append(argument_def)
        elif node.default_value is not None:
            field_def.default_value = value_from_ast_untyped(node.default_value)
            field_def.has_default = True

        return field_def

    def _build_enum(self, name: str, type_info: SchemaTypeInfo) -> EnumDef:
        return EnumDef(
            name=name,
            description=type_info.get_type_description(name),
            values=[
                EnumValueDef(
                    name=to_identifier(value.name.value),
                    original_name=value.name.value,
                    description=value.description.value if value.description else None,
                    deprecation_reason=get_deprecation_reason(value.directives),
                )
                for value in type_info.get_enum_values(name)
            ],
        )

    def _ordered_interfaces(self, name: str, type_info: SchemaTypeInfo) -> list[str]:
        """
        Interfaces to use as base classes.

        Interfaces already inherited through another declared interface are
        dropped so that the resulting class hierarchy has a consistent MRO.
        """
        declared = set(type_info.get_interfaces_for_type(name))
        inherited: set[str] = set()
        for interface in declared:
            inherited |= self._interface_ancestors(interface, type_info, set())
        return sorted(declared - inherited)

    def _interface_ancestors(self, name: str, type_info: SchemaTypeInfo, seen: set[str]) -> set[str]:
        ancestors: set[str] = set()
        for parent in type_info.get_interfaces_for_type(name):
            if parent in seen:
                continue
            seen.add(parent)
            ancestors.add(parent)
            ancestors |= self._interface_ancestors(parent, type_info, seen)
        return ancestors

    def _order_classes(self, classes: list[ClassDef]) -> list[ClassDef]:
        """Order classes so that every base class precedes its subclasses."""
        by_name = {class_def.name: class_def for class_def in classes}
        ordered: list[ClassDef] = []
        visited: set[str] = set()

        def visit(class_def: ClassDef) -> None:
            if class_def.name in visited:
                return
            visited.add(class_def.name)
            for base in class_def.implements:
                if base in by_name:
                    visit(by_name[base])
            ordered.append(class_def)

        for class_def in classes:
            visit(class_def)
        return ordered
