"""
Python code generation backend.

Generates Python dataclasses, enums, union aliases and resolver protocols
from IR.
"""

from __future__ import annotations

from typing import Any

from ..analyzer.ir_nodes import IR, ClassDef, EnumDef, FieldDef, RootOperation, TypeKind, TypeRef, UnionDef
from ..config import GenerateOptions
from .base import CodeBackend


def _docstring(text: str | None) -> str | None:
    """Escape a GraphQL description for use inside a triple-quoted docstring."""
    if not text:
        return None
    text = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"') and not text.endswith('\\"'):
        text = text[:-1] + '\\"'
    return text


class PythonBackend(CodeBackend):
    """Python code generation backend."""

    TEMPLATE_LANG = "python"
    FILE_EXTENSION = "py"

    TYPE_MAP = {
        "Int": "int",
        "Float": "float",
        "String": "str",
        "Boolean": "bool",
        "ID": "str",
    }

    def __init__(self, options: GenerateOptions | None = None):
        super().__init__(options)
        self.python_imports: set[tuple[str, str]] = set()
        self.enum_names: set[str] = set()

    def generate(self, ir: IR) -> str:
        """Generate Python code from IR."""
        # Reset import tracking
        self.python_imports = {("__future__", "annotations")}
        self.enum_names = {enum_def.name for enum_def in ir.enums}

        blocks: list[str] = []

        scalar_lines = [f"{name} = {self._scalar_type(name)}" for name in ir.scalars]
        if scalar_lines:
            blocks.append("\n".join(scalar_lines))

        if ir.enums:
            self.python_imports.add(("enum", "Enum"))
        for enum_def in ir.enums:
            blocks.append(self.get_template("enum").render(self._prepare_enum_context(enum_def)))

        models = ir.models
        if models:
            self.python_imports.add(("dataclasses", "dataclass"))
        for class_def in models:
            blocks.append(self.get_template("class").render(self._prepare_class_context(class_def)))

        for union_def in ir.unions:
            blocks.append(self.get_template("union").render(self._prepare_union_context(union_def)))

        root_operations = ir.root_operations
        if root_operations:
            self.python_imports.add(("typing", "Any"))
            self.python_imports.add(("typing", "Protocol"))
            self.python_imports.add(("graphql", "GraphQLResolveInfo"))
        for class_def in root_operations:
            blocks.append(self.get_template("resolvers").render(self._prepare_resolvers_context(class_def)))

        prefix = self.get_template("prefix").render(
            HEADER=self.header_lines(),
            IMPORTS=self._group_imports(),
        )

        return "\n\n\n".join(block.strip("\n") for block in [prefix, *blocks]) + "\n"

    def translate_type(self, type_ref: TypeRef) -> str:
        if type_ref.kind is TypeKind.LIST:
            inner = self.translate_type(type_ref.of_type)
            result = f"list[{inner}]"
        else:
            result = self.TYPE_MAP.get(type_ref.name, type_ref.name)

        if type_ref.nullable:
            result = f"{result} | None"
        return result

    def format_default_value(self, value: Any, type_ref: TypeRef) -> str:
        if value is None:
            return "None"
        if type_ref.kind is TypeKind.LIST:
            items = value if isinstance(value, list) else [value]
            return "[" + ", ".join(self.format_default_value(item, type_ref.of_type) for item in items) + "]"
        if type_ref.name in self.enum_names and isinstance(value, str):
            return f"{type_ref.name}.{value}"
        return repr(value)

    def _scalar_type(self, name: str) -> str:
        mapped = self.options.scalars.get(name)
        if mapped:
            return mapped
        self.python_imports.add(("typing", "Any"))
        return "Any"

    def _field_init(self, field: FieldDef) -> str | None:
        if field.has_default:
            formatted = self.format_default_value(field.default_value, field.type_ref)
            if field.type_ref.kind is TypeKind.LIST and field.default_value is not None:
                self.python_imports.add(("dataclasses", "field"))
                return f"field(default_factory=lambda: {formatted})"
            return formatted
        if field.type_ref.nullable:
            return "None"
        return None

    def _comment(self, field: FieldDef) -> str | None:
        if field.deprecation_reason:
            return f"Deprecated: {field.deprecation_reason}"
        return None

    def _prepare_enum_context(self, enum_def: EnumDef) -> dict[str, Any]:
        return {
            "ENUM_NAME": enum_def.name,
            "DESCRIPTION": _docstring(enum_def.description),
            "VALUES": [
                {
                    "name": value.name,
                    "original_name": value.original_name,
                    "comment": f"Deprecated: {value.deprecation_reason}" if value.deprecation_reason else None,
                }
                for value in enum_def.values
            ],
        }

    def _prepare_class_context(self, class_def: ClassDef) -> dict[str, Any]:
        fields = []
        for field in self._order_fields(class_def.fields):
            fields.append(
                {
                    "name": field.name,
                    "type": self.translate_type(field.type_ref),
                    "init": self._field_init(field),
                    "comment": self._comment(field),
                    "description": field.description,
                }
            )

        return {
            "CLASS_NAME": class_def.name,
            "KIND": class_def.kind.value,
            "EXTENDS": class_def.implements,
            "DESCRIPTION": _docstring(class_def.description),
            "FIELDS": fields,
        }

    def _prepare_union_context(self, union_def: UnionDef) -> dict[str, Any]:
        return {
            "UNION_NAME": union_def.name,
            "MEMBERS": union_def.members,
            "COMMENT": union_def.description.strip().splitlines() if union_def.description else [],
        }

    def _prepare_resolvers_context(self, class_def: ClassDef) -> dict[str, Any]:
        methods = []
        for field in class_def.fields:
            return_type = self.translate_type(field.type_ref)
            if class_def.root_operation is RootOperation.SUBSCRIPTION:
                self.python_imports.add(("collections.abc", "AsyncIterator"))
                return_type = f"AsyncIterator[{return_type}]"

            arguments = []
            for argument in field.arguments:
                init = None
                if argument.has_default:
                    init = self.format_default_value(argument.default_value, argument.type_ref)
                elif argument.type_ref.nullable:
                    init = "None"
                arguments.append({"name": argument.name, "type": self.translate_type(argument.type_ref), "init": init})

            methods.append(
                {
                    "name": field.name,
                    "arguments": arguments,
                    "return_type": return_type,
                    "description": _docstring(field.description),
                    "comment": self._comment(field),
                }
            )

        return {
            "CLASS_NAME": f"{class_def.name}Resolvers",
            "DESCRIPTION": _docstring(class_def.description),
            "METHODS": methods,
        }

    def _group_imports(self) -> list[str]:
        """Render imports: __future__ first, then one line per module."""
        modules: dict[str, set[str]] = {}
        for module, name in self.python_imports:
            modules.setdefault(module, set()).add(name)

        ordered = sorted(modules, key=lambda module: (module != "__future__", module))
        return [f"from {module} import {', '.join(sorted(modules[module]))}" for module in ordered]
