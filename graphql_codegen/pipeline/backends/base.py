"""
Base class for code generation backends.

Defines the interface that all language-specific backends must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import jinja2

from ...utils import snake_to_pascal_case
from ..analyzer.ir_nodes import IR, FieldDef, TypeRef
from ..config import GenerateOptions

TEMPLATE_ROOT = Path(__file__).parent.parent.parent / "templates"


class CodeBackend(ABC):
    """Abstract base class for code generation backends."""

    # Type mapping from GraphQL built-in scalars to language types
    TYPE_MAP: dict[str, str] = {}

    # Template directory name
    TEMPLATE_LANG: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    def __init__(self, options: GenerateOptions | None = None):
        """
        Initialize the backend.

        Args:
            options: Code generation options
        """
        self.options = options or GenerateOptions()
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATE_ROOT / self.TEMPLATE_LANG)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=False,
        )
        self.jinja_env.filters["snake_to_pascal"] = snake_to_pascal_case

    def get_template(self, name: str) -> jinja2.Template:
        return self.jinja_env.get_template(f"{name}.{self.FILE_EXTENSION}.jinja2")

    @abstractmethod
    def generate(self, ir: IR) -> str:
        """
        Generate code from IR.

        Args:
            ir: The intermediate representation

        Returns:
            Generated code as a string
        """

    @abstractmethod
    def translate_type(self, type_ref: TypeRef) -> str:
        """
        Translate a resolved field type to a language-specific type string.

        Args:
            type_ref: The type reference

        Returns:
            Language-specific type string
        """

    @abstractmethod
    def format_default_value(self, value: Any, type_ref: TypeRef) -> str:
        """
        Format a default value for the target language.

        Args:
            value: The default value (as produced by value_from_ast_untyped)
            type_ref: The type of the value

        Returns:
            Formatted default value string
        """

    def _get_comment_prefix(self) -> str:
        return "#" if self.TEMPLATE_LANG == "python" else "//"

    def header_lines(self) -> list[str]:
        prefix = self._get_comment_prefix()
        return [f"{prefix} {line}".rstrip() for line in self.options.header_comment.splitlines()]

    def _order_fields(self, fields: list[FieldDef]) -> list[FieldDef]:
        """
        Order fields so that required fields come before optional ones.

        A field is optional when it is nullable or has a default value.
        """
        required_fields = []
        optional_fields = []

        for field in fields:
            if field.has_default or (field.type_ref is not None and field.type_ref.nullable):
                optional_fields.append(field)
            else:
                required_fields.append(field)

        return required_fields + optional_fields
