"""
Schema context.

Merges parsed GraphQL documents into one schema and drives schema visitors
over the merged document while building the SchemaTypeInfo symbol table.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from graphql import GraphQLError, GraphQLSchema, build_ast_schema, concat_ast, parse, validate_schema
from graphql.language import DocumentNode, Source, visit
from graphql.validation import UniqueFieldDefinitionNamesRule
from graphql.validation.specified_rules import specified_sdl_rules
from graphql.validation.validate import validate_sdl

from ...errors import SchemaValidationError
from .type_info import SchemaTypeInfo
from .visitor import TypeInfoVisitor

logger = logging.getLogger(__name__)

# Duplicate fields are reported by the traversal as DuplicateFieldError
SDL_RULES = tuple(rule for rule in specified_sdl_rules if rule is not UniqueFieldDefinitionNamesRule)


class SchemaContext:
    """A merged schema document plus its symbol table."""

    def __init__(self, documents: DocumentNode | Sequence[DocumentNode]):
        """
        Merge and build the schema.

        The SDL is validated before building, except for duplicate fields
        which are left to the traversal. Semantic schema validation is left
        to `validate`.

        Args:
            documents: One or more parsed schema documents

        Raises:
            SchemaValidationError: With every SDL validation message, if the
                document is invalid
        """
        if isinstance(documents, DocumentNode):
            self.document = documents
        else:
            self.document = concat_ast(list(documents))

        sdl_errors = validate_sdl(self.document, rules=SDL_RULES)
        if sdl_errors:
            raise SchemaValidationError([str(error) for error in sdl_errors])

        self.schema: GraphQLSchema = build_ast_schema(self.document, assume_valid_sdl=True)
        self.type_info = SchemaTypeInfo(self.document, self.schema)
        self._visiting = False

    def validate(self) -> list[GraphQLError]:
        return list(validate_schema(self.schema))

    def visit_schema(self, visitor: Any) -> SchemaTypeInfo:
        """
        Traverse every top-level definition with `visitor`.

        The symbol table is rebuilt during the traversal; callbacks only see
        state up to and including their own node.

        Args:
            visitor: A schema visitor (see visitor.py)

        Returns:
            The populated symbol table

        Raises:
            SchemaStructureError: On duplicate fields or orphaned field / enum value nodes
            RuntimeError: If the context is already being traversed
        """
        if self._visiting:
            raise RuntimeError("Schema context is already being traversed")

        self._visiting = True
        self.type_info = SchemaTypeInfo(self.document, self.schema)
        try:
            for definition in self.document.definitions:
                wrapper = DocumentNode(definitions=(definition,))
                try:
                    visit(wrapper, TypeInfoVisitor(self.type_info, visitor, root=wrapper))
                finally:
                    self.type_info.reset_traversal()
        finally:
            self._visiting = False

        logger.debug(
            "Visited %d definitions, %d fields",
            len(self.document.definitions),
            len(self.type_info.field_definitions),
        )
        return self.type_info


def parse_source(text: str, name: str = "GraphQL request") -> DocumentNode:
    """Parse GraphQL SDL text, raising GraphQLError on syntax errors."""
    return parse(Source(text, name))


def load_source_file(source_path: str | Path) -> DocumentNode:
    """Read and parse a GraphQL schema file."""
    path = Path(source_path)
    return parse_source(path.read_text(encoding="utf-8"), str(path))


def create_context(documents: DocumentNode | Sequence[DocumentNode]) -> SchemaContext:
    """
    Build and validate a schema context.

    Raises:
        SchemaValidationError: With every validation message, if the schema is invalid
    """
    context = SchemaContext(documents)

    errors = context.validate()
    if errors:
        raise SchemaValidationError([str(error) for error in errors])

    return context
