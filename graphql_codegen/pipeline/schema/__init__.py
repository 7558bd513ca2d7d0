"""
Schema module.

Contains the schema context, its symbol table and the schema visitor protocol.
"""

from __future__ import annotations

from .context import SchemaContext, create_context, load_source_file, parse_source
from .type_info import SchemaTypeInfo
from .visitor import SchemaVisitor, get_visit_fn

__all__ = [
    "SchemaContext",
    "SchemaTypeInfo",
    "SchemaVisitor",
    "create_context",
    "get_visit_fn",
    "load_source_file",
    "parse_source",
]
