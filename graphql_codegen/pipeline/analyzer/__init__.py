"""
Analyzer module.

Contains the resolved field type model and IR building.
"""

from __future__ import annotations

from .analyzer import SchemaAnalyzer
from .ir_nodes import (
    IR,
    ArgumentDef,
    ClassDef,
    ClassKind,
    EnumDef,
    EnumValueDef,
    FieldDef,
    RootOperation,
    TypeKind,
    TypeRef,
    UnionDef,
    resolve_type_ref,
)

__all__ = [
    "ArgumentDef",
    "ClassDef",
    "ClassKind",
    "EnumDef",
    "EnumValueDef",
    "FieldDef",
    "IR",
    "RootOperation",
    "SchemaAnalyzer",
    "TypeKind",
    "TypeRef",
    "UnionDef",
    "resolve_type_ref",
]
