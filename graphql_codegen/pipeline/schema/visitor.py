"""
Schema visitors.

A schema visitor is either an object exposing `enter_<kind>` / `leave_<kind>`
methods (or generic `enter` / `leave`), or a mapping from node kind to a
callable or to an {"enter": ..., "leave": ...} mapping. Kinds are the
graphql-core node kinds, e.g. "object_type_definition".

Every callback receives `(node, type_info)`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from graphql.language import Node, Visitor
from graphql.language.visitor import BREAK, REMOVE, SKIP

from .type_info import SchemaTypeInfo

SchemaVisitFn = Callable[[Node, SchemaTypeInfo], Any]


class SchemaVisitor:
    """Optional base class for schema visitors.

    Subclasses define `enter_<kind>` / `leave_<kind>` methods for the node
    kinds they are interested in.
    """


def get_visit_fn(visitor: Any, kind: str, is_leaving: bool) -> SchemaVisitFn | None:
    """
    Look up the callback of `visitor` for a node kind.

    Args:
        visitor: Visitor object or mapping
        kind: graphql-core node kind
        is_leaving: Whether the node is being left

    Returns:
        The callback, or None if the visitor has none for this kind
    """
    action = "leave" if is_leaving else "enter"

    if isinstance(visitor, Mapping):
        kind_visitor = visitor.get(kind)
        if kind_visitor is not None:
            if callable(kind_visitor):
                return None if is_leaving else kind_visitor
            return kind_visitor.get(action)
        generic = visitor.get(action)
        if isinstance(generic, Mapping):
            return generic.get(kind)
        return generic

    fn = getattr(visitor, f"{action}_{kind}", None)
    if fn is None:
        fn = getattr(visitor, action, None)
    return fn if callable(fn) else None


class TypeInfoVisitor(Visitor):
    """Drives a schema visitor while keeping a SchemaTypeInfo in sync."""

    def __init__(self, type_info: SchemaTypeInfo, visitor: Any, root: Node | None = None):
        super().__init__()
        self.type_info = type_info
        self.visitor = visitor
        # Wrapper node the traversal starts from, invisible to the visitor
        self.root = root

    def enter(self, node, *_args):
        if node is self.root:
            return None
        type_info = self.type_info
        type_info.enter(node)

        fn = get_visit_fn(self.visitor, node.kind, is_leaving=False)
        result = fn(node, type_info) if fn is not None else None

        if result is None:
            type_info._parent_stack.append(node)
        elif result is BREAK or result is True:
            type_info.leave(node)
        elif result is SKIP or result is False or result is REMOVE:
            # The subtree is not visited so its leave callback never runs
            type_info.leave(node)
        elif isinstance(result, Node):
            type_info.leave(node)
            type_info.enter(result)
            type_info._parent_stack.append(result)
        return result

    def leave(self, node, *_args):
        if node is self.root:
            return None
        fn = get_visit_fn(self.visitor, node.kind, is_leaving=True)
        result = fn(node, self.type_info) if fn is not None else None

        self.type_info.leave(node)
        if self.type_info._parent_stack:
            self.type_info._parent_stack.pop()
        return result
