"""
Tracks which identifiers hold Mongo cursors.

``Users.find()`` returns a lazy cursor, and ``count``/``fetch``/``forEach``/
``map`` on it must become their async variants. The same method names on
ordinary arrays must not. The tracker runs in two phases:

1. ``collect`` records every identifier bound (by declaration or plain
   assignment) to a query call.
2. ``permits`` gates a rewrite on the receiver: a query call passes, an
   identifier passes only if it was recorded, anything else is refused.

Both phases are structural. Names are tracked per file, without scoping.
"""

import logging
import re
from typing import Any, Iterable, Set

from .patterns import call_member, is_function_literal
from .types import NodeKind, classify

logger = logging.getLogger(__name__)

DEFAULT_QUERY_METHODS = ("find", "findOne")

# Marks a callback body that already uses async APIs
ASYNC_MARKER = re.compile(r"\bawait\b|\b\w+Async\s*\(")


class CursorFlowTracker:
    """Per-pass set of identifiers bound to lazy query handles."""

    def __init__(self, tree: Any, query_methods: Iterable[str] = DEFAULT_QUERY_METHODS):
        self.tree = tree
        self.query_methods = frozenset(query_methods)
        self.names: Set[str] = set()

    def is_query_call(self, node: Any) -> bool:
        """``X.find(...)`` / ``X.findOne(...)``."""
        parts = call_member(node)
        if parts is None:
            return False
        return self.tree.node_text(parts[1]) in self.query_methods

    def collect(self) -> Set[str]:
        """Phase one: record identifiers bound to query calls."""
        for node in self.tree.walk():
            kind = classify(node)
            if kind is NodeKind.VARIABLE_DECLARATOR:
                target = node.child_by_field_name("name")
                value = node.child_by_field_name("value")
            elif kind is NodeKind.ASSIGNMENT:
                target = node.child_by_field_name("left")
                value = node.child_by_field_name("right")
            else:
                continue

            if classify(target) is NodeKind.IDENTIFIER and self.is_query_call(value):
                self.names.add(self.tree.node_text(target))

        if self.names:
            logger.debug(f"Cursor variables: {sorted(self.names)}")
        return self.names

    def permits(self, receiver: Any) -> bool:
        """Phase two: may a cursor method on this receiver be rewritten?"""
        if self.is_query_call(receiver):
            return True
        if classify(receiver) is NodeKind.IDENTIFIER:
            return self.tree.node_text(receiver) in self.names
        return False


def callback_uses_async(tree: Any, callback: Any) -> bool:
    """Does the callback's own body show await or an ``*Async(`` call?

    Only the immediate callback is considered; callbacks nested further in are
    never promoted by this check.
    """
    body = callback.child_by_field_name("body")
    if body is None:
        return False
    return ASYNC_MARKER.search(tree.render(body)) is not None


def first_function_argument(args: Iterable[Any]) -> Any:
    """The first function literal among call arguments, or None."""
    for arg in args:
        if is_function_literal(arg):
            return arg
    return None
