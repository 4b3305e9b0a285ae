"""
Shared utilities for async/await transformations.

Every rule that renames a call to its ``*Async`` variant goes through
``inject_await``: the call is wrapped in ``await`` once, and the nearest
enclosing function is queued on a PendingAsyncSet. After the rule's traversal
the set is flushed, so each function gets its ``async`` keyword exactly once no
matter how many calls inside it were awaited.
"""

import logging
from typing import Any, Dict, Iterator, Optional

from .patterns import function_label, is_function_literal
from .types import FUNCTION_KINDS, NodeKind, classify

logger = logging.getLogger(__name__)


def is_function_like(node: Any) -> bool:
    """Function declarations/expressions, arrows, methods, and object
    properties whose value is a function literal."""
    kind = classify(node)
    if kind in FUNCTION_KINDS:
        return True
    if kind is NodeKind.PROPERTY:
        return is_function_literal(node.child_by_field_name("value"))
    return False


def is_already_awaited(tree: Any, call: Any) -> bool:
    """Check if the call expression is already the operand of an await."""
    parent = tree.parent(call)
    while classify(parent) is NodeKind.PARENTHESIZED:
        parent = tree.parent(parent)
    return classify(parent) is NodeKind.AWAIT


def find_enclosing_function(tree: Any, node: Any) -> Optional[Any]:
    """Find the nearest function-like container, or None at top level."""
    for ancestor in tree.ancestors(node):
        if is_function_like(ancestor):
            return ancestor
    return None


def _async_target(fn: Any) -> Any:
    # Object properties carry the async keyword on their function value
    if classify(fn) is NodeKind.PROPERTY:
        return fn.child_by_field_name("value")
    return fn


def is_already_async(tree: Any, fn: Any) -> bool:
    """Check if a function is already async."""
    target = _async_target(fn)
    if target is None:
        return False
    return any(child.type == "async" for child in target.children)


def _is_accessor(fn: Any) -> bool:
    return any(child.type in ("get", "set") for child in fn.children)


def make_function_async(tree: Any, fn: Any) -> bool:
    """Set the async flag on a function. Returns False if nothing changed."""
    if is_already_async(tree, fn):
        return False

    target = _async_target(fn)
    if classify(target) is NodeKind.METHOD:
        if _is_accessor(target):
            line, _ = tree.position(target)
            logger.warning(f"Cannot make accessor {function_label(tree, target)} async (line {line})")
            return False
        # `static async *gen()`: the keyword goes after modifiers, before `*` and the name
        anchor = next((child for child in target.children if child.type == "*"), None)
        if anchor is None:
            anchor = target.child_by_field_name("name")
    else:
        anchor = target

    tree.insert_before(anchor, "async ", f"Made {function_label(tree, fn)} async")
    return True


def await_allowed(tree: Any, call: Any) -> bool:
    """False where `await` would be a syntax error: accessor bodies, class
    fields and static blocks, and parameter lists."""
    for ancestor in tree.ancestors(call):
        kind = classify(ancestor)
        if kind in (NodeKind.FIELD, NodeKind.PARAMETERS):
            where = "class field" if kind is NodeKind.FIELD else "parameter list"
            line, _ = tree.position(call)
            logger.warning(f"Cannot await {tree.node_text(call)} in a {where} (line {line})")
            return False
        if is_function_like(ancestor):
            target = _async_target(ancestor)
            if classify(target) is NodeKind.METHOD and _is_accessor(target):
                line, _ = tree.position(call)
                logger.warning(f"Cannot await {tree.node_text(call)} in accessor "
                               f"{function_label(tree, target)} (line {line})")
                return False
            return True
    return True


def _needs_parentheses(tree: Any, call: Any) -> bool:
    """`await a().b` would await `a().b`; the call has to be parenthesised.
    So does the base of `**`, which cannot be a unary expression."""
    parent = tree.parent(call)
    kind = classify(parent)
    if kind in (NodeKind.MEMBER, NodeKind.SUBSCRIPT):
        target = parent.child_by_field_name("object")
    elif kind is NodeKind.BINARY and tree.node_text(parent.child_by_field_name("operator")) == "**":
        target = parent.child_by_field_name("left")
    elif kind is NodeKind.CALL:
        target = parent.child_by_field_name("function")
    else:
        return False
    return target is not None and target.id == call.id


class PendingAsyncSet:
    """Functions waiting to be made async, keyed by node identity."""

    def __init__(self):
        self._functions: Dict[int, Any] = {}

    def add(self, fn: Any) -> None:
        self._functions.setdefault(fn.id, fn)

    def __contains__(self, fn: Any) -> bool:
        return fn.id in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._functions.values()))

    def flush(self, tree: Any) -> int:
        """Make every queued function async. Returns how many were changed."""
        changed = 0
        for fn in self:
            # Inside a lazy replacement the flag still renders if the
            # replacement re-renders the function; it just isn't reported
            if make_function_async(tree, fn) and not tree.is_detached(fn):
                changed += 1
        self._functions.clear()
        return changed


def propagate_async(tree: Any, node: Any, pending: PendingAsyncSet) -> Optional[Any]:
    """Queue the function enclosing `node` to be made async, if needed."""
    fn = find_enclosing_function(tree, node)
    if fn is not None and not is_already_async(tree, fn):
        pending.add(fn)
    return fn


def inject_await(tree: Any, call: Any, pending: PendingAsyncSet) -> bool:
    """Add await around a call and queue its containing function.

    Returns False when the call was already awaited.
    """
    if is_already_awaited(tree, call):
        return False

    if _needs_parentheses(tree, call):
        tree.wrap(call, "(await ", ")", "Added await")
    else:
        tree.insert_before(call, "await ", "Added await")

    propagate_async(tree, call, pending)
    return True
