"""
Call-site shape helpers shared by the rules.

These read the callee/receiver/arguments of a call expression through the
NodeKind union so the rules never probe tree-sitter fields directly.
"""

from typing import Any, List, Optional, Tuple

from .types import FUNCTION_LITERAL_KINDS, NodeKind, classify


def named_children(node: Any) -> List[Any]:
    """Named children of a node, without comments."""
    if node is None:
        return []
    return [child for child in node.named_children if classify(child) is not NodeKind.COMMENT]


def call_member(call: Any) -> Optional[Tuple[Any, Any]]:
    """Return (receiver, property) for ``receiver.property(...)`` calls.

    Computed access (``obj[name]()``) is a SUBSCRIPT callee and never matches.
    """
    if classify(call) is not NodeKind.CALL:
        return None
    callee = call.child_by_field_name("function")
    if classify(callee) is not NodeKind.MEMBER:
        return None
    receiver = callee.child_by_field_name("object")
    prop = callee.child_by_field_name("property")
    if receiver is None or classify(prop) is not NodeKind.PROPERTY_NAME:
        return None
    return receiver, prop


def method_name(tree: Any, call: Any) -> Optional[str]:
    """Name of the method invoked by a member call, or None."""
    parts = call_member(call)
    if parts is None:
        return None
    return tree.node_text(parts[1])


def receiver_name(tree: Any, call: Any) -> Optional[str]:
    """Identifier the method is invoked on (``Meteor`` in ``Meteor.call()``)."""
    parts = call_member(call)
    if parts is None or classify(parts[0]) is not NodeKind.IDENTIFIER:
        return None
    return tree.node_text(parts[0])


def call_arguments(call: Any) -> List[Any]:
    """Argument expressions of a call."""
    return named_children(call.child_by_field_name("arguments"))


def is_function_literal(node: Any) -> bool:
    return classify(node) in FUNCTION_LITERAL_KINDS


def function_parameters(fn: Any) -> List[Any]:
    """Parameter nodes of a function literal (``x => ...`` included)."""
    single = fn.child_by_field_name("parameter")
    if single is not None:
        return [single]
    return named_children(fn.child_by_field_name("parameters"))


def parameter_name(tree: Any, param: Any) -> Optional[str]:
    """Name of a plain parameter; None for patterns, defaults and rest params."""
    if classify(param) is NodeKind.IDENTIFIER:
        return tree.node_text(param)
    # TypeScript wraps every parameter, possibly with a type annotation
    if param.type == "required_parameter" and param.child_by_field_name("value") is None:
        pattern = param.child_by_field_name("pattern")
        if classify(pattern) is NodeKind.IDENTIFIER:
            return tree.node_text(pattern)
    return None


def function_label(tree: Any, fn: Any) -> str:
    """Short human-readable name for a function-like node."""
    name = fn.child_by_field_name("name")
    if name is None:
        name = fn.child_by_field_name("key")
    if name is not None:
        return tree.node_text(name)
    return "anonymous function"
