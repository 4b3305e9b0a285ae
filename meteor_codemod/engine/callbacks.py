"""
Turns error-first callbacks into awaited calls inside try/catch.

    Meteor.call('m', p, function (error, result) {
      if (error) { handleErr(error); } else { handleOk(result); }
    });

becomes

    try {
      const result = await Meteor.callAsync('m', p);
      handleOk(result);
    } catch (error) {
      handleErr(error);
    }

Only the strict ``(err|error, result|data|res)`` shape on a call that is a
statement of its own is decomposed. Anything else is left for the caller to
rename and await with the callback still attached.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from .patterns import call_arguments, function_parameters, is_function_literal, named_children, parameter_name
from .types import NodeKind, classify

logger = logging.getLogger(__name__)

ERROR_PARAM = re.compile(r"^err(or)?$", re.IGNORECASE)
RESULT_PARAM = re.compile(r"^(result|data|res)$", re.IGNORECASE)


@dataclass(frozen=True)
class CallbackShape:
    """A matched ``(error, result)`` callback."""
    callback: Any
    error_name: str
    result_name: str


def match_callback(tree: Any, call: Any) -> Optional[CallbackShape]:
    """Return the callback shape if the call's last argument fits it."""
    args = call_arguments(call)
    if not args or not is_function_literal(args[-1]):
        return None

    callback = args[-1]
    params = function_parameters(callback)
    if len(params) != 2:
        return None

    error_name, result_name = (parameter_name(tree, param) for param in params)
    if error_name is None or result_name is None:
        return None
    if not ERROR_PARAM.match(error_name) or not RESULT_PARAM.match(result_name):
        return None
    return CallbackShape(callback, error_name, result_name)


def _reindent(text: str, width: int, indent: str, newline: str = "\n") -> str:
    """Re-indent a rendered statement whose source line was indented by `width`.

    The first line starts at the statement itself; continuation lines lose up
    to `width` characters of leading whitespace.
    """
    lines = text.split(newline)
    out = [indent + lines[0]]
    for line in lines[1:]:
        if not line.strip():
            out.append("")
            continue
        leading = len(line) - len(line.lstrip(" \t"))
        out.append(indent + line[min(leading, width):])
    return newline.join(out)


class CallbackDecomposer:
    """Builds the try/catch replacement for a matched callback call."""

    def __init__(self, tree: Any, indent_unit: str = "  "):
        self.tree = tree
        self.indent_unit = indent_unit

    def statement_of(self, call: Any) -> Optional[Any]:
        """The expression statement whose whole expression is the call."""
        parent = self.tree.parent(call)
        if classify(parent) is NodeKind.EXPRESSION_STATEMENT:
            return parent
        return None

    def decompose(self, call: Any, shape: CallbackShape) -> bool:
        """Replace the call's statement with a try/catch.

        The replacement is rendered lazily so renames recorded anywhere in the
        pass (including inside the callback body) are picked up.
        """
        statement = self.statement_of(call)
        if statement is None:
            line, _ = self.tree.position(call)
            logger.debug(f"Callback at line {line} is not a bare statement; keeping it")
            return False

        self.tree.replace(
            statement,
            lambda: self._build(statement, call, shape),
            f"Converted ({shape.error_name}, {shape.result_name}) callback to try/catch",
        )
        return True

    def _build(self, statement: Any, call: Any, shape: CallbackShape) -> str:
        tree = self.tree
        base = tree.line_indent(statement)
        inner = base + self.indent_unit

        callee = tree.render(call.child_by_field_name("function"))
        args = ", ".join(tree.render(arg) for arg in call_arguments(call)[:-1])
        try_lines = [f"{inner}const {shape.result_name} = await {callee}({args});"]
        catch_lines: List[str] = []

        body = shape.callback.child_by_field_name("body")
        if classify(body) is not NodeKind.BLOCK:
            # Expression-bodied arrow: the expression is the only statement
            try_lines.append(_reindent(tree.render(body), len(tree.line_indent(body)), inner, tree.newline) + ";")
        else:
            for stmt in body.named_children:
                if self._is_error_check(stmt, shape.error_name):
                    catch_lines.extend(self._branch(stmt.child_by_field_name("consequence"), inner))
                    alternative = stmt.child_by_field_name("alternative")
                    if alternative is not None:
                        try_lines.extend(self._branch(alternative, inner))
                else:
                    try_lines.append(self._format(stmt, inner))

        lines = ["try {"]
        lines.extend(try_lines)
        lines.append(f"{base}}} catch ({shape.error_name}) {{")
        lines.extend(catch_lines)
        lines.append(f"{base}}}")
        return tree.newline.join(lines)

    def _is_error_check(self, stmt: Any, error_name: str) -> bool:
        """``if (error) ...`` with the bare error parameter as the test."""
        if classify(stmt) is not NodeKind.IF:
            return False
        condition = stmt.child_by_field_name("condition")
        inner = named_children(condition)
        if classify(condition) is not NodeKind.PARENTHESIZED or len(inner) != 1:
            return False
        return classify(inner[0]) is NodeKind.IDENTIFIER and self.tree.node_text(inner[0]) == error_name

    def _branch(self, node: Any, indent: str) -> List[str]:
        """Statements of an if/else branch, formatted at `indent`."""
        if classify(node) is NodeKind.ELSE:
            node = named_children(node)[-1]
        if classify(node) is NodeKind.BLOCK:
            return [self._format(stmt, indent) for stmt in node.named_children]
        return [self._format(node, indent)]

    def _format(self, stmt: Any, indent: str) -> str:
        return _reindent(self.tree.render(stmt), len(self.tree.line_indent(stmt)), indent, self.tree.newline)
