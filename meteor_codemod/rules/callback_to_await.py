"""
Reports error-first callbacks the other rules could not convert.

This rule never edits: any call still passing an ``(err, result)`` callback
after the other rules ran is logged as a warning so it can be migrated by
hand.
"""

import logging
from typing import Any

from ..engine.callbacks import match_callback
from ..engine.types import NodeKind, RuleContext, RuleMeta, classify
from .base import RewriteRule

logger = logging.getLogger(__name__)


class CallbackToAwaitRule(RewriteRule):

    meta = RuleMeta(
        id="callback-to-await",
        description="Report remaining (err, result) callbacks that need manual conversion to await",
        category="callbacks",
    )

    def matches(self, node: Any, ctx: RuleContext) -> bool:
        return classify(node) is NodeKind.CALL and match_callback(ctx.tree, node) is not None

    def rewrite(self, node: Any, ctx: RuleContext) -> None:
        line, column = ctx.tree.position(node)
        callee = ctx.tree.node_text(node.child_by_field_name("function"))
        logger.warning(f"{ctx.file_path}:{line}:{column}: {callee}() still takes an error-first callback; "
                       f"convert it to await by hand")


# Register rule
rule = CallbackToAwaitRule()
RULES = [rule]
