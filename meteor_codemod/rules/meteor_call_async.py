"""
Meteor.call -> await Meteor.callAsync.

A trailing ``(error, result)`` callback is folded into a try/catch around the
awaited call (see ``engine.callbacks``). Any other trailing callback is kept
as an argument; those sites are reported by the callback-to-await rule.

Options:
    decompose_callbacks: set to False to only rename and await (default True)
    indent: indentation unit for the synthesized try/catch (default two spaces)
"""

from typing import Any

from ..engine.async_utils import inject_await, propagate_async
from ..engine.callbacks import CallbackDecomposer, match_callback
from ..engine.types import RuleContext, RuleMeta
from .base import RenameAwaitRule


class MeteorCallAsyncRule(RenameAwaitRule):

    meta = RuleMeta(
        id="meteor-call-async",
        description="Convert Meteor.call() to await Meteor.callAsync(), unfolding error-first callbacks",
        category="meteor",
    )

    default_methods = {"call": "callAsync"}
    receiver = "Meteor"

    def rewrite(self, node: Any, ctx: RuleContext) -> None:
        self.rename(node, ctx)

        shape = match_callback(ctx.tree, node)
        if shape is not None and ctx.option("decompose_callbacks", True):
            decomposer = CallbackDecomposer(ctx.tree, ctx.option("indent", "  "))
            if decomposer.decompose(node, shape):
                propagate_async(ctx.tree, node, ctx.pending)
                return

        inject_await(ctx.tree, node, ctx.pending)


# Register rule
rule = MeteorCallAsyncRule()
RULES = [rule]
