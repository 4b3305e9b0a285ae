"""
Cursor methods that became async in Meteor 3.

Only receivers known to be cursors are rewritten: a query call itself
(``Links.find().fetch()``) or an identifier bound to one
(``const links = Links.find(); links.count()``). The same method names on
arrays are left alone.

When ``map``/``forEach`` is rewritten, its callback is made async as well if
its body already awaits something or calls an ``*Async`` function.
"""

from typing import Any

from ..engine.async_utils import is_already_async
from ..engine.cursor_flow import DEFAULT_QUERY_METHODS, CursorFlowTracker, callback_uses_async, first_function_argument
from ..engine.patterns import call_arguments, call_member
from ..engine.types import RuleContext, RuleMeta
from .base import RenameAwaitRule

# Cursor methods whose callback may need to become async
ITERATING_METHODS = ("map", "forEach")


class CursorAsyncRule(RenameAwaitRule):
    """Rename count/fetch/forEach/map on cursors to their *Async forms."""

    meta = RuleMeta(
        id="cursor-async",
        description="Convert cursor count/fetch/forEach/map calls to awaited *Async calls",
        category="cursors",
    )

    default_methods = {
        "count": "countAsync",
        "fetch": "fetchAsync",
        "forEach": "forEachAsync",
        "map": "mapAsync",
    }

    def prepare(self, ctx: RuleContext) -> None:
        ctx.cursors = CursorFlowTracker(ctx.tree, ctx.option("query_methods", DEFAULT_QUERY_METHODS))
        ctx.cursors.collect()

    def accepts_receiver(self, receiver: Any, ctx: RuleContext) -> bool:
        return ctx.cursors.permits(receiver)

    def finish(self, ctx: RuleContext) -> None:
        # Callback bodies are inspected after the traversal so that calls
        # rewritten inside them count
        for node in ctx.tree.walk():
            if not self.is_candidate(node, ctx):
                continue
            _, prop = call_member(node)
            if not ctx.tree.is_replaced(prop) or ctx.tree.node_text(prop) not in ITERATING_METHODS:
                continue
            callback = first_function_argument(call_arguments(node))
            if callback is not None and not is_already_async(ctx.tree, callback) \
                    and callback_uses_async(ctx.tree, callback):
                ctx.pending.add(callback)
        super().finish(ctx)


# Register rule
rule = CursorAsyncRule()
RULES = [rule]
