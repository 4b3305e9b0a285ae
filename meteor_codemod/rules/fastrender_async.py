"""
FastRender route handlers.

Inside any ``FastRender.*(...)`` call, ``this.subscribe(...)`` returns a
promise in Meteor 3 and is awaited. The handler passed to
``FastRender.onAllRoutes`` is made async even when it awaits nothing yet.
"""

from typing import Any

from ..engine.async_utils import await_allowed, inject_await, is_already_async
from ..engine.patterns import call_arguments, call_member, is_function_literal, method_name, receiver_name
from ..engine.types import NodeKind, RuleContext, RuleMeta, classify
from .base import RewriteRule

NAMESPACE = "FastRender"


class FastRenderAsyncRule(RewriteRule):
    """Await this.subscribe() in FastRender handlers."""

    meta = RuleMeta(
        id="fastrender-async",
        description="Await this.subscribe() inside FastRender handlers and make onAllRoutes handlers async",
        category="fastrender",
    )

    def _is_subscribe(self, node: Any, ctx: RuleContext) -> bool:
        parts = call_member(node)
        if parts is None:
            return False
        receiver, prop = parts
        return classify(receiver) is NodeKind.THIS and ctx.tree.node_text(prop) == "subscribe"

    def _is_on_all_routes(self, node: Any, ctx: RuleContext) -> bool:
        return receiver_name(ctx.tree, node) == NAMESPACE and method_name(ctx.tree, node) == "onAllRoutes"

    def _inside_fastrender(self, node: Any, ctx: RuleContext) -> bool:
        return any(receiver_name(ctx.tree, ancestor) == NAMESPACE for ancestor in ctx.tree.ancestors(node))

    def matches(self, node: Any, ctx: RuleContext) -> bool:
        if self._is_on_all_routes(node, ctx):
            return True
        return (self._is_subscribe(node, ctx) and self._inside_fastrender(node, ctx)
                and await_allowed(ctx.tree, node))

    def rewrite(self, node: Any, ctx: RuleContext) -> None:
        if self._is_subscribe(node, ctx):
            inject_await(ctx.tree, node, ctx.pending)
            return

        args = call_arguments(node)
        if args and is_function_literal(args[0]) and not is_already_async(ctx.tree, args[0]):
            ctx.pending.add(args[0])


# Register rule
rule = FastRenderAsyncRule()
RULES = [rule]
