"""
Base class for the rewrite rules.

A rule walks the tree once, rewriting every node it ``matches``, then
flushes the functions queued for ``async``. Subclasses override ``matches``
and ``rewrite`` and, when needed, the ``prepare``/``finish`` hooks.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from ..engine.async_utils import PendingAsyncSet, await_allowed, inject_await
from ..engine.patterns import call_member
from ..engine.source_tree import make_context
from ..engine.types import FileInfo, LanguageAdapter, NodeKind, RuleContext, RuleMeta, classify

logger = logging.getLogger(__name__)

MethodOption = Union[Iterable[str], Mapping[str, str]]


def async_name(name: str) -> str:
    return f"{name}Async"


def method_map(defaults: Mapping[str, str], extra: Optional[MethodOption]) -> Dict[str, str]:
    """Merge configured method names over the defaults.

    A list of names maps each to its ``*Async`` variant; a mapping is taken
    as-is.
    """
    methods = dict(defaults)
    if not extra:
        return methods
    if isinstance(extra, Mapping):
        methods.update(extra)
    else:
        methods.update((name, async_name(name)) for name in extra)
    return methods


class RewriteRule:
    """Traversal skeleton shared by every rule."""

    meta: RuleMeta

    def prepare(self, ctx: RuleContext) -> None:
        """Hook run before the traversal."""

    def matches(self, node: Any, ctx: RuleContext) -> bool:
        return False

    def rewrite(self, node: Any, ctx: RuleContext) -> None:
        pass

    def finish(self, ctx: RuleContext) -> None:
        """Hook run after the traversal; makes queued functions async."""
        promoted = ctx.pending.flush(ctx.tree)
        if promoted:
            logger.debug(f"{self.meta.id}: made {promoted} functions async in {ctx.file_path}")

    def visit(self, ctx: RuleContext) -> Optional[str]:
        logger.debug(f"{self.meta.id}: visiting {ctx.file_path} ({ctx.language})")
        ctx.pending = PendingAsyncSet()
        self.prepare(ctx)

        # Nodes are never invalidated by edits, so a snapshot walk is safe
        for node in list(ctx.tree.walk()):
            if self.matches(node, ctx):
                self.rewrite(node, ctx)

        self.finish(ctx)
        if not ctx.tree.has_edits:
            return None
        return ctx.tree.to_source()

    def transform(self, file: FileInfo, adapter: LanguageAdapter,
                  options: Optional[Dict[str, Any]] = None) -> Optional[str]:
        return self.visit(make_context(file, adapter, options))


class RenameAwaitRule(RewriteRule):
    """Renames ``receiver.method(...)`` to its async variant and awaits it.

    Subclasses set ``default_methods`` and may restrict the receiver with
    ``receiver``; ``methods`` in the rule options extends the table.
    """

    default_methods: Mapping[str, str] = {}
    receiver: Optional[str] = None

    def methods(self, ctx: RuleContext) -> Dict[str, str]:
        return method_map(self.default_methods, ctx.option("methods"))

    def accepts_receiver(self, receiver: Any, ctx: RuleContext) -> bool:
        if self.receiver is None:
            return True
        return classify(receiver) is NodeKind.IDENTIFIER and ctx.tree.node_text(receiver) == self.receiver

    def is_candidate(self, node: Any, ctx: RuleContext) -> bool:
        """A call to one of the mapped methods on an accepted receiver."""
        parts = call_member(node)
        if parts is None:
            return False
        receiver, prop = parts
        return ctx.tree.node_text(prop) in self.methods(ctx) and self.accepts_receiver(receiver, ctx)

    def matches(self, node: Any, ctx: RuleContext) -> bool:
        # Calls where `await` is illegal are left on the sync API
        return self.is_candidate(node, ctx) and await_allowed(ctx.tree, node)

    def rename(self, node: Any, ctx: RuleContext) -> str:
        """Swap the method name for its async variant; returns the new name."""
        _, prop = call_member(node)
        old_name = ctx.tree.node_text(prop)
        new_name = self.methods(ctx)[old_name]
        ctx.tree.replace(prop, new_name, f"Renamed {old_name} to {new_name}")
        return new_name

    def rewrite(self, node: Any, ctx: RuleContext) -> None:
        self.rename(node, ctx)
        inject_await(ctx.tree, node, ctx.pending)
