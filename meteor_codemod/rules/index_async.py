"""
Index creation on collections.

``Collection._ensureIndex`` is gone in Meteor 3; the replacement is the
awaited ``createIndexAsync`` with the same arguments.
"""

from ..engine.types import RuleMeta
from .base import RenameAwaitRule


class IndexAsyncRule(RenameAwaitRule):
    """Rename _ensureIndex to createIndexAsync and await it."""

    meta = RuleMeta(
        id="index-async",
        description="Convert _ensureIndex() to await createIndexAsync()",
        category="collections",
    )

    default_methods = {"_ensureIndex": "createIndexAsync"}


# Register rule
rule = IndexAsyncRule()
RULES = [rule]
