"""
Collection methods that became async in Meteor 3.

    const doc = Links.findOne({ _id: id });
    Links.insert({ url });

becomes

    const doc = await Links.findOneAsync({ _id: id });
    await Links.insertAsync({ url });

The receiver is not checked: any ``x.findOne(...)`` is treated as a
collection call.
"""

from ..engine.types import RuleMeta
from .base import RenameAwaitRule


class AsyncApiRule(RenameAwaitRule):
    """Rename findOne/insert/update/upsert/remove to their *Async forms."""

    meta = RuleMeta(
        id="async-api",
        description="Convert collection findOne/insert/update/upsert/remove calls to awaited *Async calls",
        category="collections",
    )

    default_methods = {
        "findOne": "findOneAsync",
        "insert": "insertAsync",
        "update": "updateAsync",
        "upsert": "upsertAsync",
        "remove": "removeAsync",
    }


# Register rule
rule = AsyncApiRule()
RULES = [rule]
