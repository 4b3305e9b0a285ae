"""Meteor.user() -> await Meteor.userAsync()."""

from ..engine.types import RuleMeta
from .base import RenameAwaitRule


class MeteorUserAsyncRule(RenameAwaitRule):

    meta = RuleMeta(
        id="meteor-user-async",
        description="Convert Meteor.user() to await Meteor.userAsync()",
        category="meteor",
    )

    default_methods = {"user": "userAsync"}
    receiver = "Meteor"


# Register rule
rule = MeteorUserAsyncRule()
RULES = [rule]
