"""
alanning:roles -> the core roles package.

Meteor 3 ships roles in core as ``meteor/roles`` with async methods:

    import { Roles } from 'meteor/alanning:roles';
    if (Roles.userIsInRole(userId, 'admin')) { ... }

becomes

    import { Roles } from 'meteor/roles';
    if (await Roles.userIsInRoleAsync(userId, 'admin')) { ... }

Both ``import`` declarations and ``require()`` calls are migrated.
"""

from typing import Any, Optional

from ..engine.patterns import call_arguments
from ..engine.types import NodeKind, RuleContext, RuleMeta, classify
from .base import RenameAwaitRule, async_name

OLD_PACKAGE = "meteor/alanning:roles"
NEW_PACKAGE = "meteor/roles"

ROLES_METHODS = (
    "createRole",
    "deleteRole",
    "renameRole",
    "addRolesToParent",
    "removeRolesFromParent",
    "addUsersToRoles",
    "removeUsersFromRoles",
    "setUserRoles",
    "userIsInRole",
    "getRolesForUser",
    "getUsersInRole",
    "getAllRoles",
    "isParentOf",
    "getScopesForUser",
)


def _string_fragment(node: Any) -> Optional[Any]:
    """The raw contents of a string literal (without quotes)."""
    if classify(node) is not NodeKind.STRING:
        return None
    for child in node.named_children:
        if child.type == "string_fragment":
            return child
    return None


class RolesMigrationRule(RenameAwaitRule):
    """Move Roles calls to the async API and imports to meteor/roles."""

    meta = RuleMeta(
        id="roles-migration",
        description="Migrate alanning:roles imports to meteor/roles and Roles.* calls to awaited *Async calls",
        category="packages",
    )

    default_methods = {name: async_name(name) for name in ROLES_METHODS}
    receiver = "Roles"

    def _package_source(self, node: Any, ctx: RuleContext) -> Optional[Any]:
        """String fragment naming the old package, for imports and require()."""
        kind = classify(node)
        if kind is NodeKind.IMPORT:
            source = node.child_by_field_name("source")
        elif kind is NodeKind.CALL and ctx.tree.node_text(node.child_by_field_name("function")) == "require":
            args = call_arguments(node)
            source = args[0] if len(args) == 1 else None
        else:
            return None

        fragment = _string_fragment(source)
        if fragment is not None and ctx.tree.node_text(fragment) == OLD_PACKAGE:
            return fragment
        return None

    def matches(self, node: Any, ctx: RuleContext) -> bool:
        return self._package_source(node, ctx) is not None or super().matches(node, ctx)

    def rewrite(self, node: Any, ctx: RuleContext) -> None:
        fragment = self._package_source(node, ctx)
        if fragment is not None:
            ctx.tree.replace(fragment, NEW_PACKAGE, f"Changed {OLD_PACKAGE} to {NEW_PACKAGE}")
            return
        super().rewrite(node, ctx)


# Register rule
rule = RolesMigrationRule()
RULES = [rule]
