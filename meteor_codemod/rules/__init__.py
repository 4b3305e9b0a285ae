"""
meteor-codemod rules package.

Each module defines one rewrite rule and exports it in a ``RULES`` list.
``ALL_RULES`` is the built-in catalogue in the order the rules run: the
collection and cursor rules first, so the later rules see their awaits, and
the advisory callback report last.

To add a rule in your own package:
1. Subclass ``RewriteRule`` (or ``RenameAwaitRule`` for a plain rename)
2. Export ``RULES = [MyRule()]`` from the module
3. List the package under ``plugins`` in .meteor-codemod.yml
"""

from .async_api import rule as async_api
from .callback_to_await import rule as callback_to_await
from .cursor_async import rule as cursor_async
from .fastrender_async import rule as fastrender_async
from .index_async import rule as index_async
from .meteor_call_async import rule as meteor_call_async
from .meteor_user_async import rule as meteor_user_async
from .roles_migration import rule as roles_migration

ALL_RULES = [
    async_api,
    cursor_async,
    meteor_call_async,
    meteor_user_async,
    index_async,
    fastrender_async,
    roles_migration,
    callback_to_await,
]

__all__ = ["ALL_RULES"]
