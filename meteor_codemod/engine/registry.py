"""
Registry for rewrite rules.

A Registry is an ordinary value: build one (usually with
``build_default_registry``) and hand it to the Orchestrator. Registration
order is the order rules run in.
"""

import fnmatch
import importlib
import logging
import pkgutil
from typing import Dict, Iterable, List, Optional

from .errors import UnknownRuleError
from .types import Rule

logger = logging.getLogger(__name__)


class Registry:
    """Ordered collection of rules, indexed by id."""

    def __init__(self):
        self._rules: List[Rule] = []
        self._rule_index: Dict[str, Rule] = {}  # id -> rule

    def register_rule(self, rule: Rule) -> None:
        """Register a rule. A second rule with the same id is ignored."""
        if rule.meta.id in self._rule_index:
            logger.debug(f"Rule {rule.meta.id} already registered")
            return

        self._rules.append(rule)
        self._rule_index[rule.meta.id] = rule

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by id."""
        return self._rule_index.get(rule_id)

    def require(self, rule_id: str) -> Rule:
        """Get rule by id, raising UnknownRuleError if it is not registered."""
        rule = self._rule_index.get(rule_id)
        if rule is None:
            raise UnknownRuleError(rule_id)
        return rule

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules in registration order."""
        return self._rules.copy()

    def get_rule_ids(self) -> List[str]:
        """Get all registered rule IDs."""
        return list(self._rule_index.keys())

    def get_enabled_rules(self, enabled_patterns: List[str],
                          disabled: Iterable[str] = ()) -> List[Rule]:
        """Get rules matching any of the patterns, minus disabled ids.

        "*" enables every rule. Registration order is kept.
        """
        if not enabled_patterns:
            return []

        disabled = set(disabled)
        enabled_rules = []
        for rule in self._rules:
            if rule.meta.id in disabled:
                continue
            for pattern in enabled_patterns:
                if fnmatch.fnmatch(rule.meta.id, pattern):
                    enabled_rules.append(rule)
                    break  # Don't add the same rule multiple times

        return enabled_rules

    def discover_rules(self, entry_packages: List[str]) -> int:
        """
        Register rules exported as ``RULES`` lists from packages.

        Args:
            entry_packages: Package or module names to import

        Returns:
            Number of rules discovered and registered
        """
        initial_count = len(self._rules)

        for package_name in entry_packages:
            try:
                package = importlib.import_module(package_name)
            except ImportError as e:
                logger.warning(f"Could not import rule package {package_name}: {e}")
                continue

            self._extract_rules_from_module(package)
            if hasattr(package, '__path__'):
                for _, modname, _ in pkgutil.walk_packages(package.__path__, package.__name__ + "."):
                    try:
                        module = importlib.import_module(modname)
                    except ImportError as e:
                        logger.warning(f"Failed to import {modname}: {e}")
                        continue
                    self._extract_rules_from_module(module)

        return len(self._rules) - initial_count

    def _extract_rules_from_module(self, module) -> None:
        """Register everything in a module's RULES list."""
        rules = getattr(module, 'RULES', None)
        if not isinstance(rules, list):
            return
        for rule in rules:
            # If it's a class, instantiate it
            self.register_rule(rule() if isinstance(rule, type) else rule)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rule_index


def build_default_registry(plugins: Iterable[str] = ()) -> Registry:
    """Registry holding the built-in rules, then any plugin packages."""
    from ..rules import ALL_RULES

    registry = Registry()
    for rule in ALL_RULES:
        registry.register_rule(rule)

    plugins = list(plugins)
    if plugins:
        count = registry.discover_rules(plugins)
        logger.info(f"Discovered {count} plugin rules from {plugins}")
    return registry
