"""
meteor-codemod rewrite engine package.

This package provides the tree-sitter based machinery the rules share: the
edit overlay, await/async propagation, cursor tracking, callback
decomposition, the rule registry and the orchestrator.
"""

from .types import (
    Change, TransformResult, FileInfo, RuleMeta, Rule, RuleContext,
    LanguageAdapter, NodeKind, classify
)

from .errors import (
    CodemodError, UnknownRuleError, RuleExecutionError, ParseError
)

from .registry import Registry, build_default_registry

from .config import (
    EngineConfig, load_config, get_default_config, find_config_file
)

from .runner import Orchestrator

__all__ = [
    # Types
    "Change", "TransformResult", "FileInfo", "RuleMeta", "Rule", "RuleContext",
    "LanguageAdapter", "NodeKind", "classify",

    # Errors
    "CodemodError", "UnknownRuleError", "RuleExecutionError", "ParseError",

    # Registry
    "Registry", "build_default_registry",

    # Config
    "EngineConfig", "load_config", "get_default_config", "find_config_file",

    # Orchestrator
    "Orchestrator",
]
