"""
Configuration management for the meteor-codemod engine.

This module provides configuration loading with sensible defaults for which
rules run and the options each rule receives.
"""

import copy
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_NAMES = [".meteor-codemod.yml", ".meteor-codemod.yaml", "meteor-codemod.yml", "meteor-codemod.yaml"]


@dataclass
class EngineConfig:
    """Configuration for the meteor-codemod engine."""

    # Rule id patterns (fnmatch); "*" enables everything
    enabled_rules: List[str]

    # rule_id -> False switches a rule off even if a pattern enables it
    transforms: Dict[str, bool] = None

    # Rule-specific options, passed to the rule untouched
    rule_configs: Dict[str, Dict[str, Any]] = None

    # Extra packages to discover RULES lists from
    plugins: List[str] = None

    verbose: bool = False

    def __post_init__(self):
        if self.transforms is None:
            object.__setattr__(self, 'transforms', {})
        if self.rule_configs is None:
            object.__setattr__(self, 'rule_configs', {})
        if self.plugins is None:
            object.__setattr__(self, 'plugins', [])

    def disabled_rules(self) -> List[str]:
        """Rule ids explicitly switched off under ``transforms``."""
        return [rule_id for rule_id, enabled in self.transforms.items() if enabled is False]

    def options_for(self, rule_id: str) -> Dict[str, Any]:
        """Options for one rule (empty if none are configured)."""
        return dict(self.rule_configs.get(rule_id) or {})


def _defaults() -> Dict[str, Any]:
    return {
        "enabled_rules": ["*"],
        "transforms": {},
        "rule_configs": {
            "meteor-call-async": {
                "decompose_callbacks": True,
                "indent": "  ",
            },
            "cursor-async": {
                "query_methods": ["find", "findOne"],
            },
        },
        "plugins": [],
        "verbose": False,
    }


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        EngineConfig instance
    """
    defaults = _defaults()

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}
            if not isinstance(file_config, dict):
                raise ValueError("top level must be a mapping")

            # Merge with defaults
            merged_config = copy.deepcopy(defaults)
            merged_config.update({key: value for key, value in file_config.items() if key in defaults})

            unknown = sorted(set(file_config) - set(defaults))
            if unknown:
                logger.warning(f"Ignoring unknown config keys in {config_path}: {unknown}")

            # Deep merge rule configs
            if "rule_configs" in file_config:
                merged_config["rule_configs"] = copy.deepcopy(defaults["rule_configs"])
                for rule_id, rule_config in (file_config["rule_configs"] or {}).items():
                    if rule_id in merged_config["rule_configs"]:
                        merged_config["rule_configs"][rule_id].update(rule_config or {})
                    else:
                        merged_config["rule_configs"][rule_id] = rule_config or {}

            if isinstance(merged_config["enabled_rules"], str):
                merged_config["enabled_rules"] = [merged_config["enabled_rules"]]
            for key in ("transforms", "plugins"):
                if merged_config[key] is None:
                    merged_config[key] = defaults[key]

            return EngineConfig(**merged_config)

        except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            logger.warning("Using default configuration.")

    return EngineConfig(**defaults)


def get_default_config() -> EngineConfig:
    """Get default configuration without loading from file."""
    return load_config(None)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for files in this order:
    1. .meteor-codemod.yml
    2. .meteor-codemod.yaml
    3. meteor-codemod.yml
    4. meteor-codemod.yaml

    Args:
        start_path: Directory (or file) to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)
    if os.path.isfile(current_path):
        current_path = os.path.dirname(current_path)

    while True:
        for config_name in CONFIG_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            # Reached the root directory
            break
        current_path = parent_path

    return None
