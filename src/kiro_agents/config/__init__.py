"""Configuration module for kiro-agents.

Configuration lives in <project>/.kiro/kiro-agents.yaml or
~/.kiro-agents/config.yaml; defaults apply when neither exists.

Usage:
    from kiro_agents.config import load_config

    config = load_config(project_root=Path("."))
    ceiling = config.activation.max_concurrent_agents
"""

from kiro_agents.config.loader import create_default_config, find_config_file, load_config
from kiro_agents.config.models import (
    ActivationConfig,
    DependencyConfig,
    KiroAgentsConfig,
    RecoveryConfig,
    RegistryConfig,
    RoleConflictPolicy,
    get_config_dir,
    get_default_config,
)

__all__ = [
    "ActivationConfig",
    "DependencyConfig",
    "KiroAgentsConfig",
    "RecoveryConfig",
    "RegistryConfig",
    "RoleConflictPolicy",
    "create_default_config",
    "find_config_file",
    "get_config_dir",
    "get_default_config",
    "load_config",
]
