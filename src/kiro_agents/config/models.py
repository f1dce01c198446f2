"""Pydantic models for kiro-agents configuration.

Classes:
    RegistryConfig: Definition store layout and registration retries
    DependencyConfig: Resource search layout and suggestions
    ActivationConfig: Ceiling, timeouts, singleton roles, state file
    RecoveryConfig: Retry/backoff and fallback behavior
    KiroAgentsConfig: Top-level configuration combining all sections
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from kiro_agents.observability.logging import LoggingConfig


class RoleConflictPolicy(str, Enum):
    """How a singleton-role collision is resolved.

    EVICT: the active holder is always deactivated in favor of the newcomer.
    PREFER_SPECIFIC: the more specific agent wins; a less specific newcomer
        is downgraded to an untracked steering-only activation.
    """

    EVICT = "evict"
    PREFER_SPECIFIC = "prefer-specific"


class RegistryConfig(BaseModel, frozen=True):
    """Definition store layout.

    Attributes:
        core_dir: Directory holding the base agent set.
        expansion_dir: Directory holding expansion packs.
        agents_subdir: Subdirectory of each set containing agent documents.
        file_pattern: Glob for agent documents.
        registration_attempts: Attempts for a failing document read.
        registration_wait_initial: First backoff delay in seconds.
        registration_wait_max: Maximum backoff delay in seconds.
    """

    core_dir: str = "bmad-core"
    expansion_dir: str = "expansion-packs"
    agents_subdir: str = "agents"
    file_pattern: str = "*.md"
    registration_attempts: int = Field(default=3, ge=1, le=10)
    registration_wait_initial: float = Field(default=0.1, ge=0.0)
    registration_wait_max: float = Field(default=2.0, ge=0.0)


class DependencyConfig(BaseModel, frozen=True):
    """Resource lookup layout for the dependency resolver.

    Attributes:
        common_dir: Shared namespace searched after the agent's own namespace.
        extensions: Default file extension per category.
        alternative_prefixes: Prefixes tried when a name does not resolve.
        max_suggestions: Maximum suggestions reported per missing resource.
        suggestion_cutoff: Minimum similarity for a suggestion.
    """

    common_dir: str = "common"
    extensions: dict[str, str] = Field(
        default_factory=lambda: {
            "tasks": ".md",
            "templates": ".yaml",
            "checklists": ".md",
            "data": ".md",
            "utils": ".md",
        }
    )
    alternative_prefixes: list[str] = Field(default_factory=lambda: ["bmad-", "common-"])
    max_suggestions: int = Field(default=5, ge=0)
    suggestion_cutoff: float = Field(default=0.3, ge=0.0, le=1.0)


class ActivationConfig(BaseModel, frozen=True):
    """Activation manager settings.

    Attributes:
        max_concurrent_agents: Hard ceiling on active agents.
        session_timeout: Seconds of inactivity before a session is evicted.
        cleanup_interval: Seconds between expired-session sweeps.
        activation_timeout: Upper bound in seconds for one activation attempt.
        singleton_roles: Roles that may have at most one active agent.
        role_conflict_policy: How singleton-role collisions are resolved.
        state_file: State file path, relative to the project root.
        steering_dir: Steering documents directory, relative to the project root.
        hooks_dir: Hook descriptors directory, relative to the project root.
    """

    max_concurrent_agents: int = Field(default=10, ge=1)
    session_timeout: float = Field(default=30 * 60, gt=0)
    cleanup_interval: float = Field(default=60.0, gt=0)
    activation_timeout: float = Field(default=30.0, gt=0)
    singleton_roles: list[str] = Field(default_factory=lambda: ["architect", "pm", "po"])
    role_conflict_policy: RoleConflictPolicy = RoleConflictPolicy.PREFER_SPECIFIC
    state_file: str = ".kiro/agent-state.json"
    steering_dir: str = ".kiro/steering"
    hooks_dir: str = ".kiro/hooks"

    @field_validator("singleton_roles")
    @classmethod
    def normalize_roles(cls, v: list[str]) -> list[str]:
        """Lowercase and deduplicate role names, keeping order."""
        seen: list[str] = []
        for role in v:
            role = role.strip().lower()
            if role and role not in seen:
                seen.append(role)
        return seen


class RecoveryConfig(BaseModel, frozen=True):
    """Error recovery settings.

    Attributes:
        max_retry_attempts: Attempts for a recoverable failure before fallback.
        retry_delay: First backoff delay in seconds.
        max_retry_delay: Maximum backoff delay in seconds.
        retry_jitter: Maximum random jitter added to each delay.
        enable_fallback: Whether exhausted retries degrade to steering fallback.
        max_error_history: Number of handled errors retained for statistics.
    """

    max_retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_delay: float = Field(default=1.0, ge=0.0)
    max_retry_delay: float = Field(default=30.0, ge=0.0)
    retry_jitter: float = Field(default=0.5, ge=0.0)
    enable_fallback: bool = True
    max_error_history: int = Field(default=1000, ge=1)


class KiroAgentsConfig(BaseModel, frozen=True):
    """Top-level kiro-agents configuration."""

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    dependencies: DependencyConfig = Field(default_factory=DependencyConfig)
    activation: ActivationConfig = Field(default_factory=ActivationConfig)
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_config() -> KiroAgentsConfig:
    return KiroAgentsConfig()


def get_config_dir() -> Path:
    """Get the user-level configuration directory (~/.kiro-agents/)."""
    return Path.home() / ".kiro-agents"
