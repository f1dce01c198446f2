"""kiro-agents core module - shared types, errors, and text helpers."""

from kiro_agents.core.errors import (
    ActivationError,
    ActivationHandlerError,
    ActivationTimeoutError,
    AgentNotFoundError,
    ConfigError,
    DefinitionStoreError,
    KiroAgentsError,
    PermissionDeniedError,
    PersistenceError,
    RegistrationError,
    ResourceExhaustedError,
    ResourceLoadingError,
    RoleConflictError,
    ValidationError,
)
from kiro_agents.core.text import normalize_agent_id, title_case_id
from kiro_agents.core.types import ActivationContext, DependencyMap, Result

__all__ = [
    # Types
    "ActivationContext",
    "DependencyMap",
    "Result",
    # Errors
    "ActivationError",
    "ActivationHandlerError",
    "ActivationTimeoutError",
    "AgentNotFoundError",
    "ConfigError",
    "DefinitionStoreError",
    "KiroAgentsError",
    "PermissionDeniedError",
    "PersistenceError",
    "RegistrationError",
    "ResourceExhaustedError",
    "ResourceLoadingError",
    "RoleConflictError",
    "ValidationError",
    # Text
    "normalize_agent_id",
    "title_case_id",
]
