"""Agent activation: lifecycle management, recovery, and monitoring."""

from kiro_agents.activation.manager import ActivationManager
from kiro_agents.activation.models import (
    ActivationMethod,
    ActivationResult,
    ActivationStatistics,
    ActivationStatus,
    ActiveAgentInstance,
    AgentLifecycleState,
    Session,
)
from kiro_agents.activation.monitor import ActivationMonitor
from kiro_agents.activation.recovery import (
    CATEGORY_PROFILES,
    FALLBACK_LIMITATIONS,
    ErrorCategory,
    ErrorContext,
    ErrorRecoveryHandler,
    ErrorReport,
    FallbackActivation,
    ManualOverrideOption,
    OverrideOutcome,
    RecoveryStrategy,
    RoleConflictDecision,
)

__all__ = [
    "CATEGORY_PROFILES",
    "FALLBACK_LIMITATIONS",
    "ActivationManager",
    "ActivationMethod",
    "ActivationMonitor",
    "ActivationResult",
    "ActivationStatistics",
    "ActivationStatus",
    "ActiveAgentInstance",
    "AgentLifecycleState",
    "ErrorCategory",
    "ErrorContext",
    "ErrorRecoveryHandler",
    "ErrorReport",
    "FallbackActivation",
    "ManualOverrideOption",
    "OverrideOutcome",
    "RecoveryStrategy",
    "RoleConflictDecision",
    "Session",
]
