"""Error Recovery Handler - classification, retry, and steering fallback.

This module provides:
- Classification of activation failures into fixed categories
- Bounded retries with exponential backoff (stamina)
- Degraded steering-only activation when retries are exhausted
- Role-conflict decisions for singleton roles
- Manual override options and their execution
- Error statistics

Resource exhaustion and permission denial are never auto-recovered; they
are reported with ``recovered=False`` and left to the caller.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
import time
from typing import Any
from uuid import uuid4

import stamina

from kiro_agents.agents.roles import display_name_for
from kiro_agents.config.models import ActivationConfig, RecoveryConfig, RoleConflictPolicy
from kiro_agents.core.errors import ActivationError, RoleConflictError, ValidationError
from kiro_agents.core.types import Result
from kiro_agents.observability.logging import get_logger

log = get_logger(__name__)


# =============================================================================
# Categories
# =============================================================================


class ErrorCategory(str, Enum):
    AGENT_NOT_FOUND = "agent-not-found"
    ACTIVATION_HANDLER_FAILED = "activation-handler-failed"
    RESOURCE_LOADING_FAILED = "resource-loading-failed"
    RESOURCE_EXHAUSTED = "resource-exhausted"
    ROLE_CONFLICT = "role-conflict"
    PERMISSION_DENIED = "permission-denied"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecoveryStrategy(str, Enum):
    NONE = "none"
    RETRY = "retry"
    STEERING_FALLBACK = "steering-fallback"
    CONFLICT_RESOLUTION = "conflict-resolution"


@dataclass(frozen=True, slots=True)
class CategoryProfile:
    """Fixed handling profile of an error category.

    ``message`` is formatted with ``agent_id``.
    """

    severity: Severity
    recoverable: bool
    fallback_available: bool
    message: str
    troubleshooting: tuple[str, ...]


_GENERIC_STEPS = (
    "Check the error logs for more details",
    "Verify the BMad Method installation",
    "Retry the activation",
    "Report the problem if it persists",
)

CATEGORY_PROFILES: dict[ErrorCategory, CategoryProfile] = {
    ErrorCategory.AGENT_NOT_FOUND: CategoryProfile(
        severity=Severity.HIGH,
        recoverable=False,
        fallback_available=True,
        message='Agent "{agent_id}" could not be found. It may not be installed or registered.',
        troubleshooting=(
            "Check that the BMad Method is installed",
            "Verify the agent exists under bmad-core/agents or an expansion pack",
            "Re-run the installation",
            "Check whether the agent belongs to an expansion pack that is not installed",
        ),
    ),
    ErrorCategory.ACTIVATION_HANDLER_FAILED: CategoryProfile(
        severity=Severity.HIGH,
        recoverable=True,
        fallback_available=True,
        message='Activation of agent "{agent_id}" failed. The definition may contain errors.',
        troubleshooting=(
            "Check the agent registry status",
            "Verify the agent file format and metadata",
            "Check for conflicting agent registrations",
        ),
    ),
    ErrorCategory.RESOURCE_LOADING_FAILED: CategoryProfile(
        severity=Severity.MEDIUM,
        recoverable=True,
        fallback_available=True,
        message=(
            'Could not load resources for agent "{agent_id}". '
            "Check file permissions and availability."
        ),
        troubleshooting=(
            "Check file permissions in the .kiro directory",
            "Verify disk space availability",
            "Check whether files are locked by another process",
        ),
    ),
    ErrorCategory.RESOURCE_EXHAUSTED: CategoryProfile(
        severity=Severity.HIGH,
        recoverable=False,
        fallback_available=False,
        message=(
            'Cannot activate agent "{agent_id}": the active agent limit is reached. '
            "Deactivate other agents first."
        ),
        troubleshooting=(
            "List the currently active agents",
            "Deactivate agents that are no longer needed",
            "Raise activation.max_concurrent_agents if the limit is too low",
        ),
    ),
    ErrorCategory.ROLE_CONFLICT: CategoryProfile(
        severity=Severity.MEDIUM,
        recoverable=True,
        fallback_available=True,
        message=(
            'Agent "{agent_id}" conflicts with another active agent. '
            "Only one agent of this role can be active."
        ),
        troubleshooting=(
            "Check which agents are currently active",
            "Deactivate the conflicting agent manually",
            "Review activation.singleton_roles",
            "Use the agents sequentially instead of simultaneously",
        ),
    ),
    ErrorCategory.PERMISSION_DENIED: CategoryProfile(
        severity=Severity.HIGH,
        recoverable=False,
        fallback_available=False,
        message=(
            'Permission denied when activating agent "{agent_id}". '
            "Check file and directory permissions."
        ),
        troubleshooting=(
            "Check permissions of the project and .kiro directories",
            "Check that the process user owns the state and steering files",
        ),
    ),
    ErrorCategory.UNKNOWN: CategoryProfile(
        severity=Severity.HIGH,
        recoverable=False,
        fallback_available=True,
        message='An unexpected error occurred while activating agent "{agent_id}".',
        troubleshooting=_GENERIC_STEPS,
    ),
}

# Substring rules applied to the lowercased error message, in order.
_MESSAGE_RULES: tuple[tuple[tuple[str, ...], ErrorCategory], ...] = (
    (("agent not found", "not found in registry"), ErrorCategory.AGENT_NOT_FOUND),
    (("permission", "access denied"), ErrorCategory.PERMISSION_DENIED),
    (("limit", "maximum", "exhausted"), ErrorCategory.RESOURCE_EXHAUSTED),
    (("conflict", "already active"), ErrorCategory.ROLE_CONFLICT),
    (("resource", "loading", "steering", "hook"), ErrorCategory.RESOURCE_LOADING_FAILED),
    (("handler", "activation", "timed out", "timeout"), ErrorCategory.ACTIVATION_HANDLER_FAILED),
)

_PHASE_RULES: dict[str, ErrorCategory] = {
    "lookup": ErrorCategory.AGENT_NOT_FOUND,
    "reservation": ErrorCategory.RESOURCE_EXHAUSTED,
    "conflict": ErrorCategory.ROLE_CONFLICT,
    "activation": ErrorCategory.ACTIVATION_HANDLER_FAILED,
    "resource-loading": ErrorCategory.RESOURCE_LOADING_FAILED,
}

_CATEGORY_CODES = frozenset(category.value for category in ErrorCategory)

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (ActivationError, OSError, TimeoutError)

FALLBACK_LIMITATIONS = (
    "Agent activated through steering system only",
    "Some native features may not be available",
    "Manual activation required for each session",
    "Limited integration with the agent registry",
)


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True, slots=True)
class ManualOverrideOption:
    id: str
    title: str
    description: str
    risk: RiskLevel
    action: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "risk": self.risk.value,
            "action": self.action,
        }


_OVERRIDES: dict[ErrorCategory, tuple[ManualOverrideOption, ...]] = {
    ErrorCategory.AGENT_NOT_FOUND: (
        ManualOverrideOption(
            "force-register",
            "Force Register Agent",
            "Register the agent definition again, bypassing validation",
            RiskLevel.MEDIUM,
            "force-register",
        ),
        ManualOverrideOption(
            "use-alternative",
            "Use Alternative Agent",
            "Suggest similar agents that are available",
            RiskLevel.LOW,
            "use-alternative",
        ),
    ),
    ErrorCategory.RESOURCE_LOADING_FAILED: (
        ManualOverrideOption(
            "skip-dependencies",
            "Skip Missing Dependencies",
            "Activate the agent without its missing dependencies",
            RiskLevel.MEDIUM,
            "skip-deps",
        ),
        ManualOverrideOption(
            "minimal-activation",
            "Minimal Activation",
            "Activate with core functionality only",
            RiskLevel.LOW,
            "minimal",
        ),
    ),
    ErrorCategory.ROLE_CONFLICT: (
        ManualOverrideOption(
            "force-deactivate",
            "Force Deactivate Conflicting Agent",
            "Deactivate the conflicting agent and proceed",
            RiskLevel.MEDIUM,
            "force-deactivate",
        ),
        ManualOverrideOption(
            "allow-multiple",
            "Allow Multiple Agents",
            "Skip role conflict detection until restart",
            RiskLevel.HIGH,
            "allow-multiple",
        ),
    ),
    ErrorCategory.RESOURCE_EXHAUSTED: (
        ManualOverrideOption(
            "increase-limits",
            "Increase Resource Limits",
            "Temporarily raise the active agent limit",
            RiskLevel.MEDIUM,
            "increase-limits",
        ),
        ManualOverrideOption(
            "deactivate-others",
            "Deactivate Other Agents",
            "Free slots by deactivating other agents",
            RiskLevel.HIGH,
            "deactivate-others",
        ),
    ),
}

_DEBUG_OVERRIDE = ManualOverrideOption(
    "debug-mode",
    "Enable Debug Mode",
    "Activate with detailed logging for troubleshooting",
    RiskLevel.LOW,
    "debug-mode",
)

STEERING_FALLBACK_OVERRIDE = ManualOverrideOption(
    "steering-fallback",
    "Use Steering Fallback",
    "Activate the agent through the steering system",
    RiskLevel.LOW,
    "steering-fallback",
)


def override_options_for(category: ErrorCategory) -> list[ManualOverrideOption]:
    """Manual override options offered for a category."""
    options = list(_OVERRIDES.get(category, (_DEBUG_OVERRIDE,)))
    options.append(STEERING_FALLBACK_OVERRIDE)
    return options


@dataclass(slots=True)
class ErrorContext:
    """Where and how an error happened.

    Attributes:
        agent_id: Agent being activated.
        phase: "lookup", "reservation", "conflict", "activation" or
            "resource-loading".
        agent_name: Display name, when known.
        expansion_pack: Pack of the agent, when known.
        operation: Zero-argument coroutine factory re-running the failed
            step; retried for recoverable categories.
        metadata: Extra details recorded on the report.
    """

    agent_id: str
    phase: str = "activation"
    agent_name: str | None = None
    expansion_pack: str | None = None
    operation: Callable[[], Awaitable[Any]] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FallbackActivation:
    """A steering-only activation written to disk."""

    agent_id: str
    steering_path: Path
    content: str
    limitations: tuple[str, ...] = FALLBACK_LIMITATIONS
    reason: str = "Native activation failed, using steering fallback"


@dataclass(slots=True)
class ErrorReport:
    """Everything known about one handled error."""

    error_id: str
    agent_id: str
    category: ErrorCategory
    severity: Severity
    recoverable: bool
    message: str
    error: str
    phase: str
    troubleshooting: list[str] = field(default_factory=list)
    options: list[ManualOverrideOption] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    recovered: bool = False
    strategy: RecoveryStrategy = RecoveryStrategy.NONE
    attempts: int = 0
    result: Any = None
    fallback: FallbackActivation | None = None
    overrides_applied: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_id": self.error_id,
            "agent_id": self.agent_id,
            "category": self.category.value,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "recovered": self.recovered,
            "strategy": self.strategy.value,
            "attempts": self.attempts,
            "message": self.message,
            "error": self.error,
            "phase": self.phase,
            "timestamp": self.timestamp.isoformat(),
            "troubleshooting": list(self.troubleshooting),
            "options": [o.to_dict() for o in self.options],
            "fallback": (
                {
                    "steering_path": str(self.fallback.steering_path),
                    "limitations": list(self.fallback.limitations),
                }
                if self.fallback
                else None
            ),
            "overrides_applied": list(self.overrides_applied),
            "details": dict(self.details),
        }


class ConflictAction(str, Enum):
    EVICT_EXISTING = "evict-existing"
    DOWNGRADE_NEWCOMER = "downgrade-newcomer"


@dataclass(frozen=True, slots=True)
class RoleConflictDecision:
    action: ConflictAction
    role: str
    agent_id: str
    holder_id: str
    report: ErrorReport

    @property
    def evicts(self) -> bool:
        return self.action == ConflictAction.EVICT_EXISTING


@dataclass(frozen=True, slots=True)
class OverrideOutcome:
    error_id: str
    option_id: str
    applied: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)


OverrideAction = Callable[[ErrorReport], Awaitable[dict[str, Any]]]


# =============================================================================
# Handler
# =============================================================================


def _new_error_id() -> str:
    return f"act_err_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def _fallback_steering_content(agent_id: str, expansion_pack: str | None) -> str:
    name = display_name_for(agent_id)
    generated = datetime.now(UTC).isoformat()
    domain = expansion_pack or "general development"
    limitations = "\n".join(f"- {item}" for item in FALLBACK_LIMITATIONS)
    return f"""---
inclusion: manual
---

# {name} - Fallback Activation

**Generated:** {generated}
**Reason:** Native activation failed, using steering fallback
**Agent ID:** {agent_id}

## Agent Context

You are the {name} from the BMad Method framework. This is a fallback
activation through the steering system because native activation failed.

## Capabilities

- Follow BMad Method principles and practices
- Use structured approaches to software development
- Collaborate with other BMad agents when available
- Apply domain-specific knowledge for {domain}

## Limitations

{limitations}

## Recovery

To restore native activation:
1. Check the agent registration
2. Verify all dependencies are available
3. Review the activation error log
"""


class ErrorRecoveryHandler:
    """Classifies activation errors and recovers from them where possible.

    Example:
        recovery = ErrorRecoveryHandler(project_root, RecoveryConfig(retry_delay=0.5))
        report = await recovery.handle_activation_error(
            ActivationHandlerError("boom", agent_id="dev"),
            ErrorContext("dev", operation=lambda: handler.activate(ctx)),
        )
    """

    def __init__(
        self,
        project_root: Path,
        config: RecoveryConfig | None = None,
        activation_config: ActivationConfig | None = None,
    ) -> None:
        self._root = Path(project_root)
        self._config = config or RecoveryConfig()
        self._activation_config = activation_config or ActivationConfig()
        self._history: dict[str, ErrorReport] = {}
        self._actions: dict[str, OverrideAction] = {}
        self._total = 0
        self._by_category: Counter[str] = Counter()
        self._by_agent: Counter[str] = Counter()
        self._recovered = 0
        self._fallback_used = 0
        self._manual_overrides = 0
        self._unrecoverable = 0

    @property
    def config(self) -> RecoveryConfig:
        return self._config

    @property
    def steering_dir(self) -> Path:
        return self._root / self._activation_config.steering_dir

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def classify(self, error: BaseException, context: ErrorContext | None = None) -> ErrorCategory:
        """Classify by error type, then message substrings, then phase."""
        if isinstance(error, ActivationError) and error.code in _CATEGORY_CODES:
            return ErrorCategory(error.code)
        if isinstance(error, PermissionError):
            return ErrorCategory.PERMISSION_DENIED
        if isinstance(error, TimeoutError):
            return ErrorCategory.ACTIVATION_HANDLER_FAILED

        message = str(error).lower()
        for needles, category in _MESSAGE_RULES:
            if any(needle in message for needle in needles):
                return category

        if context is not None and context.phase in _PHASE_RULES:
            return _PHASE_RULES[context.phase]
        return ErrorCategory.UNKNOWN

    def _new_report(
        self, error: BaseException, category: ErrorCategory, context: ErrorContext
    ) -> ErrorReport:
        profile = CATEGORY_PROFILES[category]
        return ErrorReport(
            error_id=_new_error_id(),
            agent_id=context.agent_id,
            category=category,
            severity=profile.severity,
            recoverable=profile.recoverable,
            message=profile.message.format(agent_id=context.agent_id),
            error=str(error),
            phase=context.phase,
            troubleshooting=list(profile.troubleshooting),
            details=dict(context.metadata),
        )

    # -------------------------------------------------------------------------
    # Recovery
    # -------------------------------------------------------------------------

    async def _retry(self, report: ErrorReport, operation: Callable[[], Awaitable[Any]]) -> None:
        attempts = 0

        @stamina.retry(
            on=RETRYABLE_ERRORS,
            attempts=self._config.max_retry_attempts,
            wait_initial=self._config.retry_delay,
            wait_max=self._config.max_retry_delay,
            wait_jitter=self._config.retry_jitter,
        )
        async def _again() -> Any:
            nonlocal attempts
            attempts += 1
            return await operation()

        report.strategy = RecoveryStrategy.RETRY
        try:
            report.result = await _again()
        except RETRYABLE_ERRORS as e:
            report.attempts = attempts
            report.details["last_error"] = str(e)
            log.warning(
                "recovery.retry.exhausted",
                error_id=report.error_id,
                agent_id=report.agent_id,
                attempts=attempts,
                error=str(e),
            )
            return

        report.attempts = attempts
        report.recovered = True
        log.info(
            "recovery.retry.succeeded",
            error_id=report.error_id,
            agent_id=report.agent_id,
            attempts=attempts,
        )

    async def handle_activation_error(
        self, error: BaseException, context: ErrorContext
    ) -> ErrorReport:
        """Classify an activation error and try to recover from it.

        Recoverable categories with an ``operation`` are retried; when that
        does not succeed, or the category only allows fallback, a steering
        fallback is written. Never raises for the error being handled.

        Returns:
            The error report; ``report.result`` holds the retried operation's
            value when a retry succeeded.
        """
        category = self.classify(error, context)
        profile = CATEGORY_PROFILES[category]
        report = self._new_report(error, category, context)

        if profile.recoverable and context.operation is not None:
            await self._retry(report, context.operation)

        if not report.recovered and profile.fallback_available and self._config.enable_fallback:
            fallback = await self.activate_with_steering_fallback(
                context.agent_id, expansion_pack=context.expansion_pack
            )
            if fallback is not None:
                report.fallback = fallback
                report.recovered = True
                report.strategy = RecoveryStrategy.STEERING_FALLBACK

        if not report.recovered or report.fallback is not None:
            report.options = override_options_for(category)

        self._record(report)
        event = "recovery.error.recovered" if report.recovered else "recovery.error.unrecovered"
        unrecovered_high = report.severity == Severity.HIGH and not report.recovered
        emit = log.error if unrecovered_high else log.warning
        emit(
            event,
            error_id=report.error_id,
            agent_id=report.agent_id,
            category=category.value,
            phase=context.phase,
            strategy=report.strategy.value,
            attempts=report.attempts,
            error=report.error,
        )
        return report

    async def activate_with_steering_fallback(
        self, agent_id: str, *, expansion_pack: str | None = None
    ) -> FallbackActivation | None:
        """Write (once) and read back the fallback steering document.

        Returns:
            The fallback activation, or None when the document cannot be
            written or read.
        """
        path = self.steering_dir / f"{agent_id}-fallback.md"

        def _write_and_read() -> str:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                content = _fallback_steering_content(agent_id, expansion_pack)
                path.write_text(content, encoding="utf-8")
            return path.read_text(encoding="utf-8")

        try:
            content = await asyncio.to_thread(_write_and_read)
        except OSError as e:
            log.warning(
                "recovery.fallback.failed",
                agent_id=agent_id,
                path=str(path),
                error=str(e),
            )
            return None

        self._fallback_used += 1
        log.info("recovery.fallback.activated", agent_id=agent_id, path=str(path))
        return FallbackActivation(agent_id=agent_id, steering_path=path, content=content)

    def resolve_role_conflict(
        self,
        *,
        agent_id: str,
        holder_id: str,
        role: str,
        newcomer_score: float,
        holder_score: float,
        policy: RoleConflictPolicy | None = None,
    ) -> RoleConflictDecision:
        """Decide a singleton-role collision between a newcomer and the holder.

        Under EVICT the holder always yields. Under PREFER_SPECIFIC the holder
        yields only to a strictly more specific newcomer; otherwise the
        newcomer is downgraded to a steering-only activation.
        """
        policy = policy or self._activation_config.role_conflict_policy
        if policy == RoleConflictPolicy.EVICT or newcomer_score > holder_score:
            action = ConflictAction.EVICT_EXISTING
        else:
            action = ConflictAction.DOWNGRADE_NEWCOMER

        context = ErrorContext(
            agent_id,
            phase="conflict",
            metadata={
                "role": role,
                "holder_id": holder_id,
                "newcomer_score": round(newcomer_score, 3),
                "holder_score": round(holder_score, 3),
                "policy": policy.value,
                "action": action.value,
            },
        )
        error = RoleConflictError(
            f"Role '{role}' is already held by active agent '{holder_id}'",
            agent_id=agent_id,
            role=role,
            holder_id=holder_id,
        )
        report = self._new_report(error, ErrorCategory.ROLE_CONFLICT, context)
        report.recovered = True
        report.strategy = RecoveryStrategy.CONFLICT_RESOLUTION
        report.options = override_options_for(ErrorCategory.ROLE_CONFLICT)
        self._record(report)

        log.warning(
            "recovery.role_conflict.resolved",
            error_id=report.error_id,
            agent_id=agent_id,
            holder_id=holder_id,
            role=role,
            action=action.value,
            policy=policy.value,
        )
        return RoleConflictDecision(action, role, agent_id, holder_id, report)

    # -------------------------------------------------------------------------
    # Manual overrides
    # -------------------------------------------------------------------------

    def register_override_action(self, option_id: str, action: OverrideAction) -> None:
        """Register the coroutine that carries out a manual override option."""
        self._actions[option_id] = action

    async def execute_manual_override(
        self, error_id: str, option_id: str
    ) -> Result[OverrideOutcome, ValidationError]:
        report = self._history.get(error_id)
        if report is None:
            return Result.err(
                ValidationError(f"Unknown error id: {error_id}", field="error_id", value=error_id)
            )
        if option_id not in {o.id for o in report.options}:
            return Result.err(
                ValidationError(
                    f"Option '{option_id}' is not available for {error_id}",
                    field="option_id",
                    value=option_id,
                )
            )

        if option_id == STEERING_FALLBACK_OVERRIDE.id:
            fallback = await self.activate_with_steering_fallback(report.agent_id)
            outcome = OverrideOutcome(
                error_id,
                option_id,
                applied=fallback is not None,
                message="Steering fallback activated" if fallback else "Steering fallback failed",
                details={"steering_path": str(fallback.steering_path)} if fallback else {},
            )
        elif option_id in self._actions:
            details = await self._actions[option_id](report)
            outcome = OverrideOutcome(
                error_id, option_id, True, f"Override {option_id} applied", details
            )
        else:
            outcome = OverrideOutcome(
                error_id,
                option_id,
                applied=False,
                message=f"No action registered for {option_id}; apply it manually",
            )

        if outcome.applied:
            self._manual_overrides += 1
            report.overrides_applied.append(option_id)
        log.info(
            "recovery.override.executed",
            error_id=error_id,
            option_id=option_id,
            applied=outcome.applied,
        )
        return Result.ok(outcome)

    # -------------------------------------------------------------------------
    # History and statistics
    # -------------------------------------------------------------------------

    def _record(self, report: ErrorReport) -> None:
        self._history[report.error_id] = report
        while len(self._history) > self._config.max_error_history:
            self._history.pop(next(iter(self._history)))

        self._total += 1
        self._by_category[report.category.value] += 1
        self._by_agent[report.agent_id] += 1
        if report.recovered:
            self._recovered += 1
        else:
            self._unrecoverable += 1

    def get_report(self, error_id: str) -> ErrorReport | None:
        return self._history.get(error_id)

    def get_error_history(self, limit: int | None = None) -> list[ErrorReport]:
        """Handled errors, newest first."""
        reports = list(reversed(self._history.values()))
        return reports[:limit] if limit is not None else reports

    def clear_error_history(self) -> None:
        self._history.clear()
        log.info("recovery.history.cleared")

    def get_error_stats(self) -> dict[str, Any]:
        total = self._total
        return {
            "total": total,
            "by_category": dict(self._by_category),
            "by_agent": dict(self._by_agent),
            "recovered": self._recovered,
            "fallback_used": self._fallback_used,
            "manual_overrides": self._manual_overrides,
            "unrecoverable": self._unrecoverable,
            "recovery_rate": self._recovered / total if total else 0.0,
            "fallback_rate": self._fallback_used / total if total else 0.0,
        }


__all__ = [
    "CATEGORY_PROFILES",
    "FALLBACK_LIMITATIONS",
    "ConflictAction",
    "ErrorCategory",
    "ErrorContext",
    "ErrorRecoveryHandler",
    "ErrorReport",
    "FallbackActivation",
    "ManualOverrideOption",
    "OverrideOutcome",
    "RecoveryStrategy",
    "RiskLevel",
    "RoleConflictDecision",
    "Severity",
    "override_options_for",
]
