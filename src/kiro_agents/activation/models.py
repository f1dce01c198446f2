"""Activation data models.

- AgentLifecycleState: per-id state machine
- ActiveAgentInstance: a live agent owned by the activation manager
- Session: last-activity index used for timeout eviction
- ActivationResult: what every activation call returns
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from kiro_agents.agents.handlers import ActivationPayload
from kiro_agents.core.types import ActivationContext
from kiro_agents.resources.base import AgentResources

if TYPE_CHECKING:
    from kiro_agents.activation.recovery import ErrorReport


class AgentLifecycleState(str, Enum):
    """Inactive -> Activating -> Active -> Deactivating -> Inactive.

    FALLBACK is reached from ACTIVATING when the agent runs degraded.
    """

    INACTIVE = "inactive"
    ACTIVATING = "activating"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"
    FALLBACK = "fallback"


class ActivationStatus(str, Enum):
    ACTIVE = "active"
    DEGRADED = "degraded"
    FAILED = "failed"


class ActivationMethod(str, Enum):
    NATIVE = "native"
    STEERING_FALLBACK = "steering-fallback"


@dataclass(slots=True)
class ActiveAgentInstance:
    """A live agent.

    Attributes:
        id: Agent id.
        name: Display name.
        activated_at: Activation time.
        context: Caller-supplied context, merged with recovery metadata when
            the instance is degraded.
        resources: Steering, hooks and file-context bindings.
        source: Source label ("bmad-core", "expansion-pack:<pack>", "unknown").
        role: Derived role.
        payload: What the activation handler returned, if it succeeded.
        limitations: Reduced capabilities of a degraded instance.
        activation_method: How the agent was brought up.
        tracked: False for steering-only instances that hold no slot.
    """

    id: str
    name: str
    activated_at: datetime
    context: ActivationContext = field(default_factory=dict)
    resources: AgentResources = field(default_factory=AgentResources)
    source: str = "unknown"
    role: str = "general"
    payload: ActivationPayload | None = None
    limitations: list[str] = field(default_factory=list)
    activation_method: ActivationMethod = ActivationMethod.NATIVE
    tracked: bool = True

    @property
    def is_degraded(self) -> bool:
        return bool(self.limitations) or self.activation_method != ActivationMethod.NATIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "activated_at": self.activated_at.isoformat(),
            "source": self.source,
            "role": self.role,
            "activation_method": self.activation_method.value,
            "limitations": list(self.limitations),
            "tracked": self.tracked,
            "steering": self.resources.steering is not None,
            "hooks": [hook.name for hook in self.resources.hooks],
            "file_context": [binding.provider for binding in self.resources.file_context],
        }


@dataclass(slots=True)
class Session:
    """Last-activity record of one active agent; times are epoch seconds."""

    agent_id: str
    created_at: float
    last_activity: float

    def touch(self, now: float) -> None:
        self.last_activity = now

    def expires_at(self, timeout: float) -> float:
        return self.last_activity + timeout

    def is_expired(self, now: float, timeout: float) -> bool:
        return now - self.last_activity > timeout

    def to_dict(self, timeout: float) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "created_at": datetime.fromtimestamp(self.created_at, UTC).isoformat(),
            "last_activity": datetime.fromtimestamp(self.last_activity, UTC).isoformat(),
            "expires_at": datetime.fromtimestamp(self.expires_at(timeout), UTC).isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """Create a Session from its persisted form.

        Raises:
            KeyError: If ``agent_id`` is missing.
            ValueError: If a timestamp is malformed.
        """
        created = datetime.fromisoformat(data["created_at"]).timestamp()
        last = (
            datetime.fromisoformat(data["last_activity"]).timestamp()
            if data.get("last_activity")
            else created
        )
        return cls(agent_id=data["agent_id"], created_at=created, last_activity=last)


@dataclass(frozen=True, slots=True)
class ActivationResult:
    """Outcome of one activation call; callers never need to catch.

    Attributes:
        agent_id: Requested agent id (normalized).
        status: ACTIVE, DEGRADED, or FAILED.
        instance: The live instance, None when FAILED.
        report: Recovery report when anything went wrong.
        reused: True when the agent was already active.
    """

    agent_id: str
    status: ActivationStatus
    instance: ActiveAgentInstance | None = None
    report: ErrorReport | None = None
    reused: bool = False

    @property
    def ok(self) -> bool:
        return self.status != ActivationStatus.FAILED

    @property
    def category(self) -> str | None:
        return self.report.category.value if self.report else None

    @property
    def recovered(self) -> bool:
        return self.report.recovered if self.report else False

    @property
    def limitations(self) -> list[str]:
        return list(self.instance.limitations) if self.instance else []

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "status": self.status.value,
            "reused": self.reused,
            "category": self.category,
            "recovered": self.recovered,
            "instance": self.instance.to_dict() if self.instance else None,
            "report": self.report.to_dict() if self.report else None,
        }


@dataclass(frozen=True, slots=True)
class ActivationStatistics:
    active_count: int
    active_agents: list[str]
    pending_count: int
    max_concurrent_agents: int
    by_role: dict[str, int]
    degraded: list[str]
    sessions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "active_count": self.active_count,
            "active_agents": list(self.active_agents),
            "pending_count": self.pending_count,
            "max_concurrent_agents": self.max_concurrent_agents,
            "by_role": dict(self.by_role),
            "degraded": list(self.degraded),
            "sessions": self.sessions,
        }


__all__ = [
    "ActivationMethod",
    "ActivationResult",
    "ActivationStatistics",
    "ActivationStatus",
    "ActiveAgentInstance",
    "AgentLifecycleState",
    "Session",
]
