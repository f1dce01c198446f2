"""Activation Manager - lifecycle of active agent instances.

This module provides:
- Idempotent activation with a hard concurrency ceiling
- Singleton-role conflict detection, resolved through the recovery handler
- Degraded (steering-fallback) activation instead of raising
- Session tracking with a background timeout sweep
- State persistence and restore

Per-id state machine:

    INACTIVE -> ACTIVATING -> ACTIVE -> DEACTIVATING -> INACTIVE
                    |
                    +-> FALLBACK (degraded, still tracked)

The ceiling counter, the role table and the session map are mutated only
while holding the manager lock. I/O (handlers, resource loading, state
files) runs outside it, against a reservation taken under the lock.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncIterator, Callable, Mapping
import contextlib
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
import time
from typing import Any

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
    ErrorCategory,
    ErrorContext,
    ErrorRecoveryHandler,
    ErrorReport,
    RoleConflictDecision,
)
from kiro_agents.agents.handlers import ActivationPayload
from kiro_agents.agents.registry import AgentRegistry, RegisteredAgent
from kiro_agents.agents.roles import derive_role, display_name_for, is_singleton_role
from kiro_agents.config.models import ActivationConfig
from kiro_agents.core.errors import (
    ActivationError,
    ActivationHandlerError,
    ActivationTimeoutError,
    AgentNotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ResourceExhaustedError,
    ResourceLoadingError,
)
from kiro_agents.core.text import normalize_agent_id
from kiro_agents.core.types import Result
from kiro_agents.observability.logging import get_logger
from kiro_agents.resources.base import AgentResources, ResourceLoader
from kiro_agents.state.store import AgentStateStore, SchemaMigration

log = get_logger(__name__)

DAY_SECONDS = 24 * 60 * 60
LIMIT_INCREASE_STEP = 5


class _ReservationKind(Enum):
    RESERVED = "reserved"
    EXHAUSTED = "exhausted"
    DOWNGRADED = "downgraded"


@dataclass(slots=True)
class _Reservation:
    kind: _ReservationKind
    role: str
    decision: RoleConflictDecision | None = None


class ActivationManager:
    """Owns every active agent instance and its session.

    Example:
        manager = ActivationManager(registry, loader, recovery, store, config)
        result = await manager.activate_agent("architect", {"project": "demo"})
        if result.ok:
            instance = result.instance
        await manager.deactivate_agent("architect")
    """

    def __init__(
        self,
        registry: AgentRegistry,
        resources: ResourceLoader,
        recovery: ErrorRecoveryHandler,
        state_store: AgentStateStore,
        config: ActivationConfig | None = None,
        *,
        monitor: ActivationMonitor | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._resources = resources
        self._recovery = recovery
        self._store = state_store
        self._config = config or ActivationConfig()
        self._monitor = monitor
        self._clock = clock

        self._instances: dict[str, ActiveAgentInstance] = {}
        self._sessions: dict[str, Session] = {}
        self._pending: dict[str, str] = {}
        self._states: dict[str, AgentLifecycleState] = {}
        self._lock = asyncio.Lock()
        self._id_locks: dict[str, asyncio.Lock] = {}
        self._id_lock_users: Counter[str] = Counter()
        self._evicting: dict[str, str] = {}

        self._max_agents = self._config.max_concurrent_agents
        self._allow_multiple_roles = False
        self._sweeper_task: asyncio.Task[None] | None = None
        self._running = False

        self._register_override_actions()

    @property
    def max_concurrent_agents(self) -> int:
        return self._max_agents

    @property
    def active_count(self) -> int:
        return len(self._instances)

    @property
    def is_running(self) -> bool:
        return self._running

    # -------------------------------------------------------------------------
    # Background sweep
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic expired-session sweep."""
        if self._running:
            return
        self._running = True
        self._sweeper_task = asyncio.create_task(self._session_sweeper())
        log.info(
            "activation.manager.started",
            max_concurrent_agents=self._max_agents,
            session_timeout=self._config.session_timeout,
            cleanup_interval=self._config.cleanup_interval,
        )

    async def stop(self) -> None:
        """Stop the sweep; active instances are left untouched."""
        self._running = False
        if self._sweeper_task is not None:
            self._sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper_task
            self._sweeper_task = None
        log.info("activation.manager.stopped", active=len(self._instances))

    async def _session_sweeper(self) -> None:
        log.debug("activation.sweeper.started")
        while self._running:
            await asyncio.sleep(self._config.cleanup_interval)
            try:
                await self.cleanup_expired_sessions()
            except Exception as e:
                log.exception("activation.sweeper.error", error=str(e))

    # -------------------------------------------------------------------------
    # Activation
    # -------------------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _id_lock(self, agent_id: str) -> AsyncIterator[None]:
        """Serialize work on one id; the lock is dropped once nobody holds or awaits it."""
        lock = self._id_locks.setdefault(agent_id, asyncio.Lock())
        self._id_lock_users[agent_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._id_lock_users[agent_id] -= 1
            if self._id_lock_users[agent_id] <= 0:
                del self._id_lock_users[agent_id]
                del self._id_locks[agent_id]

    def _specificity(self, record: RegisteredAgent | None) -> float:
        if record is None:
            return 0.0
        definition = record.definition
        score = 10.0 if definition.source.is_expansion else 0.0
        score += len(definition.description) / 100
        age_days = (self._clock() - definition.last_modified.timestamp()) / DAY_SECONDS
        score += max(0.0, 30 - age_days)
        return score

    def _role_holder(self, role: str, exclude: str) -> str | None:
        for agent_id, instance in self._instances.items():
            if agent_id in self._evicting:
                continue
            if agent_id != exclude and instance.role == role:
                return agent_id
        for agent_id, pending_role in self._pending.items():
            if agent_id != exclude and pending_role == role:
                return agent_id
        return None

    def _reserve(self, agent_id: str, record: RegisteredAgent | None) -> _Reservation:
        """Check the ceiling and the role table and take a slot. Lock held."""
        role = derive_role(agent_id)

        if len(self._instances) + len(self._pending) >= self._max_agents:
            return _Reservation(_ReservationKind.EXHAUSTED, role)

        reservation = _Reservation(_ReservationKind.RESERVED, role)
        if not self._allow_multiple_roles and is_singleton_role(role, self._config.singleton_roles):
            holder_id = self._role_holder(role, exclude=agent_id)
            if holder_id is not None:
                holder_pending = holder_id in self._pending
                holder_score = (
                    float("inf")
                    if holder_pending
                    else self._specificity(self._registry.get_agent(holder_id))
                )
                decision = self._recovery.resolve_role_conflict(
                    agent_id=agent_id,
                    holder_id=holder_id,
                    role=role,
                    newcomer_score=self._specificity(record),
                    holder_score=holder_score,
                )
                reservation.decision = decision
                if decision.evicts and not holder_pending:
                    # The holder keeps its slot until the newcomer is committed
                    self._evicting[holder_id] = agent_id
                else:
                    reservation.kind = _ReservationKind.DOWNGRADED
                    return reservation

        self._pending[agent_id] = role
        self._states[agent_id] = AgentLifecycleState.ACTIVATING
        return reservation

    def _release(self, agent_id: str) -> None:
        self._pending.pop(agent_id, None)
        for holder_id in [h for h, n in self._evicting.items() if n == agent_id]:
            del self._evicting[holder_id]
        if agent_id not in self._instances:
            self._states.pop(agent_id, None)

    def _complete_eviction(self, agent_id: str) -> ActiveAgentInstance | None:
        for holder_id, newcomer in list(self._evicting.items()):
            if newcomer == agent_id:
                del self._evicting[holder_id]
                if holder_id in self._instances:
                    return self._remove(holder_id)
        return None

    def _commit(self, instance: ActiveAgentInstance) -> None:
        now = self._clock()
        self._pending.pop(instance.id, None)
        self._instances[instance.id] = instance
        self._sessions[instance.id] = Session(instance.id, created_at=now, last_activity=now)
        self._states[instance.id] = (
            AgentLifecycleState.FALLBACK
            if instance.activation_method == ActivationMethod.STEERING_FALLBACK
            else AgentLifecycleState.ACTIVE
        )

    def _remove(self, agent_id: str) -> ActiveAgentInstance:
        self._states[agent_id] = AgentLifecycleState.DEACTIVATING
        instance = self._instances.pop(agent_id)
        session = self._sessions.pop(agent_id, None)
        self._evicting.pop(agent_id, None)
        self._states.pop(agent_id, None)
        if self._monitor is not None:
            started = session.created_at if session else instance.activated_at.timestamp()
            self._monitor.record_deactivation(agent_id, self._clock() - started)
        return instance

    async def activate_agent(
        self, agent_id: str, context: Mapping[str, Any] | None = None
    ) -> ActivationResult:
        """Activate an agent, or return it if it is already active.

        Never raises for expected failures: an unknown id or a failing
        handler yields a degraded instance, the ceiling and permission
        problems yield a FAILED result carrying the error report.

        Args:
            agent_id: Agent id; normalized before use.
            context: Caller context passed through to the instance.

        Returns:
            ActivationResult describing the outcome.
        """
        agent_id = normalize_agent_id(agent_id)
        ctx = dict(context or {})

        async with self._id_lock(agent_id):
            existing = self._instances.get(agent_id)
            if existing is not None:
                self._sessions[agent_id].touch(self._clock())
                log.debug("activation.agent.reused", agent_id=agent_id)
                status = (
                    ActivationStatus.DEGRADED if existing.is_degraded else ActivationStatus.ACTIVE
                )
                return ActivationResult(agent_id, status, existing, reused=True)

            record = self._registry.get_agent(agent_id)
            started = time.perf_counter()

            async with self._lock:
                reservation = self._reserve(agent_id, record)

            if reservation.kind == _ReservationKind.EXHAUSTED:
                return await self._refuse_exhausted(agent_id)
            if reservation.kind == _ReservationKind.DOWNGRADED:
                assert reservation.decision is not None
                return await self._downgrade(agent_id, record, ctx, reservation)

            committed = False
            try:
                instance, report = await self._bring_up(agent_id, record, ctx, reservation.role)
                if instance is not None:
                    async with self._lock:
                        evicted = self._complete_eviction(agent_id)
                        self._commit(instance)
                    committed = True
                    if evicted is not None:
                        log.info(
                            "activation.agent.evicted",
                            agent_id=evicted.id,
                            role=evicted.role,
                            replaced_by=agent_id,
                        )
            finally:
                if not committed:
                    self._release(agent_id)

        duration = time.perf_counter() - started
        if instance is None:
            assert report is not None
            if self._monitor is not None:
                self._monitor.record_failure(agent_id, report.category.value)
            log.warning(
                "activation.agent.failed",
                agent_id=agent_id,
                category=report.category.value,
                error_id=report.error_id,
            )
            return ActivationResult(agent_id, ActivationStatus.FAILED, report=report)

        if self._monitor is not None:
            self._monitor.record_activation(agent_id, duration, fallback=instance.is_degraded)
        status = ActivationStatus.DEGRADED if instance.is_degraded else ActivationStatus.ACTIVE
        log.info(
            "activation.agent.activated",
            agent_id=agent_id,
            role=instance.role,
            status=status.value,
            method=instance.activation_method.value,
            active=len(self._instances),
            duration=round(duration, 3),
        )
        return ActivationResult(agent_id, status, instance, report)

    async def _refuse_exhausted(self, agent_id: str) -> ActivationResult:
        error = ResourceExhaustedError(
            f"Maximum concurrent agents ({self._max_agents}) reached",
            agent_id=agent_id,
            limit=self._max_agents,
        )
        report = await self._recovery.handle_activation_error(
            error,
            ErrorContext(
                agent_id,
                phase="reservation",
                metadata={"limit": self._max_agents, "active": sorted(self._instances)},
            ),
        )
        if self._monitor is not None:
            self._monitor.record_failure(agent_id, report.category.value)
        log.warning(
            "activation.agent.refused",
            agent_id=agent_id,
            limit=self._max_agents,
            error_id=report.error_id,
        )
        return ActivationResult(agent_id, ActivationStatus.FAILED, report=report)

    async def _downgrade(
        self,
        agent_id: str,
        record: RegisteredAgent | None,
        ctx: dict[str, Any],
        reservation: _Reservation,
    ) -> ActivationResult:
        """Steering-only activation for a newcomer that lost a role conflict.

        The instance is returned to the caller but holds no slot.
        """
        assert reservation.decision is not None
        report = reservation.decision.report
        fallback = await self._recovery.activate_with_steering_fallback(
            agent_id,
            expansion_pack=record.definition.expansion_pack if record else None,
        )
        if fallback is None:
            report.recovered = False
            return ActivationResult(agent_id, ActivationStatus.FAILED, report=report)

        report.fallback = fallback
        instance = ActiveAgentInstance(
            id=agent_id,
            name=record.definition.name if record else display_name_for(agent_id),
            activated_at=datetime.now(UTC),
            context={
                **ctx,
                "recovery": {
                    "error_id": report.error_id,
                    "category": report.category.value,
                    "holder_id": reservation.decision.holder_id,
                },
            },
            resources=AgentResources(
                steering=fallback.content, steering_path=fallback.steering_path
            ),
            source=record.definition.source.label if record else "unknown",
            role=reservation.role,
            limitations=[
                f"Role '{reservation.role}' is held by {reservation.decision.holder_id}",
                *fallback.limitations,
            ],
            activation_method=ActivationMethod.STEERING_FALLBACK,
            tracked=False,
        )
        log.info(
            "activation.agent.downgraded",
            agent_id=agent_id,
            role=reservation.role,
            holder_id=reservation.decision.holder_id,
        )
        return ActivationResult(agent_id, ActivationStatus.DEGRADED, instance, report)

    def _fallback_instance(
        self,
        agent_id: str,
        record: RegisteredAgent | None,
        ctx: dict[str, Any],
        role: str,
        report: ErrorReport,
        payload: ActivationPayload | None = None,
    ) -> ActiveAgentInstance:
        assert report.fallback is not None
        return ActiveAgentInstance(
            id=agent_id,
            name=record.definition.name if record else display_name_for(agent_id),
            activated_at=datetime.now(UTC),
            context={
                **ctx,
                "recovery": {
                    "error_id": report.error_id,
                    "category": report.category.value,
                    "steering_path": str(report.fallback.steering_path),
                },
            },
            resources=AgentResources(
                steering=report.fallback.content,
                steering_path=report.fallback.steering_path,
            ),
            source=record.definition.source.label if record else "unknown",
            role=role,
            payload=payload,
            limitations=list(report.fallback.limitations),
            activation_method=ActivationMethod.STEERING_FALLBACK,
        )

    async def _bring_up(
        self,
        agent_id: str,
        record: RegisteredAgent | None,
        ctx: dict[str, Any],
        role: str,
    ) -> tuple[ActiveAgentInstance | None, ErrorReport | None]:
        if record is None:
            report = await self._recovery.handle_activation_error(
                AgentNotFoundError(f"Agent not found in registry: {agent_id}", agent_id=agent_id),
                ErrorContext(agent_id, phase="lookup"),
            )
            if report.fallback is None:
                return None, report
            return self._fallback_instance(agent_id, None, ctx, role, report), report

        definition = record.definition
        report: ErrorReport | None = None
        try:
            payload = await self._invoke_handler(record, ctx)
        except ActivationError as e:
            report = await self._recovery.handle_activation_error(
                e,
                ErrorContext(
                    agent_id,
                    phase="activation",
                    agent_name=definition.name,
                    expansion_pack=definition.expansion_pack,
                    operation=lambda: self._invoke_handler(record, ctx),
                ),
            )
            if report.fallback is not None:
                return self._fallback_instance(agent_id, record, ctx, role, report), report
            if not report.recovered:
                return None, report
            payload = report.result

        limitations: list[str] = []
        try:
            resources = await self._load_resources(record)
        except ActivationError as e:
            report = await self._recovery.handle_activation_error(
                e,
                ErrorContext(
                    agent_id,
                    phase="resource-loading",
                    agent_name=definition.name,
                    expansion_pack=definition.expansion_pack,
                    operation=lambda: self._load_resources(record),
                ),
            )
            if report.category in (
                ErrorCategory.PERMISSION_DENIED,
                ErrorCategory.RESOURCE_EXHAUSTED,
            ):
                return None, report
            if report.recovered and report.fallback is None:
                resources = report.result
            elif report.fallback is not None:
                resources = AgentResources(
                    steering=report.fallback.content,
                    steering_path=report.fallback.steering_path,
                )
                limitations = list(report.fallback.limitations)
            else:
                resources = AgentResources()
                limitations = [f"Ancillary resources could not be loaded: {e.message}"]

        instance = ActiveAgentInstance(
            id=agent_id,
            name=definition.name,
            activated_at=datetime.now(UTC),
            context=ctx,
            resources=resources,
            source=definition.source.label,
            role=role,
            payload=payload,
            limitations=limitations,
        )
        if limitations and report is not None:
            instance.context = {
                **ctx,
                "recovery": {"error_id": report.error_id, "category": report.category.value},
            }
        return instance, report

    async def _invoke_handler(
        self, record: RegisteredAgent, ctx: dict[str, Any]
    ) -> ActivationPayload:
        """Run the bound handler under the activation timeout.

        Raises:
            ActivationHandlerError: If the handler fails, errs, or times out.
        """
        timeout = self._config.activation_timeout
        try:
            result = await asyncio.wait_for(record.handler.activate(ctx), timeout=timeout)
        except TimeoutError as e:
            raise ActivationTimeoutError(
                f"Activation handler timed out after {timeout}s", agent_id=record.id
            ) from e
        except ActivationError:
            raise
        except Exception as e:
            raise ActivationHandlerError(
                f"Activation handler raised {type(e).__name__}: {e}", agent_id=record.id
            ) from e

        if result.is_err:
            raise result.error
        return result.value

    async def _load_resources(self, record: RegisteredAgent) -> AgentResources:
        """Load ancillary resources under the activation timeout.

        Raises:
            PermissionDeniedError: If access to a resource is refused.
            ResourceLoadingError: For any other loading failure.
        """
        definition = record.definition
        timeout = self._config.activation_timeout
        try:
            return await asyncio.wait_for(
                self._resources.load(
                    definition.id,
                    expansion_pack=definition.expansion_pack,
                    file_context=definition.file_context,
                ),
                timeout=timeout,
            )
        except PermissionError as e:
            raise PermissionDeniedError(
                f"Permission denied loading resources: {e}", agent_id=definition.id
            ) from e
        except TimeoutError as e:
            raise ResourceLoadingError(
                f"Resource loading timed out after {timeout}s", agent_id=definition.id
            ) from e
        except Exception as e:
            raise ResourceLoadingError(
                f"Resource loading failed: {e}", agent_id=definition.id
            ) from e

    # -------------------------------------------------------------------------
    # Deactivation and sessions
    # -------------------------------------------------------------------------

    async def deactivate_agent(
        self, agent_id: str, *, reason: str = "requested"
    ) -> Result[bool, ActivationError]:
        """Deactivate an agent.

        Deactivating an inactive id is a no-op that still succeeds.

        Returns:
            Ok(True) if an instance was removed, Ok(False) if none was active.
        """
        agent_id = normalize_agent_id(agent_id)
        async with self._lock:
            if agent_id not in self._instances:
                log.debug("activation.agent.not_active", agent_id=agent_id)
                return Result.ok(False)
            instance = self._remove(agent_id)

        log.info(
            "activation.agent.deactivated",
            agent_id=agent_id,
            role=instance.role,
            reason=reason,
            active=len(self._instances),
        )
        return Result.ok(True)

    def get_active_agent(self, agent_id: str) -> ActiveAgentInstance | None:
        return self._instances.get(normalize_agent_id(agent_id))

    def list_active_agents(self) -> list[ActiveAgentInstance]:
        return list(self._instances.values())

    def get_agent_state(self, agent_id: str) -> AgentLifecycleState:
        return self._states.get(normalize_agent_id(agent_id), AgentLifecycleState.INACTIVE)

    def get_session(self, agent_id: str) -> Session | None:
        return self._sessions.get(normalize_agent_id(agent_id))

    def update_session_activity(self, agent_id: str) -> bool:
        """Extend the session timeout window of an active agent."""
        session = self._sessions.get(normalize_agent_id(agent_id))
        if session is None:
            return False
        session.touch(self._clock())
        return True

    async def cleanup_expired_sessions(self) -> list[str]:
        """Deactivate every agent whose session has timed out.

        Returns:
            Ids that were deactivated.
        """
        now = self._clock()
        timeout = self._config.session_timeout
        expired = [
            agent_id
            for agent_id, session in self._sessions.items()
            if session.is_expired(now, timeout)
        ]
        for agent_id in expired:
            await self.deactivate_agent(agent_id, reason="session-timeout")
        if expired:
            log.info("activation.sessions.expired", agent_ids=expired)
        return expired

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def snapshot_state(self) -> dict[str, Any]:
        timeout = self._config.session_timeout
        return {
            "version": SchemaMigration.CURRENT_VERSION,
            "active_agents": sorted(self._instances),
            "sessions": [self._sessions[a].to_dict(timeout) for a in sorted(self._sessions)],
            "saved_at": datetime.now(UTC).isoformat(),
        }

    async def save_state(self) -> Result[str, PersistenceError]:
        """Persist active ids and session metadata."""
        async with self._lock:
            data = self.snapshot_state()
        result = await self._store.write_state(data)
        if result.is_err:
            return Result.err(result.error)
        log.info(
            "activation.state.saved",
            path=str(result.value),
            active_agents=len(data["active_agents"]),
        )
        return Result.ok(str(result.value))

    async def load_state(self) -> Result[list[str], PersistenceError]:
        """Restore sessions that are still registered and not expired.

        Each restored id is activated again and its saved session times are
        reapplied.

        Returns:
            Ok with the restored ids (empty when there is no state file).
        """
        read = await self._store.read_state()
        if read.is_err:
            return Result.err(read.error)
        data = read.value
        if data is None:
            return Result.ok([])

        now = self._clock()
        timeout = self._config.session_timeout
        restored: list[str] = []
        skipped: list[str] = []
        entries = data.get("sessions", [])
        if not isinstance(entries, list):
            log.warning("activation.state.sessions_invalid", kind=type(entries).__name__)
            entries = []
        for entry in entries:
            try:
                saved = Session.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                log.warning("activation.state.session_invalid", entry=entry, error=str(e))
                continue

            if not self._registry.has_agent(saved.agent_id) or saved.is_expired(now, timeout):
                skipped.append(saved.agent_id)
                continue

            result = await self.activate_agent(saved.agent_id, {"restored": True})
            if not result.ok or result.instance is None or not result.instance.tracked:
                skipped.append(saved.agent_id)
                continue
            session = self._sessions.get(result.agent_id)
            if session is not None:
                session.created_at = saved.created_at
                session.last_activity = saved.last_activity
            restored.append(result.agent_id)

        log.info("activation.state.loaded", restored=restored, skipped=skipped)
        return Result.ok(restored)

    async def shutdown(self) -> Result[str, PersistenceError]:
        """Save state (best effort), then deactivate every active agent.

        Returns:
            The result of the state save; deactivation happens regardless.
        """
        await self.stop()
        saved = await self.save_state()
        if saved.is_err:
            log.warning("activation.state.save_failed", error=str(saved.error))

        for agent_id in list(self._instances):
            await self.deactivate_agent(agent_id, reason="shutdown")
        log.info("activation.manager.shutdown")
        return saved

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_statistics(self) -> ActivationStatistics:
        instances = list(self._instances.values())
        return ActivationStatistics(
            active_count=len(instances),
            active_agents=sorted(self._instances),
            pending_count=len(self._pending),
            max_concurrent_agents=self._max_agents,
            by_role=dict(Counter(i.role for i in instances)),
            degraded=sorted(i.id for i in instances if i.is_degraded),
            sessions=len(self._sessions),
        )

    # -------------------------------------------------------------------------
    # Manual overrides
    # -------------------------------------------------------------------------

    def _register_override_actions(self) -> None:
        actions = {
            "force-deactivate": self._override_force_deactivate,
            "allow-multiple": self._override_allow_multiple,
            "increase-limits": self._override_increase_limits,
            "deactivate-others": self._override_deactivate_others,
            "force-register": self._override_force_register,
            "use-alternative": self._override_use_alternative,
        }
        for option_id, action in actions.items():
            self._recovery.register_override_action(option_id, action)

    async def _override_force_deactivate(self, report: ErrorReport) -> dict[str, Any]:
        holder_id = report.details.get("holder_id")
        deactivated = False
        if holder_id:
            deactivated = (await self.deactivate_agent(holder_id, reason="manual-override")).value
        return {"holder_id": holder_id, "deactivated": deactivated}

    async def _override_allow_multiple(self, report: ErrorReport) -> dict[str, Any]:
        self._allow_multiple_roles = True
        return {"allow_multiple_roles": True}

    async def _override_increase_limits(self, report: ErrorReport) -> dict[str, Any]:
        self._max_agents += LIMIT_INCREASE_STEP
        log.warning("activation.limits.increased", max_concurrent_agents=self._max_agents)
        return {"max_concurrent_agents": self._max_agents}

    async def _override_deactivate_others(self, report: ErrorReport) -> dict[str, Any]:
        others = [a for a in self._instances if a != report.agent_id]
        for agent_id in others:
            await self.deactivate_agent(agent_id, reason="manual-override")
        return {"deactivated": others}

    async def _override_force_register(self, report: ErrorReport) -> dict[str, Any]:
        recovered = await self._registry.retry_failed_registrations()
        return {
            "recovered_registrations": recovered,
            "registered": self._registry.has_agent(report.agent_id),
        }

    async def _override_use_alternative(self, report: ErrorReport) -> dict[str, Any]:
        role = derive_role(report.agent_id)
        alternatives = [
            agent.id
            for agent in self._registry.list_agents()
            if derive_role(agent.id) == role or report.agent_id in agent.id
        ]
        return {"alternatives": sorted(alternatives)}


__all__ = ["ActivationManager"]
