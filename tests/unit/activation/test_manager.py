"""Unit tests for ActivationManager.

Tests cover:
- Activation, reuse, and concurrent first activation
- Unknown agents and handler failures (retry, steering fallback)
- Singleton-role conflicts (evict, downgrade)
- The concurrency ceiling and its manual override
- Resource loading failures
- Deactivation, sessions, and the background sweep
- State save/load and shutdown
"""

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
import time
from typing import Any

import pytest

from kiro_agents.activation.manager import ActivationManager
from kiro_agents.activation.models import (
    ActivationMethod,
    ActivationStatus,
    AgentLifecycleState,
)
from kiro_agents.activation.monitor import ActivationMonitor
from kiro_agents.activation.recovery import FALLBACK_LIMITATIONS, ErrorRecoveryHandler
from kiro_agents.agents.definition import AgentDefinition
from kiro_agents.agents.handlers import ActivationHandler, ActivationPayload, create_handler
from kiro_agents.agents.registry import AgentRegistry
from kiro_agents.agents.roles import derive_role
from kiro_agents.agents.store import FileSystemDefinitionSource
from kiro_agents.config.models import KiroAgentsConfig, RoleConflictPolicy
from kiro_agents.core.errors import ActivationHandlerError
from kiro_agents.core.types import Result
from kiro_agents.resources.base import AgentResources, ResourceLoader
from kiro_agents.resources.filesystem import FileSystemResourceLoader
from kiro_agents.state.store import AgentStateStore

# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    def __init__(self) -> None:
        self.now = time.time()

    def __call__(self) -> float:
        return self.now


class ScriptedHandler:
    """Wraps the real handler bound by the factory; raises for the first ``failures`` calls."""

    def __init__(self, failures: int = 0, delay: float = 0.0) -> None:
        self.inner: ActivationHandler | None = None
        self.failures = failures
        self.delay = delay
        self.calls = 0

    async def activate(
        self, context: Mapping[str, Any]
    ) -> Result[ActivationPayload, ActivationHandlerError]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("handler exploded")
        assert self.inner is not None
        return await self.inner.activate(context)


class ScriptedLoader:
    """Wraps a real loader; raises the queued errors first."""

    def __init__(self, inner: ResourceLoader, errors: Sequence[BaseException] = ()) -> None:
        self.inner = inner
        self.errors = list(errors)
        self.calls = 0

    async def load(
        self,
        agent_id: str,
        *,
        expansion_pack: str | None = None,
        file_context: Sequence[str] = (),
    ) -> AgentResources:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return await self.inner.load(
            agent_id, expansion_pack=expansion_pack, file_context=file_context
        )


@dataclass
class Harness:
    manager: ActivationManager
    registry: AgentRegistry
    recovery: ErrorRecoveryHandler
    monitor: ActivationMonitor
    store: AgentStateStore
    clock: FakeClock
    config: KiroAgentsConfig
    project_root: Path


async def build(
    project_root: Path,
    config: KiroAgentsConfig,
    clock: FakeClock,
    *,
    handlers: dict[str, ScriptedHandler] | None = None,
    loader: ResourceLoader | None = None,
    registry: AgentRegistry | None = None,
    **activation: Any,
) -> Harness:
    if activation:
        config = config.model_copy(
            update={"activation": config.activation.model_copy(update=activation)}
        )
    handlers = handlers or {}

    def handler_factory(definition: AgentDefinition) -> ActivationHandler:
        scripted = handlers.get(definition.id)
        if scripted is not None:
            scripted.inner = create_handler(definition)
            return scripted
        return create_handler(definition)

    if registry is None:
        registry = AgentRegistry(
            FileSystemDefinitionSource(project_root, config.registry),
            config.registry,
            handler_factory=handler_factory,
        )
        await registry.initialize()

    recovery = ErrorRecoveryHandler(project_root, config.recovery, config.activation)
    monitor = ActivationMonitor(clock=clock)
    store = AgentStateStore(project_root / config.activation.state_file)
    manager = ActivationManager(
        registry,
        loader or FileSystemResourceLoader(project_root, config.activation),
        recovery,
        store,
        config.activation,
        monitor=monitor,
        clock=clock,
    )
    return Harness(manager, registry, recovery, monitor, store, clock, config, project_root)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def harness(project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock) -> Harness:
    return await build(project_root, fast_config, clock)


def active_roles(manager: ActivationManager, role: str) -> list[str]:
    return [i.id for i in manager.list_active_agents() if i.role == role]


# =============================================================================
# Activation
# =============================================================================


class TestActivation:
    async def test_activate_registered_agent(self, harness: Harness) -> None:
        manager = harness.manager

        result = await manager.activate_agent("architect", {"project": "demo"})

        assert result.ok
        assert result.status == ActivationStatus.ACTIVE
        assert result.report is None
        instance = result.instance
        assert instance.name == "Winston"
        assert instance.role == "architect"
        assert instance.source == "bmad-core"
        assert instance.context == {"project": "demo"}
        assert instance.payload.agent_id == "architect"
        assert instance.tracked
        assert manager.get_agent_state("architect") == AgentLifecycleState.ACTIVE
        assert manager.get_session("architect") is not None
        assert harness.monitor.get_activation_statistics()["successful_activations"] == 1

    async def test_resources_attached(self, harness: Harness) -> None:
        steering = harness.project_root / ".kiro" / "steering" / "pm.md"
        steering.parent.mkdir(parents=True)
        steering.write_text("# PM steering\n")

        result = await harness.manager.activate_agent("pm")

        assert result.instance.resources.steering == "# PM steering\n"
        assert len(result.instance.resources.file_context) == 3

    async def test_activation_is_idempotent(self, harness: Harness) -> None:
        manager = harness.manager
        first = await manager.activate_agent("dev")
        harness.clock.now += 30

        second = await manager.activate_agent("Dev")

        assert second.reused
        assert second.instance is first.instance
        assert manager.active_count == 1
        assert manager.get_session("dev").last_activity == harness.clock.now

    async def test_concurrent_first_activation_creates_one_instance(
        self, harness: Harness
    ) -> None:
        results = await asyncio.gather(
            *(harness.manager.activate_agent("pm") for _ in range(3))
        )

        assert harness.manager.active_count == 1
        assert sum(1 for r in results if not r.reused) == 1
        assert len({id(r.instance) for r in results}) == 1


class TestUnknownAgents:
    async def test_unknown_agent_degrades_to_steering(self, harness: Harness) -> None:
        result = await harness.manager.activate_agent("data-wrangler")

        assert result.ok
        assert result.status == ActivationStatus.DEGRADED
        assert result.category == "agent-not-found"
        assert result.recovered
        instance = result.instance
        assert instance.activation_method == ActivationMethod.STEERING_FALLBACK
        assert instance.tracked
        assert instance.source == "unknown"
        assert instance.limitations == list(FALLBACK_LIMITATIONS)
        assert instance.resources.steering_path.name == "data-wrangler-fallback.md"
        assert harness.manager.get_agent_state("data-wrangler") == AgentLifecycleState.FALLBACK

    async def test_unknown_agent_without_fallback_fails(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        config = fast_config.model_copy(
            update={"recovery": fast_config.recovery.model_copy(update={"enable_fallback": False})}
        )
        harness = await build(project_root, config, clock)

        result = await harness.manager.activate_agent("ghost")

        assert not result.ok
        assert result.instance is None
        assert harness.manager.active_count == 0
        assert harness.manager.get_agent_state("ghost") == AgentLifecycleState.INACTIVE
        assert harness.monitor.get_activation_statistics()["failed_activations"] == 1


class TestHandlerFailures:
    async def test_transient_failure_is_retried(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        handler = ScriptedHandler(failures=1)
        harness = await build(project_root, fast_config, clock, handlers={"pm": handler})

        result = await harness.manager.activate_agent("pm")

        assert result.status == ActivationStatus.ACTIVE
        assert result.recovered
        assert result.report.attempts == 1
        assert result.instance.payload.agent_id == "pm"
        assert handler.calls == 2

    async def test_persistent_failure_falls_back(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        handler = ScriptedHandler(failures=100)
        harness = await build(project_root, fast_config, clock, handlers={"dev": handler})

        result = await harness.manager.activate_agent("dev")

        assert result.status == ActivationStatus.DEGRADED
        assert result.category == "activation-handler-failed"
        assert result.instance.payload is None
        assert result.instance.tracked
        assert result.instance.context["recovery"]["error_id"] == result.report.error_id
        assert handler.calls == 1 + fast_config.recovery.max_retry_attempts
        assert harness.manager.get_agent_state("dev") == AgentLifecycleState.FALLBACK
        assert harness.manager.get_statistics().degraded == ["dev"]

    async def test_handler_timeout(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        handler = ScriptedHandler(delay=1.0)
        harness = await build(
            project_root,
            fast_config,
            clock,
            handlers={"dev": handler},
            activation_timeout=0.02,
        )

        result = await harness.manager.activate_agent("dev")

        assert result.status == ActivationStatus.DEGRADED
        assert "timed out" in result.report.error


# =============================================================================
# Role conflicts
# =============================================================================


class TestRoleConflicts:
    async def test_base_and_expansion_architect_never_both_active(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(project_root, fast_config, clock, max_concurrent_agents=5)
        manager = harness.manager

        first = await manager.activate_agent("bmad-architect")
        second = await manager.activate_agent("game-architect")

        assert first.ok
        assert second.ok
        assert len(active_roles(manager, "architect")) <= 1

    async def test_more_specific_newcomer_evicts_holder(self, harness: Harness) -> None:
        manager = harness.manager
        await manager.activate_agent("architect")

        result = await manager.activate_agent("game-architect")

        assert result.status == ActivationStatus.ACTIVE
        assert active_roles(manager, "architect") == ["game-architect"]
        assert manager.get_agent_state("architect") == AgentLifecycleState.INACTIVE
        assert harness.monitor.get_activation_statistics()["deactivations"] == 1

    async def test_holder_survives_failed_newcomer(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        loader = ScriptedLoader(FileSystemResourceLoader(project_root))
        harness = await build(project_root, fast_config, clock, loader=loader)
        manager = harness.manager
        assert (await manager.activate_agent("architect")).ok
        loader.errors.append(PermissionError("steering locked"))

        result = await manager.activate_agent("game-architect")

        assert result.status == ActivationStatus.FAILED
        assert result.category == "permission-denied"
        assert active_roles(manager, "architect") == ["architect"]
        assert manager.get_agent_state("architect") == AgentLifecycleState.ACTIVE
        assert manager.get_agent_state("game-architect") == AgentLifecycleState.INACTIVE
        assert harness.monitor.get_activation_statistics()["deactivations"] == 0

        retry = await manager.activate_agent("game-architect")
        assert retry.status == ActivationStatus.ACTIVE
        assert active_roles(manager, "architect") == ["game-architect"]

    async def test_holder_stays_active_while_newcomer_starts(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(
            project_root,
            fast_config,
            clock,
            handlers={"game-architect": ScriptedHandler(delay=0.05)},
        )
        manager = harness.manager
        await manager.activate_agent("architect")

        pending = asyncio.create_task(manager.activate_agent("game-architect"))
        await asyncio.sleep(0.01)
        assert manager.get_active_agent("architect") is not None

        assert (await pending).status == ActivationStatus.ACTIVE
        assert manager.get_active_agent("architect") is None
        assert active_roles(manager, "architect") == ["game-architect"]

    async def test_less_specific_newcomer_is_downgraded(self, harness: Harness) -> None:
        manager = harness.manager
        await manager.activate_agent("game-architect")

        result = await manager.activate_agent("architect")

        assert result.status == ActivationStatus.DEGRADED
        assert result.category == "role-conflict"
        assert result.recovered
        assert not result.instance.tracked
        assert result.instance.limitations[0] == "Role 'architect' is held by game-architect"
        assert active_roles(manager, "architect") == ["game-architect"]
        assert manager.get_active_agent("architect") is None
        assert manager.active_count == 1

    async def test_evict_policy(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(
            project_root, fast_config, clock, role_conflict_policy=RoleConflictPolicy.EVICT
        )
        await harness.manager.activate_agent("game-architect")

        result = await harness.manager.activate_agent("architect")

        assert result.status == ActivationStatus.ACTIVE
        assert active_roles(harness.manager, "architect") == ["architect"]

    async def test_concurrent_conflicting_activations(self, harness: Harness) -> None:
        results = await asyncio.gather(
            harness.manager.activate_agent("architect"),
            harness.manager.activate_agent("game-architect"),
        )

        assert all(r.ok for r in results)
        assert len(active_roles(harness.manager, "architect")) == 1

    async def test_non_singleton_roles_coexist(self, harness: Harness) -> None:
        await harness.manager.activate_agent("dev")
        await harness.manager.activate_agent("game-developer")

        assert sorted(active_roles(harness.manager, "dev")) == ["dev", "game-developer"]

    async def test_force_deactivate_override(self, harness: Harness) -> None:
        manager = harness.manager
        await manager.activate_agent("game-architect")
        downgraded = await manager.activate_agent("architect")

        outcome = await harness.recovery.execute_manual_override(
            downgraded.report.error_id, "force-deactivate"
        )

        assert outcome.value.details == {"holder_id": "game-architect", "deactivated": True}
        assert (await manager.activate_agent("architect")).status == ActivationStatus.ACTIVE

    async def test_allow_multiple_override(self, harness: Harness) -> None:
        manager = harness.manager
        await manager.activate_agent("game-architect")
        downgraded = await manager.activate_agent("architect")

        await harness.recovery.execute_manual_override(
            downgraded.report.error_id, "allow-multiple"
        )
        await manager.activate_agent("architect")

        assert sorted(active_roles(manager, "architect")) == ["architect", "game-architect"]


# =============================================================================
# Ceiling
# =============================================================================


class TestConcurrencyCeiling:
    async def test_third_activation_is_refused(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(project_root, fast_config, clock, max_concurrent_agents=2)
        manager = harness.manager
        assert (await manager.activate_agent("dev")).ok
        assert (await manager.activate_agent("game-developer")).ok

        result = await manager.activate_agent("pm")

        assert not result.ok
        assert result.category == "resource-exhausted"
        assert result.recovered is False
        assert manager.active_count == 2
        assert manager.get_agent_state("pm") == AgentLifecycleState.INACTIVE
        assert [o.id for o in result.report.options][:2] == [
            "increase-limits",
            "deactivate-others",
        ]

    async def test_concurrent_distinct_ids_respect_ceiling(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        ids = ["pm", "dev", "game-developer", "architect"]
        harness = await build(
            project_root,
            fast_config,
            clock,
            handlers={agent_id: ScriptedHandler(delay=0.02) for agent_id in ids},
            max_concurrent_agents=2,
        )

        results = await asyncio.gather(*(harness.manager.activate_agent(i) for i in ids))

        assert harness.manager.active_count == 2
        assert sum(1 for r in results if r.ok) == 2
        refused = [r for r in results if not r.ok]
        assert [r.category for r in refused] == ["resource-exhausted"] * 2
        assert harness.manager.get_statistics().pending_count == 0

    async def test_degraded_instances_count_against_ceiling(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(project_root, fast_config, clock, max_concurrent_agents=1)
        await harness.manager.activate_agent("ghost")

        result = await harness.manager.activate_agent("dev")

        assert result.category == "resource-exhausted"

    async def test_deactivation_frees_a_slot(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(project_root, fast_config, clock, max_concurrent_agents=1)
        await harness.manager.activate_agent("dev")
        await harness.manager.deactivate_agent("dev")

        assert (await harness.manager.activate_agent("pm")).ok

    async def test_increase_limits_override(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(project_root, fast_config, clock, max_concurrent_agents=1)
        await harness.manager.activate_agent("dev")
        refused = await harness.manager.activate_agent("pm")

        outcome = await harness.recovery.execute_manual_override(
            refused.report.error_id, "increase-limits"
        )

        assert outcome.value.details == {"max_concurrent_agents": 6}
        assert harness.manager.max_concurrent_agents == 6
        assert (await harness.manager.activate_agent("pm")).ok

    async def test_deactivate_others_override(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(project_root, fast_config, clock, max_concurrent_agents=2)
        await harness.manager.activate_agent("dev")
        await harness.manager.activate_agent("pm")
        refused = await harness.manager.activate_agent("architect")

        outcome = await harness.recovery.execute_manual_override(
            refused.report.error_id, "deactivate-others"
        )

        assert sorted(outcome.value.details["deactivated"]) == ["dev", "pm"]
        assert harness.manager.active_count == 0


# =============================================================================
# Resource loading
# =============================================================================


class TestResourceLoading:
    async def test_permission_denied_fails_and_releases_slot(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        loader = ScriptedLoader(
            FileSystemResourceLoader(project_root), [PermissionError("steering locked")]
        )
        harness = await build(project_root, fast_config, clock, loader=loader)

        result = await harness.manager.activate_agent("pm")

        assert not result.ok
        assert result.category == "permission-denied"
        assert result.recovered is False
        assert harness.manager.active_count == 0
        assert harness.manager.get_statistics().pending_count == 0
        assert loader.calls == 1

    async def test_transient_loading_failure_is_retried(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        loader = ScriptedLoader(FileSystemResourceLoader(project_root), [OSError("busy")])
        harness = await build(project_root, fast_config, clock, loader=loader)

        result = await harness.manager.activate_agent("pm")

        assert result.status == ActivationStatus.ACTIVE
        assert result.category == "resource-loading-failed"
        assert result.recovered
        assert len(result.instance.resources.file_context) == 3

    async def test_persistent_loading_failure_keeps_agent_degraded(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        loader = ScriptedLoader(
            FileSystemResourceLoader(project_root), [RuntimeError("disk gone")] * 10
        )
        harness = await build(project_root, fast_config, clock, loader=loader)

        result = await harness.manager.activate_agent("pm")

        assert result.status == ActivationStatus.DEGRADED
        assert result.instance.payload is not None
        assert result.instance.resources.steering_path.name == "pm-fallback.md"
        assert result.instance.limitations == list(FALLBACK_LIMITATIONS)
        assert harness.manager.get_active_agent("pm") is result.instance


# =============================================================================
# Deactivation and sessions
# =============================================================================


class TestDeactivationAndSessions:
    async def test_deactivate(self, harness: Harness) -> None:
        manager = harness.manager
        await manager.activate_agent("pm")
        harness.clock.now += 90

        removed = await manager.deactivate_agent("pm")
        again = await manager.deactivate_agent("pm")

        assert removed.value is True
        assert again.value is False
        assert manager.get_session("pm") is None
        assert manager.get_agent_state("pm") == AgentLifecycleState.INACTIVE
        assert harness.monitor.get_usage_analytics()["pm"]["average_session_time"] == 90.0

    async def test_bookkeeping_is_dropped_for_gone_ids(self, harness: Harness) -> None:
        manager = harness.manager
        await manager.activate_agent("pm")
        await manager.activate_agent("ghost")
        await manager.deactivate_agent("pm")
        await manager.deactivate_agent("ghost")

        assert manager._id_locks == {}
        assert manager._states == {}
        assert manager.get_agent_state("ghost") == AgentLifecycleState.INACTIVE

    async def test_expired_sessions_are_cleaned(self, harness: Harness) -> None:
        manager = harness.manager
        timeout = harness.config.activation.session_timeout
        await manager.activate_agent("pm")
        await manager.activate_agent("dev")
        harness.clock.now += timeout - 10
        assert manager.update_session_activity("dev")
        harness.clock.now += 20

        expired = await manager.cleanup_expired_sessions()

        assert expired == ["pm"]
        assert [i.id for i in manager.list_active_agents()] == ["dev"]
        assert not manager.update_session_activity("pm")

    async def test_background_sweep(
        self, project_root: Path, fast_config: KiroAgentsConfig, clock: FakeClock
    ) -> None:
        harness = await build(project_root, fast_config, clock, cleanup_interval=0.01)
        manager = harness.manager
        await manager.activate_agent("pm")
        await manager.start()
        assert manager.is_running
        try:
            harness.clock.now += harness.config.activation.session_timeout + 1
            for _ in range(50):
                if manager.active_count == 0:
                    break
                await asyncio.sleep(0.01)
            assert manager.active_count == 0
        finally:
            await manager.stop()
        assert not manager.is_running

    async def test_statistics(self, harness: Harness) -> None:
        await harness.manager.activate_agent("dev")
        await harness.manager.activate_agent("game-developer")
        await harness.manager.activate_agent("ghost")

        stats = harness.manager.get_statistics()

        assert stats.active_count == 3
        assert stats.by_role == {"dev": 2, derive_role("ghost"): 1}
        assert stats.degraded == ["ghost"]
        assert stats.to_dict()["max_concurrent_agents"] == 10


# =============================================================================
# Persistence
# =============================================================================


class TestPersistence:
    async def test_save_and_restore(self, harness: Harness, fast_config: KiroAgentsConfig) -> None:
        manager = harness.manager
        timeout = harness.config.activation.session_timeout
        await manager.activate_agent("architect")
        await manager.activate_agent("pm")
        harness.clock.now += 100
        manager.update_session_activity("pm")
        pm_session = manager.get_session("pm")

        saved = await manager.save_state()
        assert saved.is_ok
        assert Path(saved.value) == harness.store.path

        later = FakeClock()
        later.now = harness.clock.now - 100 + timeout + 50
        restored_harness = await build(
            harness.project_root, fast_config, later, registry=harness.registry
        )

        restored = await restored_harness.manager.load_state()

        assert restored.value == ["pm"]
        session = restored_harness.manager.get_session("pm")
        assert session.last_activity == pytest.approx(pm_session.last_activity, abs=1e-3)
        assert restored_harness.manager.get_active_agent("architect") is None
        assert restored_harness.manager.get_active_agent("pm").context == {"restored": True}

    async def test_unregistered_ids_are_skipped(self, harness: Harness) -> None:
        await harness.store.write_state(
            {
                "active_agents": ["retired"],
                "sessions": [
                    {
                        "agent_id": "retired",
                        "created_at": "2099-01-01T00:00:00+00:00",
                        "last_activity": "2099-01-01T00:00:00+00:00",
                    },
                    {"created_at": "broken"},
                ],
            }
        )

        restored = await harness.manager.load_state()

        assert restored.value == []
        assert harness.manager.active_count == 0

    async def test_no_state_file(self, harness: Harness) -> None:
        assert (await harness.manager.load_state()).value == []

    async def test_malformed_sessions_value_restores_nothing(self, harness: Harness) -> None:
        await harness.store.write_state({"active_agents": ["pm"], "sessions": 5})

        restored = await harness.manager.load_state()

        assert restored.value == []
        assert harness.manager.active_count == 0

    async def test_undecodable_state_file_is_err(self, harness: Harness) -> None:
        harness.store.path.parent.mkdir(parents=True, exist_ok=True)
        harness.store.path.write_bytes(b"\xff\xfe{}")

        restored = await harness.manager.load_state()

        assert restored.is_err
        assert harness.manager.active_count == 0

    async def test_shutdown_saves_then_deactivates(self, harness: Harness) -> None:
        await harness.manager.activate_agent("pm")
        await harness.manager.start()

        saved = await harness.manager.shutdown()

        assert saved.is_ok
        assert harness.manager.active_count == 0
        assert not harness.manager.is_running
        state = (await harness.store.read_state()).value
        assert state["active_agents"] == ["pm"]
        assert state["sessions"][0]["agent_id"] == "pm"

    async def test_snapshot_holds_no_payloads(self, harness: Harness) -> None:
        await harness.manager.activate_agent("pm", {"token": "secret"})
        snapshot = harness.manager.snapshot_state()
        assert set(snapshot) == {"version", "active_agents", "sessions", "saved_at"}
        assert "secret" not in str(snapshot)


class TestOverrideHelpers:
    async def test_use_alternative_lists_same_role(self, harness: Harness) -> None:
        result = await harness.manager.activate_agent("bmad-architect")

        outcome = await harness.recovery.execute_manual_override(
            result.report.error_id, "use-alternative"
        )

        assert outcome.value.details["alternatives"] == ["architect", "game-architect"]

    async def test_force_register_retries_failed_documents(self, harness: Harness) -> None:
        result = await harness.manager.activate_agent("ghost")
        outcome = await harness.recovery.execute_manual_override(
            result.report.error_id, "force-register"
        )
        assert outcome.value.details == {"recovered_registrations": 0, "registered": False}
