"""RegistrySession - explicitly owned wiring of the agent lifecycle subsystem.

A session builds and owns one of each component: definition source,
registry, resource store and loader, dependency resolver, recovery handler,
monitor, and activation manager. Nothing is process-global, so several
sessions (one per test, one per project) can coexist.

Usage:
    async with RegistrySession(project_root) as session:
        result = await session.activation.activate_agent("architect")
        deps = await session.resolver.resolve_dependencies(
            session.registry.get_agent("architect").definition
        )
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType

from kiro_agents.activation.manager import ActivationManager
from kiro_agents.activation.monitor import ActivationMonitor
from kiro_agents.activation.recovery import ErrorRecoveryHandler
from kiro_agents.agents.registry import AgentRegistry
from kiro_agents.agents.store import FileSystemDefinitionSource
from kiro_agents.config.loader import load_config
from kiro_agents.config.models import KiroAgentsConfig
from kiro_agents.dependencies.graph import DependencyGraph
from kiro_agents.dependencies.resolver import DependencyResolver
from kiro_agents.observability.logging import bind_context, get_logger, unbind_context
from kiro_agents.resources.filesystem import FileSystemResourceLoader, FileSystemResourceStore
from kiro_agents.state.store import AgentStateStore

log = get_logger(__name__)


class RegistrySession:
    """Owns the lifecycle components for one project tree.

    Args:
        project_root: Root of the project (contains bmad-core/, .kiro/, ...).
        config: Configuration; loaded from the project when omitted.
        start_sweeper: Whether ``initialize`` starts the session sweep.
        restore_state: Whether ``initialize`` restores persisted sessions.
    """

    def __init__(
        self,
        project_root: Path | str,
        config: KiroAgentsConfig | None = None,
        *,
        start_sweeper: bool = True,
        restore_state: bool = False,
    ) -> None:
        self.project_root = Path(project_root)
        self.config = config if config is not None else load_config(project_root=self.project_root)
        self._start_sweeper = start_sweeper
        self._restore_state = restore_state

        self.source = FileSystemDefinitionSource(self.project_root, self.config.registry)
        self.registry = AgentRegistry(self.source, self.config.registry)
        self.resource_store = FileSystemResourceStore(
            self.project_root, self.config.registry, self.config.dependencies
        )
        self.resource_loader = FileSystemResourceLoader(self.project_root, self.config.activation)
        self.resolver = DependencyResolver(self.resource_store, self.config.dependencies)
        self.recovery = ErrorRecoveryHandler(
            self.project_root, self.config.recovery, self.config.activation
        )
        self.monitor = ActivationMonitor()
        self.state_store = AgentStateStore(self.project_root / self.config.activation.state_file)
        self.activation = ActivationManager(
            self.registry,
            self.resource_loader,
            self.recovery,
            self.state_store,
            self.config.activation,
            monitor=self.monitor,
        )
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Register every definition and build the dependency graph.

        Raises:
            DefinitionStoreError: If the definition store is unreachable.
        """
        bind_context(project_root=str(self.project_root))
        await self.registry.initialize()
        self.build_graph()

        if self._restore_state:
            restored = await self.activation.load_state()
            if restored.is_err:
                log.warning("session.state.restore_failed", error=str(restored.error))
        if self._start_sweeper:
            await self.activation.start()

        self._initialized = True
        log.info(
            "session.initialized",
            agents=len(self.registry.list_agents()),
            active=self.activation.active_count,
        )

    def build_graph(self) -> DependencyGraph:
        """Rebuild the dependency graph from the current agent set."""
        definitions = [agent.definition for agent in self.registry.list_agents()]
        return self.resolver.build_dependency_graph(definitions)

    async def close(self) -> None:
        """Shut down activation (saving state first) and release the session."""
        if self._initialized:
            await self.activation.shutdown()
        else:
            await self.activation.stop()
        self._initialized = False
        unbind_context("project_root")
        log.info("session.closed")

    async def __aenter__(self) -> RegistrySession:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


__all__ = ["RegistrySession"]
