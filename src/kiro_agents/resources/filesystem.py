"""Filesystem implementations of the resource interfaces.

Layout (directory names come from configuration):

    <root>/bmad-core/<category>/<name>                  base scope
    <root>/common/<category>/<name>                     common scope
    <root>/expansion-packs/<pack>/<category>/<name>     expansion scope
    <root>/.kiro/steering/<agent-id>.md                 steering text
    <root>/.kiro/hooks/*                                hook descriptors
"""

from __future__ import annotations

import asyncio
from collections.abc import Hashable, Sequence
from pathlib import Path

from kiro_agents.config.models import ActivationConfig, DependencyConfig, RegistryConfig
from kiro_agents.observability.logging import get_logger
from kiro_agents.resources.base import (
    AgentResources,
    FileContextBinding,
    HookDescriptor,
    ResourceScope,
    ScopeKind,
)

log = get_logger(__name__)

DEFAULT_FILE_CONTEXT = ("#File", "#Folder", "#Codebase")


class FileSystemResourceStore:
    """ResourceExistence backed by the project tree."""

    def __init__(
        self,
        project_root: Path,
        registry_config: RegistryConfig | None = None,
        dependency_config: DependencyConfig | None = None,
    ) -> None:
        self._root = Path(project_root)
        self._registry_config = registry_config or RegistryConfig()
        self._dependency_config = dependency_config or DependencyConfig()

    def scope_dir(self, category: str, scope: ResourceScope) -> Path:
        if scope.kind == ScopeKind.EXPANSION:
            return self._root / self._registry_config.expansion_dir / (scope.name or "") / category
        if scope.kind == ScopeKind.COMMON:
            return self._root / self._dependency_config.common_dir / category
        return self._root / self._registry_config.core_dir / category

    async def exists(self, category: str, name: str, scope: ResourceScope) -> bool:
        path = self.scope_dir(category, scope) / name
        return await asyncio.to_thread(path.is_file)

    async def list_names(self, category: str, scope: ResourceScope) -> list[str]:
        directory = self.scope_dir(category, scope)

        def _list() -> list[str]:
            if not directory.is_dir():
                return []
            return sorted(p.name for p in directory.iterdir() if p.is_file())

        return await asyncio.to_thread(_list)

    async def revision(self) -> Hashable:
        """Modification times of every resource directory in the tree."""

        def _snapshot() -> tuple[tuple[str, int], ...]:
            bases = [
                self._root / self._registry_config.core_dir,
                self._root / self._dependency_config.common_dir,
            ]
            expansion_root = self._root / self._registry_config.expansion_dir
            if expansion_root.is_dir():
                bases.extend(p for p in sorted(expansion_root.iterdir()) if p.is_dir())

            entries: list[tuple[str, int]] = []
            for base in bases:
                if not base.is_dir():
                    continue
                for directory in sorted(p for p in base.iterdir() if p.is_dir()):
                    entries.append((str(directory), directory.stat().st_mtime_ns))
            return tuple(entries)

        return await asyncio.to_thread(_snapshot)


class FileSystemResourceLoader:
    """ResourceLoader reading steering and hook documents from .kiro/."""

    def __init__(self, project_root: Path, config: ActivationConfig | None = None) -> None:
        self._root = Path(project_root)
        self._config = config or ActivationConfig()

    @property
    def steering_dir(self) -> Path:
        return self._root / self._config.steering_dir

    @property
    def hooks_dir(self) -> Path:
        return self._root / self._config.hooks_dir

    async def load(
        self,
        agent_id: str,
        *,
        expansion_pack: str | None = None,
        file_context: Sequence[str] = (),
    ) -> AgentResources:
        """Load resources for one agent.

        Raises:
            OSError: If an existing steering or hook file cannot be read.
        """
        return await asyncio.to_thread(self._load_sync, agent_id, expansion_pack, file_context)

    def _load_sync(
        self,
        agent_id: str,
        expansion_pack: str | None,
        file_context: Sequence[str],
    ) -> AgentResources:
        steering_path = self.steering_dir / f"{agent_id}.md"
        steering: str | None = None
        if steering_path.is_file():
            steering = steering_path.read_text(encoding="utf-8")

        hooks: list[HookDescriptor] = []
        if self.hooks_dir.is_dir():
            for path in sorted(self.hooks_dir.iterdir()):
                if not path.is_file():
                    continue
                if agent_id in path.name or (expansion_pack and expansion_pack in path.name):
                    hooks.append(
                        HookDescriptor(
                            name=path.stem,
                            path=path,
                            content=path.read_text(encoding="utf-8"),
                        )
                    )

        bindings = [FileContextBinding(provider) for provider in DEFAULT_FILE_CONTEXT]
        for provider in file_context:
            if provider not in DEFAULT_FILE_CONTEXT:
                bindings.append(FileContextBinding(provider, origin="agent"))

        log.debug(
            "resources.agent.loaded",
            agent_id=agent_id,
            steering=steering is not None,
            hooks=len(hooks),
        )
        return AgentResources(
            steering=steering,
            steering_path=steering_path if steering is not None else None,
            hooks=tuple(hooks),
            file_context=tuple(bindings),
        )
