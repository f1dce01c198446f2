"""Resource interfaces consumed by the resolver and the activation manager.

- ResourceExistence answers "does resource <category>/<name> exist in scope?"
- ResourceLoader returns the ancillary resources bound to an active agent
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol


class ScopeKind(str, Enum):
    """Resource namespaces, searched expansion -> common -> base."""

    EXPANSION = "expansion-pack"
    COMMON = "common"
    BASE = "bmad-core"


@dataclass(frozen=True, slots=True)
class ResourceScope:
    kind: ScopeKind
    name: str | None = None

    @classmethod
    def expansion(cls, pack: str) -> ResourceScope:
        return cls(ScopeKind.EXPANSION, pack)

    @classmethod
    def common(cls) -> ResourceScope:
        return cls(ScopeKind.COMMON)

    @classmethod
    def base(cls) -> ResourceScope:
        return cls(ScopeKind.BASE)

    @property
    def label(self) -> str:
        if self.name:
            return f"{self.kind.value}:{self.name}"
        return self.kind.value


class ResourceExistence(Protocol):
    """Backing store for dependency existence checks."""

    async def exists(self, category: str, name: str, scope: ResourceScope) -> bool: ...

    async def list_names(self, category: str, scope: ResourceScope) -> list[str]:
        """Names available in a category and scope (used for suggestions)."""
        ...

    async def revision(self) -> Hashable:
        """Token that changes whenever the resource set changes."""
        ...


@dataclass(frozen=True, slots=True)
class HookDescriptor:
    """A hook document bound to an active agent."""

    name: str
    path: Path
    content: str


@dataclass(frozen=True, slots=True)
class FileContextBinding:
    """A file-context provider made available to an active agent.

    ``origin`` is "default" for project-wide providers and "agent" for
    providers the definition declares.
    """

    provider: str
    origin: str = "default"


@dataclass(frozen=True, slots=True)
class AgentResources:
    """Ancillary resources attached to an active agent instance."""

    steering: str | None = None
    steering_path: Path | None = None
    hooks: tuple[HookDescriptor, ...] = ()
    file_context: tuple[FileContextBinding, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.steering is None and not self.hooks and not self.file_context


class ResourceLoader(Protocol):
    """Loads steering text, hook descriptors, and file-context bindings."""

    async def load(
        self,
        agent_id: str,
        *,
        expansion_pack: str | None = None,
        file_context: Sequence[str] = (),
    ) -> AgentResources: ...
