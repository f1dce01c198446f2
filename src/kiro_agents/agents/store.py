"""Definition Store - filesystem-backed agent definition documents.

A project tree holds the base agent set and any number of expansion packs:

    <root>/bmad-core/agents/*.md
    <root>/expansion-packs/<pack>/agents/*.md

The registry consumes documents through the DefinitionSource protocol, so
hosts can supply definitions from elsewhere (bundles, archives, tests).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Protocol

from kiro_agents.config.models import RegistryConfig
from kiro_agents.core.errors import DefinitionStoreError
from kiro_agents.observability.logging import get_logger

log = get_logger(__name__)


class SourceKind(str, Enum):
    """Origin category of an agent definition."""

    BASE = "bmad-core"
    EXPANSION = "expansion-pack"


@dataclass(frozen=True, slots=True)
class AgentSource:
    """Where a definition came from: the base set or a named expansion pack."""

    kind: SourceKind
    expansion_pack: str | None = None

    @classmethod
    def base(cls) -> AgentSource:
        return cls(SourceKind.BASE)

    @classmethod
    def expansion(cls, pack: str) -> AgentSource:
        return cls(SourceKind.EXPANSION, pack)

    @classmethod
    def from_path(cls, path: Path, expansion_dir: str = "expansion-packs") -> AgentSource:
        """Infer the source from a path containing ``<expansion_dir>/<pack>``."""
        parts = path.parts
        for index, part in enumerate(parts[:-1]):
            if part == expansion_dir:
                return cls.expansion(parts[index + 1])
        return cls.base()

    @property
    def is_expansion(self) -> bool:
        return self.kind == SourceKind.EXPANSION

    @property
    def label(self) -> str:
        """Display label, e.g. "bmad-core" or "expansion-pack:bmad-2d-phaser-game-dev"."""
        if self.expansion_pack:
            return f"{self.kind.value}:{self.expansion_pack}"
        return self.kind.value


@dataclass(frozen=True, slots=True)
class DefinitionLocation:
    """Identity of a definition document within a source."""

    path: Path
    source: AgentSource


@dataclass(frozen=True, slots=True)
class DefinitionDocument:
    """Raw document text plus identity and modification time.

    ``undecodable`` is set when the file was not valid UTF-8; offending bytes
    are replaced with U+FFFD in ``text``.
    """

    location: DefinitionLocation
    text: str
    last_modified: datetime
    undecodable: bool = False


class DefinitionSource(Protocol):
    """Enumerates and reads agent definition documents."""

    @property
    def roots(self) -> list[Path]:
        """Roots searched for documents (for diagnostics)."""
        ...

    async def list_documents(self) -> list[DefinitionLocation]:
        """Enumerate documents.

        Raises:
            DefinitionStoreError: If no root is reachable.
        """
        ...

    async def read(self, location: DefinitionLocation) -> DefinitionDocument:
        """Read one document. Raises OSError on I/O failure."""
        ...


class FileSystemDefinitionSource:
    """DefinitionSource over a BMad project tree.

    Example:
        source = FileSystemDefinitionSource(Path("."))
        for location in await source.list_documents():
            document = await source.read(location)
    """

    def __init__(self, project_root: Path, config: RegistryConfig | None = None) -> None:
        self._project_root = Path(project_root)
        self._config = config or RegistryConfig()

    @property
    def project_root(self) -> Path:
        return self._project_root

    @property
    def core_agents_dir(self) -> Path:
        return self._project_root / self._config.core_dir / self._config.agents_subdir

    @property
    def expansion_root(self) -> Path:
        return self._project_root / self._config.expansion_dir

    @property
    def roots(self) -> list[Path]:
        return [self.core_agents_dir, self.expansion_root]

    async def list_documents(self) -> list[DefinitionLocation]:
        return await asyncio.to_thread(self._scan)

    def _scan(self) -> list[DefinitionLocation]:
        core_dir = self.core_agents_dir
        expansion_root = self.expansion_root

        if not core_dir.is_dir() and not expansion_root.is_dir():
            raise DefinitionStoreError(
                f"No agent definition roots found under {self._project_root}",
                roots=[str(root) for root in self.roots],
            )

        locations: list[DefinitionLocation] = []
        try:
            if core_dir.is_dir():
                for path in sorted(core_dir.glob(self._config.file_pattern)):
                    if path.is_file():
                        locations.append(DefinitionLocation(path, AgentSource.base()))

            if expansion_root.is_dir():
                for pack_dir in sorted(p for p in expansion_root.iterdir() if p.is_dir()):
                    agents_dir = pack_dir / self._config.agents_subdir
                    if not agents_dir.is_dir():
                        continue
                    pack_source = AgentSource.expansion(pack_dir.name)
                    for path in sorted(agents_dir.glob(self._config.file_pattern)):
                        if path.is_file():
                            locations.append(DefinitionLocation(path, pack_source))
        except OSError as e:
            raise DefinitionStoreError(
                f"Agent definition roots are not readable: {e}",
                roots=[str(root) for root in self.roots],
                details={"error": str(e)},
            ) from e

        log.debug(
            "store.documents.listed",
            root=str(self._project_root),
            count=len(locations),
        )
        return locations

    async def read(self, location: DefinitionLocation) -> DefinitionDocument:
        return await asyncio.to_thread(self._read_sync, location)

    @staticmethod
    def _read_sync(location: DefinitionLocation) -> DefinitionDocument:
        path = location.path
        raw = path.read_bytes()
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
        try:
            text, undecodable = raw.decode("utf-8"), False
        except UnicodeDecodeError:
            text, undecodable = raw.decode("utf-8", errors="replace"), True
        return DefinitionDocument(
            location=location, text=text, last_modified=modified, undecodable=undecodable
        )


__all__ = [
    "AgentSource",
    "DefinitionDocument",
    "DefinitionLocation",
    "DefinitionSource",
    "FileSystemDefinitionSource",
    "SourceKind",
]
