"""AgentDefinition - immutable, parsed agent definition."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType

from kiro_agents.agents.parser import ParsedMetadata
from kiro_agents.agents.store import AgentSource, DefinitionDocument


@dataclass(frozen=True, slots=True)
class AgentDefinition:
    """An agent definition as registered.

    Attributes:
        id: Unique, normalized agent id.
        name: Display name.
        description: One-line description.
        source: Base set or expansion pack.
        declared_dependencies: Category -> resource names.
        raw_body: Full document text.
        last_modified: Document modification time.
        path: Document path, when loaded from a file.
        title: Agent title (BMad layout).
        persona_role: Persona role text (BMad layout).
        depends_on: Ids of agents this agent builds on.
        priority: Loading priority ("high", "normal", "low").
        version: Declared definition version.
        file_context: Declared file-context providers.
        commands: Declared command names.
    """

    id: str
    name: str
    description: str
    source: AgentSource
    declared_dependencies: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    raw_body: str = ""
    last_modified: datetime = field(default_factory=lambda: datetime.now(UTC))
    path: Path | None = None
    title: str | None = None
    persona_role: str | None = None
    depends_on: tuple[str, ...] = ()
    priority: str = "normal"
    version: str | None = None
    file_context: tuple[str, ...] = ()
    commands: tuple[str, ...] = ()

    @property
    def expansion_pack(self) -> str | None:
        return self.source.expansion_pack

    @classmethod
    def from_document(
        cls, document: DefinitionDocument, metadata: ParsedMetadata
    ) -> AgentDefinition:
        """Build a definition from a read document and its parsed metadata."""
        return cls(
            id=metadata.agent_id,
            name=metadata.name,
            description=metadata.description,
            source=document.location.source,
            declared_dependencies=MappingProxyType(dict(metadata.dependencies)),
            raw_body=document.text,
            last_modified=document.last_modified,
            path=document.location.path,
            title=metadata.title,
            persona_role=metadata.persona_role,
            depends_on=metadata.depends_on,
            priority=metadata.priority,
            version=metadata.version,
            file_context=metadata.file_context,
            commands=metadata.commands,
        )
