"""Agent Registry - discovery and registration of agent definitions.

This module provides:
- Registry initialization over a DefinitionSource
- Best-effort registration (malformed documents still register)
- Lookup by id, source, and expansion pack
- Aggregate statistics

Usage:
    registry = AgentRegistry(FileSystemDefinitionSource(project_root))
    await registry.initialize()

    agent = registry.get_agent("architect")
    phaser_agents = registry.get_agents_by_expansion_pack("bmad-2d-phaser-game-dev")
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import stamina

from kiro_agents.agents.definition import AgentDefinition
from kiro_agents.agents.handlers import ActivationHandler, create_handler
from kiro_agents.agents.parser import parse_definition
from kiro_agents.agents.store import (
    AgentSource,
    DefinitionDocument,
    DefinitionLocation,
    DefinitionSource,
    SourceKind,
)
from kiro_agents.config.models import RegistryConfig
from kiro_agents.core.errors import RegistrationError
from kiro_agents.core.text import normalize_agent_id
from kiro_agents.core.types import Result
from kiro_agents.observability.logging import get_logger

log = get_logger(__name__)


# =============================================================================
# Registry records
# =============================================================================


@dataclass(slots=True)
class RegisteredAgent:
    """A definition plus its bound activation handler and validation state.

    Attributes:
        definition: The parsed definition.
        handler: Activation capability bound to the definition.
        validation_errors: Problems found while parsing.
        is_fallback: Whether identity fields were derived heuristically.
        registered_at: When this record was (re-)registered.
    """

    definition: AgentDefinition
    handler: ActivationHandler
    validation_errors: list[str] = field(default_factory=list)
    is_fallback: bool = False
    registered_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors


@dataclass(frozen=True, slots=True)
class FailedRegistration:
    location: DefinitionLocation
    error: str
    attempts: int
    failed_at: datetime


@dataclass(frozen=True, slots=True)
class RegistryStatistics:
    """Aggregate registry counts.

    ``total_registered`` counts distinct ids, including fallback-parsed
    and invalid definitions.
    """

    total_registered: int
    valid: int
    invalid: int
    fallback_parsed: int
    by_source: dict[str, int]
    by_expansion_pack: dict[str, int]
    failed_registrations: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_registered": self.total_registered,
            "valid": self.valid,
            "invalid": self.invalid,
            "fallback_parsed": self.fallback_parsed,
            "by_source": dict(self.by_source),
            "by_expansion_pack": dict(self.by_expansion_pack),
            "failed_registrations": self.failed_registrations,
        }


# =============================================================================
# Agent Registry
# =============================================================================


class AgentRegistry:
    """Registry of agent definitions keyed by normalized id.

    Re-registering an id replaces the existing record in place.

    Example:
        registry = AgentRegistry(source, RegistryConfig(registration_attempts=2))
        await registry.initialize()
        stats = registry.get_statistics()
    """

    def __init__(
        self,
        source: DefinitionSource,
        config: RegistryConfig | None = None,
        *,
        handler_factory: Callable[[AgentDefinition], ActivationHandler] = create_handler,
    ) -> None:
        self._source = source
        self._config = config or RegistryConfig()
        self._handler_factory = handler_factory
        self._agents: dict[str, RegisteredAgent] = {}
        self._failed: dict[Path, FailedRegistration] = {}
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def source(self) -> DefinitionSource:
        return self._source

    async def initialize(self) -> bool:
        """Discover and register every document of the definition source.

        Individual unreadable documents are recorded as failed registrations
        and do not fail initialization.

        Returns:
            True once the source has been walked.

        Raises:
            DefinitionStoreError: If the definition source is unreachable.
        """
        log.info("registry.initialization.started", roots=[str(r) for r in self._source.roots])

        locations = await self._source.list_documents()
        registered = 0
        for location in locations:
            result = await self.register_agent_from_file(location)
            if result.is_ok:
                registered += 1

        self._initialized = True
        log.info(
            "registry.initialization.completed",
            documents=len(locations),
            registered=registered,
            distinct_agents=len(self._agents),
            failed=len(self._failed),
        )
        return True

    async def _read_with_retry(self, location: DefinitionLocation) -> DefinitionDocument:
        @stamina.retry(
            on=OSError,
            attempts=self._config.registration_attempts,
            wait_initial=self._config.registration_wait_initial,
            wait_max=self._config.registration_wait_max,
            wait_jitter=self._config.registration_wait_initial,
        )
        async def _read() -> DefinitionDocument:
            return await self._source.read(location)

        return await _read()

    async def register_agent_from_file(
        self, location: DefinitionLocation | Path
    ) -> Result[RegisteredAgent, RegistrationError]:
        """Read, parse, and register one definition document.

        Parse problems never reject the document; the record is registered
        with its validation errors. Only I/O failures (after retries) fail.

        Args:
            location: Document location, or a bare path whose source is
                inferred from the directory layout.

        Returns:
            Result containing the registered record or a RegistrationError.
        """
        if isinstance(location, Path):
            location = DefinitionLocation(
                location, AgentSource.from_path(location, self._config.expansion_dir)
            )

        try:
            document = await self._read_with_retry(location)
        except OSError as e:
            error = RegistrationError(
                f"Failed to read agent definition {location.path}: {e}",
                path=str(location.path),
                attempts=self._config.registration_attempts,
            )
            self._failed[location.path] = FailedRegistration(
                location=location,
                error=str(e),
                attempts=self._config.registration_attempts,
                failed_at=datetime.now(UTC),
            )
            log.warning(
                "registry.agent.registration_failed",
                path=str(location.path),
                error=str(e),
            )
            return Result.err(error)

        metadata = parse_definition(document.text, location.path)
        if document.undecodable:
            metadata = replace(
                metadata,
                validation_errors=(
                    *metadata.validation_errors,
                    "Document is not valid UTF-8; undecodable bytes were replaced",
                ),
            )
        definition = AgentDefinition.from_document(document, metadata)
        record = RegisteredAgent(
            definition=definition,
            handler=self._handler_factory(definition),
            validation_errors=list(metadata.validation_errors),
            is_fallback=metadata.is_fallback,
        )

        replaced = self._agents.get(definition.id)
        self._agents[definition.id] = record
        self._failed.pop(location.path, None)

        if metadata.validation_errors:
            log.warning(
                "registry.agent.validation_failed",
                agent_id=definition.id,
                path=str(location.path),
                errors=list(metadata.validation_errors),
                fallback=metadata.is_fallback,
            )
        log.info(
            "registry.agent.updated" if replaced else "registry.agent.registered",
            agent_id=definition.id,
            source=definition.source.kind.value,
            expansion_pack=definition.expansion_pack,
            fallback=metadata.is_fallback,
        )
        return Result.ok(record)

    async def retry_failed_registrations(self) -> int:
        """Retry every recorded failed registration.

        Returns:
            Number of documents registered by this pass.
        """
        recovered = 0
        for failure in list(self._failed.values()):
            result = await self.register_agent_from_file(failure.location)
            if result.is_ok:
                recovered += 1
        log.info(
            "registry.failed_registrations.retried",
            recovered=recovered,
            remaining=len(self._failed),
        )
        return recovered

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    def get_agent(self, agent_id: str) -> RegisteredAgent | None:
        """Look up an agent by id; raw ids are normalized before lookup."""
        record = self._agents.get(agent_id)
        if record is None:
            record = self._agents.get(normalize_agent_id(agent_id))
        return record

    def has_agent(self, agent_id: str) -> bool:
        return self.get_agent(agent_id) is not None

    def list_agents(self) -> list[RegisteredAgent]:
        return list(self._agents.values())

    def get_agents_by_source(self, source: SourceKind | str) -> list[RegisteredAgent]:
        try:
            kind = SourceKind(source)
        except ValueError:
            return []
        return [a for a in self._agents.values() if a.definition.source.kind == kind]

    def get_agents_by_expansion_pack(self, pack: str) -> list[RegisteredAgent]:
        return [a for a in self._agents.values() if a.definition.expansion_pack == pack]

    def get_failed_registrations(self) -> list[FailedRegistration]:
        return list(self._failed.values())

    def get_statistics(self) -> RegistryStatistics:
        agents = list(self._agents.values())
        by_source = Counter(a.definition.source.kind.value for a in agents)
        by_pack = Counter(
            a.definition.expansion_pack for a in agents if a.definition.expansion_pack
        )
        valid = sum(1 for a in agents if a.is_valid)
        return RegistryStatistics(
            total_registered=len(agents),
            valid=valid,
            invalid=len(agents) - valid,
            fallback_parsed=sum(1 for a in agents if a.is_fallback),
            by_source=dict(by_source),
            by_expansion_pack=dict(by_pack),
            failed_registrations=len(self._failed),
        )


__all__ = [
    "AgentRegistry",
    "FailedRegistration",
    "RegisteredAgent",
    "RegistryStatistics",
]
