"""Activation handlers bound to registered agents.

Each registered agent carries an ActivationHandler. The activation manager
calls ``activate(context)`` and receives a Result: Ok with the payload that
describes the live agent, or Err when the definition cannot be activated.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from kiro_agents.agents.definition import AgentDefinition
from kiro_agents.core.errors import ActivationHandlerError
from kiro_agents.core.types import Result


@dataclass(frozen=True, slots=True)
class ActivationPayload:
    """What an activation handler hands back to the activation manager."""

    agent_id: str
    name: str
    source: str
    persona_role: str | None = None
    commands: tuple[str, ...] = ()
    dependencies: dict[str, tuple[str, ...]] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


class ActivationHandler(Protocol):
    """Capability to activate one agent definition."""

    async def activate(
        self, context: Mapping[str, Any]
    ) -> Result[ActivationPayload, ActivationHandlerError]: ...


class CoreAgentHandler:
    """Handler for agents of the base set."""

    def __init__(self, definition: AgentDefinition) -> None:
        self._definition = definition

    @property
    def definition(self) -> AgentDefinition:
        return self._definition

    def _metadata(self, context: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "title": self._definition.title,
            "priority": self._definition.priority,
            "context_keys": sorted(str(key) for key in context),
        }

    async def activate(
        self, context: Mapping[str, Any]
    ) -> Result[ActivationPayload, ActivationHandlerError]:
        definition = self._definition
        if not definition.raw_body.strip():
            return Result.err(
                ActivationHandlerError(
                    f"Agent {definition.id} has an empty definition",
                    agent_id=definition.id,
                )
            )

        return Result.ok(
            ActivationPayload(
                agent_id=definition.id,
                name=definition.name,
                source=definition.source.label,
                persona_role=definition.persona_role,
                commands=definition.commands,
                dependencies=dict(definition.declared_dependencies),
                metadata=self._metadata(context),
            )
        )


class ExpansionPackAgentHandler(CoreAgentHandler):
    """Handler for agents shipped by an expansion pack.

    Adds the pack name to the payload metadata and refuses definitions whose
    source lost its pack name.
    """

    def _metadata(self, context: Mapping[str, Any]) -> dict[str, Any]:
        metadata = super()._metadata(context)
        metadata["expansion_pack"] = self.definition.expansion_pack
        return metadata

    async def activate(
        self, context: Mapping[str, Any]
    ) -> Result[ActivationPayload, ActivationHandlerError]:
        if not self.definition.expansion_pack:
            return Result.err(
                ActivationHandlerError(
                    f"Expansion agent {self.definition.id} has no pack name",
                    agent_id=self.definition.id,
                )
            )
        return await super().activate(context)


def create_handler(definition: AgentDefinition) -> ActivationHandler:
    """Pick the handler implementation for a definition's source."""
    if definition.source.is_expansion:
        return ExpansionPackAgentHandler(definition)
    return CoreAgentHandler(definition)


__all__ = [
    "ActivationHandler",
    "ActivationPayload",
    "CoreAgentHandler",
    "ExpansionPackAgentHandler",
    "create_handler",
]
