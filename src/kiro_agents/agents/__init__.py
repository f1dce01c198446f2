"""Agent definitions: store, parsing, roles, handlers, and the registry."""

from kiro_agents.agents.definition import AgentDefinition
from kiro_agents.agents.handlers import (
    ActivationHandler,
    ActivationPayload,
    CoreAgentHandler,
    ExpansionPackAgentHandler,
    create_handler,
)
from kiro_agents.agents.parser import ParsedMetadata, parse_definition
from kiro_agents.agents.registry import AgentRegistry, RegisteredAgent, RegistryStatistics
from kiro_agents.agents.roles import GENERAL_ROLE, derive_role, display_name_for
from kiro_agents.agents.store import (
    AgentSource,
    DefinitionDocument,
    DefinitionLocation,
    DefinitionSource,
    FileSystemDefinitionSource,
    SourceKind,
)

__all__ = [
    "ActivationHandler",
    "ActivationPayload",
    "AgentDefinition",
    "AgentRegistry",
    "AgentSource",
    "CoreAgentHandler",
    "DefinitionDocument",
    "DefinitionLocation",
    "DefinitionSource",
    "ExpansionPackAgentHandler",
    "FileSystemDefinitionSource",
    "GENERAL_ROLE",
    "ParsedMetadata",
    "RegisteredAgent",
    "RegistryStatistics",
    "SourceKind",
    "create_handler",
    "derive_role",
    "display_name_for",
    "parse_definition",
]
