"""Resource existence and loading for agents."""

from kiro_agents.resources.base import (
    AgentResources,
    FileContextBinding,
    HookDescriptor,
    ResourceExistence,
    ResourceLoader,
    ResourceScope,
    ScopeKind,
)
from kiro_agents.resources.filesystem import (
    DEFAULT_FILE_CONTEXT,
    FileSystemResourceLoader,
    FileSystemResourceStore,
)

__all__ = [
    "DEFAULT_FILE_CONTEXT",
    "AgentResources",
    "FileContextBinding",
    "FileSystemResourceLoader",
    "FileSystemResourceStore",
    "HookDescriptor",
    "ResourceExistence",
    "ResourceLoader",
    "ResourceScope",
    "ScopeKind",
]
