"""Durable activation state."""

from kiro_agents.state.store import AgentStateStore, SchemaMigration

__all__ = ["AgentStateStore", "SchemaMigration"]
