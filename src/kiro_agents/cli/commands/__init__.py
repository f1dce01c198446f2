"""CLI command groups for kiro-agents.

- agents: list and show registered agents
- deps: check dependencies, show the dependency graph
- state: show persisted activation state
"""
