"""Dependency resolution and cross-agent dependency analysis."""

from kiro_agents.dependencies.graph import (
    ConflictReport,
    DependencyGraph,
    DependencyRecord,
    LoadingPlan,
    build_dependency_graph,
    optimize_dependency_loading,
    resolve_dependency_conflicts,
)
from kiro_agents.dependencies.resolver import (
    DependencyResolutionResult,
    DependencyResolver,
    DependencyValidation,
)

__all__ = [
    "ConflictReport",
    "DependencyGraph",
    "DependencyRecord",
    "DependencyResolutionResult",
    "DependencyResolver",
    "DependencyValidation",
    "LoadingPlan",
    "build_dependency_graph",
    "optimize_dependency_loading",
    "resolve_dependency_conflicts",
]
