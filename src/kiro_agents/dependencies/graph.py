"""Cross-agent dependency analysis.

Pure functions over agent definitions:
- build_dependency_graph: resource -> agents, agent -> resources, shared
  resources, stats, and cycles in the agent-to-agent ``depends_on`` relation
- resolve_dependency_conflicts: version and naming conflicts between
  dependency records, with non-binding resolution suggestions
- optimize_dependency_loading: priority-first loading order and batches of
  agents that share resources
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from kiro_agents.agents.definition import AgentDefinition

PRIORITY_RANK = {"critical": 0, "high": 1, "normal": 2, "low": 3}


# =============================================================================
# Dependency graph
# =============================================================================


@dataclass(frozen=True, slots=True)
class DependencyStats:
    total: int
    shared: int
    unique: int

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "shared": self.shared, "unique": self.unique}


@dataclass(frozen=True, slots=True)
class DependencyGraph:
    """Bidirectional view of resource dependencies across agents.

    Attributes:
        dependencies: Resource name -> ids of agents declaring it.
        dependents: Agent id -> resource names it declares.
        shared: Resources declared by more than one agent.
        stats: Total, shared and unique resource counts.
        circular_dependencies: Cycles in the agent ``depends_on`` relation,
            each closed (first id repeated at the end).
    """

    dependencies: dict[str, list[str]] = field(default_factory=dict)
    dependents: dict[str, list[str]] = field(default_factory=dict)
    shared: dict[str, list[str]] = field(default_factory=dict)
    stats: DependencyStats = field(default_factory=lambda: DependencyStats(0, 0, 0))
    circular_dependencies: list[list[str]] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.circular_dependencies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dependencies": {k: list(v) for k, v in self.dependencies.items()},
            "dependents": {k: list(v) for k, v in self.dependents.items()},
            "shared": {k: list(v) for k, v in self.shared.items()},
            "stats": self.stats.to_dict(),
            "circular_dependencies": [list(c) for c in self.circular_dependencies],
        }


def _canonical_cycle(cycle: list[str]) -> tuple[str, ...]:
    # Rotate so the smallest id comes first; the closing id is dropped.
    body = cycle[:-1]
    start = body.index(min(body))
    return tuple(body[start:] + body[:start])


def find_cycles(edges: dict[str, Sequence[str]]) -> list[list[str]]:
    """Find distinct cycles in a directed graph given as adjacency lists.

    Edges pointing at unknown nodes are ignored.
    """
    cycles: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()
    visited: set[str] = set()

    def visit(node: str, stack: list[str], on_stack: set[str]) -> None:
        visited.add(node)
        stack.append(node)
        on_stack.add(node)
        for target in edges.get(node, ()):
            if target not in edges:
                continue
            if target in on_stack:
                cycle = stack[stack.index(target) :] + [target]
                key = _canonical_cycle(cycle)
                if key not in seen:
                    seen.add(key)
                    cycles.append(cycle)
            elif target not in visited:
                visit(target, stack, on_stack)
        stack.pop()
        on_stack.discard(node)

    for node in edges:
        if node not in visited:
            visit(node, [], set())
    return cycles


def build_dependency_graph(agents: Iterable[AgentDefinition]) -> DependencyGraph:
    """Build the dependency graph for a set of agents.

    Agents with no declared dependencies appear in ``dependents`` with an
    empty list. Resource names are flattened across categories.
    """
    dependencies: dict[str, list[str]] = {}
    dependents: dict[str, list[str]] = {}
    depends_on: dict[str, tuple[str, ...]] = {}

    for agent in agents:
        names = dependents.setdefault(agent.id, [])
        depends_on[agent.id] = agent.depends_on
        for resources in agent.declared_dependencies.values():
            for name in resources:
                if name not in names:
                    names.append(name)
                requesters = dependencies.setdefault(name, [])
                if agent.id not in requesters:
                    requesters.append(agent.id)

    shared = {name: ids for name, ids in dependencies.items() if len(ids) > 1}
    return DependencyGraph(
        dependencies=dependencies,
        dependents=dependents,
        shared=shared,
        stats=DependencyStats(
            total=len(dependencies),
            shared=len(shared),
            unique=len(dependencies) - len(shared),
        ),
        circular_dependencies=find_cycles(depends_on),
    )


# =============================================================================
# Conflicts
# =============================================================================


@dataclass(frozen=True, slots=True)
class DependencyRecord:
    """One requester's declaration of a resource, optionally versioned."""

    name: str
    required_by: str
    version: str | None = None


@dataclass(frozen=True, slots=True)
class VersionConflict:
    dependency: str
    versions: list[str]
    required_by: list[str]


@dataclass(frozen=True, slots=True)
class NamingConflict:
    normalized: str
    names: list[str]


@dataclass(frozen=True, slots=True)
class ConflictResolution:
    dependency: str
    strategy: str
    suggestion: str


@dataclass(frozen=True, slots=True)
class ConflictReport:
    """Conflicts surfaced between dependency records; nothing is auto-picked."""

    version_conflicts: list[VersionConflict] = field(default_factory=list)
    naming_conflicts: list[NamingConflict] = field(default_factory=list)
    resolutions: list[ConflictResolution] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.version_conflicts or self.naming_conflicts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version_conflicts": [
                {"dependency": c.dependency, "versions": c.versions, "required_by": c.required_by}
                for c in self.version_conflicts
            ],
            "naming_conflicts": [
                {"normalized": c.normalized, "names": c.names} for c in self.naming_conflicts
            ],
            "resolutions": [
                {"dependency": r.dependency, "strategy": r.strategy, "suggestion": r.suggestion}
                for r in self.resolutions
            ],
            "has_conflicts": self.has_conflicts,
        }


def _normalize_resource_name(name: str) -> str:
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return stem.lower().replace("_", "-")


def _version_key(version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for part in version.lstrip("vV").split("."):
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def resolve_dependency_conflicts(records: Iterable[DependencyRecord]) -> ConflictReport:
    """Detect version and naming conflicts between dependency records."""
    versions: dict[str, list[str]] = {}
    requesters: dict[str, list[str]] = {}
    spellings: dict[str, list[str]] = {}

    for record in records:
        if record.version is not None:
            seen = versions.setdefault(record.name, [])
            if record.version not in seen:
                seen.append(record.version)
        who = requesters.setdefault(record.name, [])
        if record.required_by not in who:
            who.append(record.required_by)
        names = spellings.setdefault(_normalize_resource_name(record.name), [])
        if record.name not in names:
            names.append(record.name)

    version_conflicts: list[VersionConflict] = []
    resolutions: list[ConflictResolution] = []
    for name, found in versions.items():
        if len(found) < 2:
            continue
        version_conflicts.append(VersionConflict(name, list(found), list(requesters[name])))
        latest = max(found, key=_version_key)
        resolutions.append(
            ConflictResolution(
                dependency=name,
                strategy="use-latest",
                suggestion=f"Use version {latest} of {name} for all requesters",
            )
        )

    naming_conflicts: list[NamingConflict] = []
    for normalized, names in spellings.items():
        if len(names) < 2:
            continue
        naming_conflicts.append(NamingConflict(normalized, list(names)))
        resolutions.append(
            ConflictResolution(
                dependency=normalized,
                strategy="unify-name",
                suggestion=f"Rename {', '.join(names)} to a single name",
            )
        )

    return ConflictReport(version_conflicts, naming_conflicts, resolutions)


# =============================================================================
# Loading optimization
# =============================================================================


@dataclass(frozen=True, slots=True)
class LoadingPlan:
    """Loading order and batches for activating many agents together.

    Attributes:
        loading_order: Agent ids, higher priority first, otherwise stable.
        batch_groups: Agents sharing at least one resource are batched
            together; shared groups come before independent agents.
        shared_first: Shared resources, most requested first.
    """

    loading_order: list[str] = field(default_factory=list)
    batch_groups: list[list[str]] = field(default_factory=list)
    shared_first: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loading_order": list(self.loading_order),
            "batch_groups": [list(g) for g in self.batch_groups],
            "shared_first": list(self.shared_first),
        }


def optimize_dependency_loading(agents: Sequence[AgentDefinition]) -> LoadingPlan:
    agents = list(agents)
    ordered = sorted(agents, key=lambda a: PRIORITY_RANK.get(a.priority, PRIORITY_RANK["normal"]))
    loading_order = [a.id for a in ordered]

    graph = build_dependency_graph(agents)

    parent = {agent_id: agent_id for agent_id in loading_order}

    def find(x: str) -> str:
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    for ids in graph.shared.values():
        root = find(ids[0])
        for other in ids[1:]:
            parent[find(other)] = root

    groups: dict[str, list[str]] = {}
    for agent_id in loading_order:
        groups.setdefault(find(agent_id), []).append(agent_id)

    shared_groups = [g for g in groups.values() if len(g) > 1]
    independent = [g for g in groups.values() if len(g) == 1]

    shared_first = sorted(graph.shared, key=lambda name: (-len(graph.shared[name]), name))
    return LoadingPlan(
        loading_order=loading_order,
        batch_groups=shared_groups + independent,
        shared_first=shared_first,
    )


__all__ = [
    "PRIORITY_RANK",
    "ConflictReport",
    "ConflictResolution",
    "DependencyGraph",
    "DependencyRecord",
    "DependencyStats",
    "LoadingPlan",
    "NamingConflict",
    "VersionConflict",
    "build_dependency_graph",
    "find_cycles",
    "optimize_dependency_loading",
    "resolve_dependency_conflicts",
]
