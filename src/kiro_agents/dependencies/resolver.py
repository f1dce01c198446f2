"""Dependency Resolver - existence checks for declared agent resources.

This module provides:
- Per-agent resolution into resolved/missing resources with suggestions
- Scoped lookup: own expansion namespace, then common, then the base set
- Caching of existence checks and results, invalidated on resource changes
- Thin wrappers over the graph, conflict and loading-plan analyses

Usage:
    resolver = DependencyResolver(FileSystemResourceStore(project_root))
    result = await resolver.resolve_dependencies(agent.definition)
    if not result.is_complete:
        print(result.missing, result.suggestions)
"""

from __future__ import annotations

import asyncio
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import difflib
from typing import Any

from kiro_agents.agents.definition import AgentDefinition
from kiro_agents.agents.store import AgentSource
from kiro_agents.config.models import DependencyConfig
from kiro_agents.core.text import kebab_to_snake, snake_to_kebab
from kiro_agents.core.types import DependencyMap
from kiro_agents.dependencies.graph import (
    ConflictReport,
    DependencyGraph,
    DependencyRecord,
    LoadingPlan,
    build_dependency_graph,
    optimize_dependency_loading,
    resolve_dependency_conflicts,
)
from kiro_agents.observability.logging import get_logger
from kiro_agents.resources.base import ResourceExistence, ResourceScope

log = get_logger(__name__)


@dataclass(slots=True)
class DependencyResolutionResult:
    """Outcome of resolving one agent's declared dependencies.

    Only categories with at least one entry appear in ``resolved`` and
    ``missing``.

    Attributes:
        agent_id: Agent the result belongs to.
        resolved: Category -> resource names confirmed present.
        missing: Category -> resource names confirmed absent.
        errors: Problems with the declaration shape or with existence checks.
        suggestions: Missing resource name -> close existing names.
        locations: "category/name" -> scope label where it was found.
    """

    agent_id: str
    resolved: dict[str, list[str]] = field(default_factory=dict)
    missing: dict[str, list[str]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    suggestions: dict[str, list[str]] = field(default_factory=dict)
    locations: dict[str, str] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return not any(self.missing.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "resolved": {k: list(v) for k, v in self.resolved.items()},
            "missing": {k: list(v) for k, v in self.missing.items()},
            "is_complete": self.is_complete,
            "errors": list(self.errors),
            "suggestions": {k: list(v) for k, v in self.suggestions.items()},
        }


@dataclass(frozen=True, slots=True)
class DependencyValidation:
    """Path-level validation of a dependency map ("category/name" entries)."""

    valid: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)

    @property
    def all_valid(self) -> bool:
        return not self.invalid


class _CheckFailed(Exception):
    """An existence check raised; carries the message for ``errors``."""


class DependencyResolver:
    """Resolves declared resources against a ResourceExistence backend."""

    def __init__(
        self,
        existence: ResourceExistence,
        config: DependencyConfig | None = None,
    ) -> None:
        self._existence = existence
        self._config = config or DependencyConfig()
        self._exists_cache: dict[tuple[str, str, ResourceScope], bool] = {}
        self._result_cache: dict[tuple[str, str, tuple[Any, ...]], DependencyResolutionResult] = {}
        self._revision: Hashable | None = None
        self._graph: DependencyGraph | None = None

    @property
    def graph(self) -> DependencyGraph | None:
        """Most recently built dependency graph, if any."""
        return self._graph

    def invalidate_cache(self) -> None:
        self._exists_cache.clear()
        self._result_cache.clear()
        log.debug("dependencies.cache.invalidated")

    async def _refresh_revision(self) -> None:
        revision = await self._existence.revision()
        if revision != self._revision:
            if self._revision is not None:
                self.invalidate_cache()
            self._revision = revision

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def _scopes(self, source: AgentSource) -> list[ResourceScope]:
        scopes = []
        if source.expansion_pack:
            scopes.append(ResourceScope.expansion(source.expansion_pack))
        scopes.append(ResourceScope.common())
        scopes.append(ResourceScope.base())
        return scopes

    def candidate_names(self, category: str, name: str) -> list[str]:
        """Names tried for a declared resource, in order."""
        extension = self._config.extensions.get(category, "")
        if "." in name:
            stem, _, ext = name.rpartition(".")
            ext = f".{ext}"
        else:
            stem, ext = name, extension

        stems = [stem, kebab_to_snake(stem), snake_to_kebab(stem)]
        for prefix in self._config.alternative_prefixes:
            if stem.startswith(prefix):
                stems.append(stem[len(prefix) :])
            else:
                stems.append(f"{prefix}{stem}")

        candidates = [name]
        for candidate_stem in stems:
            candidate = f"{candidate_stem}{ext}"
            if candidate not in candidates:
                candidates.append(candidate)
        return candidates

    async def _exists(self, category: str, name: str, scope: ResourceScope) -> bool:
        key = (category, name, scope)
        cached = self._exists_cache.get(key)
        if cached is not None:
            return cached
        try:
            found = await self._existence.exists(category, name, scope)
        except OSError as e:
            raise _CheckFailed(f"{category}/{name} in {scope.label}: {e}") from e
        self._exists_cache[key] = found
        return found

    async def locate(self, category: str, name: str, source: AgentSource) -> str | None:
        """Return "<scope>/<file>" for the first match, or None.

        Raises:
            _CheckFailed: If an existence check fails.
        """
        for scope in self._scopes(source):
            for candidate in self.candidate_names(category, name):
                if await self._exists(category, candidate, scope):
                    return f"{scope.label}/{candidate}"
        return None

    async def _suggest(self, category: str, name: str, source: AgentSource) -> list[str]:
        if self._config.max_suggestions == 0:
            return []
        available: list[str] = []
        for scope in self._scopes(source):
            try:
                names = await self._existence.list_names(category, scope)
            except OSError as e:
                log.debug("dependencies.suggestions.unavailable", scope=scope.label, error=str(e))
                continue
            available.extend(n for n in names if n not in available)
        return difflib.get_close_matches(
            name,
            available,
            n=self._config.max_suggestions,
            cutoff=self._config.suggestion_cutoff,
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_shape(raw: Any) -> tuple[dict[str, list[str]], list[str]]:
        if not isinstance(raw, Mapping):
            return {}, [f"Dependencies must be a mapping, got {type(raw).__name__}"]

        deps: dict[str, list[str]] = {}
        errors: list[str] = []
        for category, names in raw.items():
            if not isinstance(category, str):
                errors.append(f"Dependency category must be a string, got {category!r}")
                continue
            if isinstance(names, str) or not isinstance(names, Sequence):
                errors.append(f"Dependencies for '{category}' must be a list")
                continue
            good = []
            for name in names:
                if isinstance(name, str) and name.strip():
                    good.append(name.strip())
                else:
                    errors.append(f"Invalid dependency entry in '{category}': {name!r}")
            deps[category] = good
        return deps, errors

    async def resolve_dependencies(self, agent: AgentDefinition) -> DependencyResolutionResult:
        """Resolve every declared resource of one agent.

        Never raises for malformed declarations or failed existence checks;
        both are reported in ``errors``. Names whose check failed count as
        missing.
        """
        deps, shape_errors = self._check_shape(agent.declared_dependencies)
        result = DependencyResolutionResult(agent_id=agent.id, errors=list(shape_errors))
        if not deps:
            return result

        await self._refresh_revision()
        signature = tuple(sorted((c, tuple(n)) for c, n in deps.items()))
        cache_key = (agent.id, agent.source.label, signature)
        if not shape_errors and cache_key in self._result_cache:
            return self._result_cache[cache_key]

        async def check(category: str, name: str) -> tuple[str, str, str | None, str | None]:
            try:
                location = await self.locate(category, name, agent.source)
            except _CheckFailed as e:
                return category, name, None, str(e)
            return category, name, location, None

        checks = [check(category, name) for category, names in deps.items() for name in names]
        check_failed = False
        for category, name, location, error in await asyncio.gather(*checks):
            if location is not None:
                result.resolved.setdefault(category, []).append(name)
                result.locations[f"{category}/{name}"] = location
                continue
            result.missing.setdefault(category, []).append(name)
            if error is not None:
                check_failed = True
                result.errors.append(f"Existence check failed for {error}")
                continue
            suggestions = await self._suggest(category, name, agent.source)
            if suggestions:
                result.suggestions[name] = suggestions

        if not shape_errors and not check_failed:
            self._result_cache[cache_key] = result

        if result.is_complete:
            log.debug("dependencies.agent.resolved", agent_id=agent.id)
        else:
            log.info(
                "dependencies.agent.incomplete",
                agent_id=agent.id,
                missing=result.missing,
                errors=len(result.errors),
            )
        return result

    async def resolve_all(
        self, agents: Iterable[AgentDefinition]
    ) -> dict[str, DependencyResolutionResult]:
        results = await asyncio.gather(*(self.resolve_dependencies(a) for a in agents))
        return {r.agent_id: r for r in results}

    async def validate_dependency_paths(
        self, dependencies: DependencyMap, source: AgentSource
    ) -> DependencyValidation:
        deps, errors = self._check_shape(dependencies)
        valid: list[str] = []
        invalid: list[str] = list(errors)
        for category, names in deps.items():
            for name in names:
                entry = f"{category}/{name}"
                try:
                    location = await self.locate(category, name, source)
                except _CheckFailed:
                    location = None
                (valid if location is not None else invalid).append(entry)
        return DependencyValidation(valid=valid, invalid=invalid)

    # -------------------------------------------------------------------------
    # Cross-agent analyses
    # -------------------------------------------------------------------------

    def build_dependency_graph(self, agents: Iterable[AgentDefinition]) -> DependencyGraph:
        self._graph = build_dependency_graph(agents)
        log.info(
            "dependencies.graph.built",
            agents=len(self._graph.dependents),
            **self._graph.stats.to_dict(),
            cycles=len(self._graph.circular_dependencies),
        )
        return self._graph

    def resolve_dependency_conflicts(self, records: Iterable[DependencyRecord]) -> ConflictReport:
        report = resolve_dependency_conflicts(records)
        if report.has_conflicts:
            log.warning(
                "dependencies.conflicts.detected",
                version_conflicts=len(report.version_conflicts),
                naming_conflicts=len(report.naming_conflicts),
            )
        return report

    def optimize_dependency_loading(self, agents: Sequence[AgentDefinition]) -> LoadingPlan:
        return optimize_dependency_loading(agents)


__all__ = [
    "DependencyResolutionResult",
    "DependencyResolver",
    "DependencyValidation",
]
