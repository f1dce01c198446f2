"""Activation monitoring - performance and usage analytics.

The monitor is fed by the activation manager and never influences it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
import time
from typing import Any

from kiro_agents.observability.logging import get_logger

log = get_logger(__name__)

DAY_SECONDS = 24 * 60 * 60


@dataclass(slots=True)
class PerformanceMetrics:
    total_activations: int = 0
    total_duration: float = 0.0
    min_duration: float | None = None
    max_duration: float = 0.0
    slow_activations: int = 0

    @property
    def average_duration(self) -> float:
        if not self.total_activations:
            return 0.0
        return self.total_duration / self.total_activations

    @property
    def slow_percentage(self) -> float:
        if not self.total_activations:
            return 0.0
        return self.slow_activations / self.total_activations * 100

    def rating(self) -> str:
        """excellent / good / fair / poor, from average time and slow share."""
        if not self.total_activations:
            return "unknown"
        avg = self.average_duration
        slow = self.slow_percentage
        if avg < 1.0 and slow < 10:
            return "excellent"
        if avg < 3.0 and slow < 25:
            return "good"
        if avg < 5.0 and slow < 50:
            return "fair"
        return "poor"


@dataclass(slots=True)
class UsageAnalytics:
    total_activations: int = 0
    total_failures: int = 0
    total_deactivations: int = 0
    total_session_time: float = 0.0
    first_activated: float | None = None
    last_activated: float | None = None

    @property
    def average_session_time(self) -> float:
        if not self.total_deactivations:
            return 0.0
        return self.total_session_time / self.total_deactivations

    @property
    def effectiveness(self) -> float:
        """Success rate in percent."""
        attempts = self.total_activations + self.total_failures
        return self.total_activations / attempts * 100 if attempts else 0.0

    def popularity(self, now: float) -> float:
        frequency = self.total_activations * 10
        recency = 0.0
        if self.last_activated is not None:
            recency = max(0.0, 100 - (now - self.last_activated) / DAY_SECONDS)
        return (frequency + self.effectiveness + recency) / 3


@dataclass(slots=True)
class _Totals:
    activations: int = 0
    successes: int = 0
    failures: int = 0
    fallbacks: int = 0
    deactivations: int = 0
    failures_by_category: dict[str, int] = field(default_factory=dict)


class ActivationMonitor:
    """Tracks activation outcomes, durations, and usage per agent.

    Args:
        slow_threshold: Activations longer than this many seconds are slow.
        clock: Time source returning epoch seconds.
    """

    def __init__(self, slow_threshold: float = 5.0, clock: Any = time.time) -> None:
        self._slow_threshold = slow_threshold
        self._clock = clock
        self._totals = _Totals()
        self._performance: dict[str, PerformanceMetrics] = {}
        self._usage: dict[str, UsageAnalytics] = {}
        self._started_at = datetime.now(UTC)

    @property
    def slow_threshold(self) -> float:
        return self._slow_threshold

    def _usage_for(self, agent_id: str) -> UsageAnalytics:
        return self._usage.setdefault(agent_id, UsageAnalytics())

    def record_activation(self, agent_id: str, duration: float, *, fallback: bool = False) -> None:
        now = self._clock()
        self._totals.activations += 1
        self._totals.successes += 1
        if fallback:
            self._totals.fallbacks += 1

        metrics = self._performance.setdefault(agent_id, PerformanceMetrics())
        metrics.total_activations += 1
        metrics.total_duration += duration
        metrics.max_duration = max(metrics.max_duration, duration)
        metrics.min_duration = (
            duration if metrics.min_duration is None else min(metrics.min_duration, duration)
        )
        if duration > self._slow_threshold:
            metrics.slow_activations += 1
            log.warning(
                "activation.monitor.slow_activation",
                agent_id=agent_id,
                duration=round(duration, 3),
                threshold=self._slow_threshold,
            )

        usage = self._usage_for(agent_id)
        usage.total_activations += 1
        usage.last_activated = now
        if usage.first_activated is None:
            usage.first_activated = now

    def record_failure(self, agent_id: str, category: str) -> None:
        self._totals.activations += 1
        self._totals.failures += 1
        by_category = self._totals.failures_by_category
        by_category[category] = by_category.get(category, 0) + 1
        self._usage_for(agent_id).total_failures += 1

    def record_deactivation(self, agent_id: str, session_seconds: float) -> None:
        self._totals.deactivations += 1
        usage = self._usage_for(agent_id)
        usage.total_deactivations += 1
        usage.total_session_time += max(0.0, session_seconds)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_activation_statistics(self) -> dict[str, Any]:
        totals = self._totals
        return {
            "total_activations": totals.activations,
            "successful_activations": totals.successes,
            "failed_activations": totals.failures,
            "fallback_activations": totals.fallbacks,
            "deactivations": totals.deactivations,
            "success_rate": (
                totals.successes / totals.activations * 100 if totals.activations else 0.0
            ),
            "failures_by_category": dict(totals.failures_by_category),
        }

    def get_performance_statistics(self) -> dict[str, dict[str, Any]]:
        return {
            agent_id: {
                "total_activations": m.total_activations,
                "average_duration": round(m.average_duration, 3),
                "min_duration": round(m.min_duration or 0.0, 3),
                "max_duration": round(m.max_duration, 3),
                "slow_activations": m.slow_activations,
                "rating": m.rating(),
            }
            for agent_id, m in self._performance.items()
        }

    def get_usage_analytics(self) -> dict[str, dict[str, Any]]:
        now = self._clock()
        return {
            agent_id: {
                "total_activations": u.total_activations,
                "total_failures": u.total_failures,
                "total_deactivations": u.total_deactivations,
                "average_session_time": round(u.average_session_time, 2),
                "effectiveness": round(u.effectiveness, 2),
                "popularity": round(u.popularity(now), 2),
            }
            for agent_id, u in self._usage.items()
        }

    def get_most_popular_agents(self, limit: int = 10) -> list[dict[str, Any]]:
        now = self._clock()
        ranked = sorted(self._usage.items(), key=lambda item: item[1].popularity(now), reverse=True)
        return [
            {
                "agent_id": agent_id,
                "popularity": round(usage.popularity(now), 2),
                "total_activations": usage.total_activations,
                "effectiveness": round(usage.effectiveness, 2),
            }
            for agent_id, usage in ranked[:limit]
        ]

    def get_performance_issues(self) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        for agent_id, m in self._performance.items():
            if m.average_duration > self._slow_threshold:
                issues.append(
                    {
                        "agent_id": agent_id,
                        "issue": "slow_activation",
                        "average_duration": round(m.average_duration, 3),
                        "threshold": self._slow_threshold,
                        "severity": "high"
                        if m.average_duration > self._slow_threshold * 2
                        else "medium",
                    }
                )
            if m.slow_percentage > 50:
                issues.append(
                    {
                        "agent_id": agent_id,
                        "issue": "frequent_slow_activations",
                        "slow_percentage": round(m.slow_percentage, 2),
                        "severity": "high" if m.slow_percentage > 75 else "medium",
                    }
                )
        return issues

    def get_low_effectiveness_agents(self, threshold: float = 70.0) -> list[dict[str, Any]]:
        low = [
            {
                "agent_id": agent_id,
                "effectiveness": round(u.effectiveness, 2),
                "total_activations": u.total_activations,
                "total_failures": u.total_failures,
                "severity": "high" if u.effectiveness < 50 else "medium",
            }
            for agent_id, u in self._usage.items()
            if u.total_activations + u.total_failures > 0 and u.effectiveness < threshold
        ]
        return sorted(low, key=lambda item: item["effectiveness"])

    def get_report(self) -> dict[str, Any]:
        return {
            "overview": self.get_activation_statistics(),
            "performance": self.get_performance_statistics(),
            "usage": self.get_usage_analytics(),
            "insights": {
                "most_popular": self.get_most_popular_agents(5),
                "performance_issues": self.get_performance_issues(),
                "low_effectiveness": self.get_low_effectiveness_agents(),
                "agents_monitored": len(self._usage),
            },
            "generated_at": datetime.now(UTC).isoformat(),
            "monitoring_since": self._started_at.isoformat(),
        }

    def reset(self) -> None:
        self._totals = _Totals()
        self._performance.clear()
        self._usage.clear()
        log.info("activation.monitor.reset")


__all__ = ["ActivationMonitor", "PerformanceMetrics", "UsageAnalytics"]
