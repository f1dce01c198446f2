"""Unit tests for ActivationMonitor."""

import pytest

from kiro_agents.activation.monitor import (
    DAY_SECONDS,
    ActivationMonitor,
    PerformanceMetrics,
    UsageAnalytics,
)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monitor(clock: FakeClock) -> ActivationMonitor:
    return ActivationMonitor(slow_threshold=5.0, clock=clock)


class TestPerformanceMetrics:
    @pytest.mark.parametrize(
        ("total", "duration", "slow", "rating"),
        [
            (0, 0.0, 0, "unknown"),
            (10, 5.0, 0, "excellent"),
            (10, 20.0, 2, "good"),
            (10, 40.0, 4, "fair"),
            (10, 60.0, 0, "poor"),
            (10, 5.0, 6, "poor"),
        ],
    )
    def test_rating(self, total: int, duration: float, slow: int, rating: str) -> None:
        metrics = PerformanceMetrics(
            total_activations=total, total_duration=duration, slow_activations=slow
        )
        assert metrics.rating() == rating


class TestUsageAnalytics:
    def test_effectiveness(self) -> None:
        assert UsageAnalytics().effectiveness == 0.0
        assert UsageAnalytics(total_activations=3, total_failures=1).effectiveness == 75.0

    def test_popularity_decays_with_age(self) -> None:
        usage = UsageAnalytics(total_activations=2, last_activated=0.0)
        assert usage.popularity(0.0) == pytest.approx((20 + 100 + 100) / 3)
        assert usage.popularity(10 * DAY_SECONDS) == pytest.approx((20 + 100 + 90) / 3)


class TestActivationMonitor:
    def test_statistics(self, monitor: ActivationMonitor) -> None:
        monitor.record_activation("architect", 0.5)
        monitor.record_activation("dev", 0.2, fallback=True)
        monitor.record_failure("ghost", "agent-not-found")
        monitor.record_deactivation("architect", 120.0)

        stats = monitor.get_activation_statistics()

        assert stats["total_activations"] == 3
        assert stats["successful_activations"] == 2
        assert stats["failed_activations"] == 1
        assert stats["fallback_activations"] == 1
        assert stats["deactivations"] == 1
        assert stats["success_rate"] == pytest.approx(200 / 3)
        assert stats["failures_by_category"] == {"agent-not-found": 1}

    def test_performance_statistics(self, monitor: ActivationMonitor) -> None:
        monitor.record_activation("pm", 1.0)
        monitor.record_activation("pm", 3.0)

        perf = monitor.get_performance_statistics()["pm"]

        assert perf["average_duration"] == 2.0
        assert perf["min_duration"] == 1.0
        assert perf["max_duration"] == 3.0
        assert perf["rating"] == "good"

    def test_performance_issues(self, monitor: ActivationMonitor) -> None:
        monitor.record_activation("slow", 12.0)
        monitor.record_activation("slow", 11.0)

        issues = {issue["issue"]: issue for issue in monitor.get_performance_issues()}

        assert issues["slow_activation"]["severity"] == "high"
        assert issues["frequent_slow_activations"]["slow_percentage"] == 100.0

    def test_usage_and_popularity(self, monitor: ActivationMonitor, clock: FakeClock) -> None:
        for _ in range(3):
            monitor.record_activation("architect", 0.1)
        monitor.record_activation("qa", 0.1)
        monitor.record_deactivation("architect", 60.0)
        monitor.record_deactivation("architect", 120.0)
        clock.now += DAY_SECONDS

        usage = monitor.get_usage_analytics()["architect"]
        assert usage["average_session_time"] == 90.0
        assert usage["effectiveness"] == 100.0

        ranked = monitor.get_most_popular_agents(limit=1)
        assert [entry["agent_id"] for entry in ranked] == ["architect"]

    def test_low_effectiveness(self, monitor: ActivationMonitor) -> None:
        monitor.record_activation("flaky", 0.1)
        monitor.record_failure("flaky", "activation-handler-failed")
        monitor.record_failure("flaky", "activation-handler-failed")
        monitor.record_activation("solid", 0.1)

        low = monitor.get_low_effectiveness_agents()

        assert [entry["agent_id"] for entry in low] == ["flaky"]
        assert low[0]["severity"] == "high"

    def test_report_and_reset(self, monitor: ActivationMonitor) -> None:
        monitor.record_activation("pm", 0.1)
        report = monitor.get_report()
        assert report["insights"]["agents_monitored"] == 1
        assert set(report) >= {"overview", "performance", "usage", "generated_at"}

        monitor.reset()
        assert monitor.get_activation_statistics()["total_activations"] == 0
        assert monitor.get_usage_analytics() == {}
