"""Agent health tracking.

Keeps a bounded window of recent reports per agent and derives failure
rate, mean execution time and a trend from it. The coordinator never calls
the monitor; callers feed it results after each run.
"""

from __future__ import annotations

import logging
from collections import deque
from statistics import fmean
from typing import Any, Optional

from ..models.agent import AnalysisReport
from ..models.coordination import CoordinationResult
from ..models.health import AgentHealth, Trend
from .registry import AgentRegistry

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 20
DEFAULT_MAX_FAILURE_RATE = 0.25
DEFAULT_TREND_TOLERANCE = 0.2
DEFAULT_MIN_SAMPLES = 4


class HealthMonitor:
    """Rolling per-agent health derived from analysis reports."""

    def __init__(
        self,
        window: int = DEFAULT_WINDOW,
        max_failure_rate: float = DEFAULT_MAX_FAILURE_RATE,
        trend_tolerance: float = DEFAULT_TREND_TOLERANCE,
        min_samples: int = DEFAULT_MIN_SAMPLES,
    ):
        if window < 1:
            raise ValueError("window must be at least 1")
        self.window = window
        self.max_failure_rate = max_failure_rate
        self.trend_tolerance = trend_tolerance
        self.min_samples = min_samples
        self._history: dict[str, deque[AnalysisReport]] = {}

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "HealthMonitor":
        """Build a monitor from the ``health`` section of the effective config."""
        section = config.get("health", {})
        return cls(
            window=int(section.get("window", DEFAULT_WINDOW)),
            max_failure_rate=float(section.get("max_failure_rate", DEFAULT_MAX_FAILURE_RATE)),
            trend_tolerance=float(section.get("trend_tolerance", DEFAULT_TREND_TOLERANCE)),
            min_samples=int(section.get("min_samples", DEFAULT_MIN_SAMPLES)),
        )

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(self, result: CoordinationResult) -> None:
        for report in result.reports:
            self.record_report(report)

    def record_report(self, report: AnalysisReport) -> None:
        history = self._history.get(report.agent_name)
        if history is None:
            history = self._history[report.agent_name] = deque(maxlen=self.window)
        history.append(report)

    def reset(self, agent_name: Optional[str] = None) -> None:
        if agent_name is None:
            self._history.clear()
        else:
            self._history.pop(agent_name, None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def health(self, agent_name: str) -> AgentHealth:
        history = list(self._history.get(agent_name, ()))
        if not history:
            return AgentHealth(agent_name=agent_name)

        failure_rate = _failure_rate(history)
        trend = self._trend(history)
        last_error = next((r.error.message for r in reversed(history) if r.error), None)
        return AgentHealth(
            agent_name=agent_name,
            samples=len(history),
            failure_rate=round(failure_rate, 4),
            mean_execution_time_ms=round(_mean_time(history), 3),
            trend=trend,
            healthy=failure_rate <= self.max_failure_rate and trend != Trend.DEGRADING,
            last_error=last_error,
        )

    def snapshot(self) -> dict[str, AgentHealth]:
        return {name: self.health(name) for name in self._history}

    def degraded_agents(self) -> list[str]:
        return [name for name, health in self.snapshot().items() if not health.healthy]

    def check(self, registry: AgentRegistry) -> dict[str, Any]:
        """Overall health of every registered agent."""
        healthy, unhealthy = [], []
        for name in registry.names():
            (healthy if self.health(name).healthy else unhealthy).append(name)
        if unhealthy:
            logger.warning("Unhealthy agents: %s", ", ".join(unhealthy))
        return {
            "healthy": not unhealthy,
            "agent_count": len(registry),
            "healthy_agents": healthy,
            "unhealthy_agents": unhealthy,
        }

    def _trend(self, history: list[AnalysisReport]) -> Trend:
        if len(history) < self.min_samples:
            return Trend.UNKNOWN

        half = len(history) // 2
        if half == 0:
            return Trend.UNKNOWN
        older, newer = history[:half], history[len(history) - half:]

        old_rate, new_rate = _failure_rate(older), _failure_rate(newer)
        if new_rate > old_rate:
            return Trend.DEGRADING
        if new_rate < old_rate:
            return Trend.IMPROVING

        old_time, new_time = _mean_time(older), _mean_time(newer)
        if old_time <= 0:
            return Trend.STABLE
        change = (new_time - old_time) / old_time
        if change > self.trend_tolerance:
            return Trend.DEGRADING
        if change < -self.trend_tolerance:
            return Trend.IMPROVING
        return Trend.STABLE


def _failure_rate(reports: list[AnalysisReport]) -> float:
    return sum(1 for r in reports if r.failed) / len(reports) if reports else 0.0


def _mean_time(reports: list[AnalysisReport]) -> float:
    """Mean time of successful runs; of all runs when none succeeded."""
    succeeded = [r.execution_time_ms for r in reports if not r.failed]
    times = succeeded or [r.execution_time_ms for r in reports]
    return fmean(times) if times else 0.0
