"""Agent coordinator.

Runs the selected agents against one analysis context, isolates their
failures, enforces the optional deadline and aggregates the reports.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Optional

from ..models.agent import AnalysisReport, ErrorKind
from ..models.context import AnalysisContext
from ..models.coordination import CoordinationRequest, CoordinationResult, CoordinationSummary
from ..utils.sanitize import describe_exception
from .agents import Agent
from .errors import CoordinationError
from .registry import AgentRegistry

logger = logging.getLogger(__name__)

# Seconds granted to cancelled agents to unwind before they are abandoned
CANCEL_GRACE = 0.05


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class AgentCoordinator:
    """Fan an analysis context out to registered agents."""

    def __init__(self, registry: AgentRegistry):
        self.registry = registry

    async def coordinate(self, request: CoordinationRequest) -> CoordinationResult:
        """Run the requested agents and aggregate their reports.

        Raises:
            CoordinationError: If ``request`` is not a coordination request.
            AgentNotFoundError: If any requested agent is not registered.
                Raised before any agent runs.
        """
        if not isinstance(request, CoordinationRequest):
            raise CoordinationError(f"Expected CoordinationRequest, got {type(request).__name__}")

        agents = self.registry.resolve(request.agent_names)
        mode = "parallel" if request.parallel else "sequential"
        logger.info(
            "Coordinating %d agent(s) (%s) on %s", len(agents), mode, request.context.project_path
        )

        started_at = datetime.now()
        start = time.perf_counter()
        if request.parallel:
            reports = await self._run_parallel(agents, request.context, request.deadline_ms)
        else:
            reports = await self._run_sequential(agents, request.context, request.deadline_ms)

        summary = CoordinationSummary.from_reports(reports, _elapsed_ms(start))
        logger.info(
            "Coordination finished: %d finding(s), %d/%d agent(s) failed in %.1f ms",
            summary.total_findings,
            summary.agents_failed,
            summary.agents_run,
            summary.total_execution_time,
        )
        return CoordinationResult(reports=reports, summary=summary, started_at=started_at)

    def coordinate_sync(self, request: CoordinationRequest) -> CoordinationResult:
        """Blocking wrapper around :meth:`coordinate` for callers without a loop."""
        return asyncio.run(self.coordinate(request))

    # ------------------------------------------------------------------
    # Execution modes
    # ------------------------------------------------------------------

    async def _run_parallel(
        self,
        agents: list[Agent],
        context: AnalysisContext,
        deadline_ms: Optional[float],
    ) -> tuple[AnalysisReport, ...]:
        if not agents:
            return ()

        start = time.perf_counter()
        tasks = [
            asyncio.create_task(self._run_agent(agent, context), name=f"agent:{agent.name}")
            for agent in agents
        ]
        timeout = deadline_ms / 1000 if deadline_ms is not None else None
        try:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        if pending:
            await asyncio.wait(pending, timeout=CANCEL_GRACE)

        elapsed = _elapsed_ms(start)
        reports = []
        for agent, task in zip(agents, tasks):
            if task in pending:
                reports.append(self._timeout_report(agent, deadline_ms, elapsed))
            else:
                reports.append(self._collect(agent, task))
        return tuple(reports)

    async def _run_sequential(
        self,
        agents: list[Agent],
        context: AnalysisContext,
        deadline_ms: Optional[float],
    ) -> tuple[AnalysisReport, ...]:
        start = time.perf_counter()
        deadline = start + deadline_ms / 1000 if deadline_ms is not None else None

        reports = []
        for agent in agents:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.perf_counter()
                if remaining <= 0:
                    reports.append(self._timeout_report(agent, deadline_ms, 0.0, started=False))
                    continue

            agent_start = time.perf_counter()
            task = asyncio.create_task(self._run_agent(agent, context), name=f"agent:{agent.name}")
            try:
                done, _ = await asyncio.wait({task}, timeout=remaining)
            finally:
                if not task.done():
                    task.cancel()
            if task in done:
                reports.append(self._collect(agent, task))
            else:
                await asyncio.wait({task}, timeout=CANCEL_GRACE)
                reports.append(self._timeout_report(agent, deadline_ms, _elapsed_ms(agent_start)))
        return tuple(reports)

    # ------------------------------------------------------------------
    # Single agent
    # ------------------------------------------------------------------

    async def _run_agent(self, agent: Agent, context: AnalysisContext) -> AnalysisReport:
        """Run one agent; any exception becomes a failed report."""
        start = time.perf_counter()
        try:
            report = await agent.analyze(context)
        except Exception as e:
            message = describe_exception(e)
            logger.warning("Agent %s failed: %s", agent.name, message)
            return AnalysisReport.failed_report(
                agent.name,
                agent.version,
                ErrorKind.FAILURE,
                message,
                execution_time_ms=_elapsed_ms(start),
                error_type=type(e).__name__,
            )

        problem = None
        if not isinstance(report, AnalysisReport):
            problem = f"Agent returned {type(report).__name__} instead of an AnalysisReport"
        elif report.agent_name != agent.name:
            problem = f"Agent returned a report for {report.agent_name!r}"
        if problem:
            logger.warning("Agent %s failed: %s", agent.name, problem)
            return AnalysisReport.failed_report(
                agent.name,
                agent.version,
                ErrorKind.FAILURE,
                problem,
                execution_time_ms=_elapsed_ms(start),
                error_type="InvalidReport",
            )

        logger.debug(
            "Agent %s finished: %d finding(s) in %.1f ms",
            agent.name,
            len(report.findings),
            report.execution_time_ms,
        )
        return report

    @staticmethod
    def _collect(agent: Agent, task: asyncio.Task) -> AnalysisReport:
        if task.cancelled():
            logger.warning("Agent %s cancelled itself", agent.name)
            return AnalysisReport.failed_report(
                agent.name,
                agent.version,
                ErrorKind.FAILURE,
                "Agent run was cancelled",
                error_type="CancelledError",
            )
        return task.result()

    @staticmethod
    def _timeout_report(
        agent: Agent,
        deadline_ms: Optional[float],
        elapsed_ms: float,
        started: bool = True,
    ) -> AnalysisReport:
        if started:
            message = f"Cancelled after exceeding the {deadline_ms:g} ms deadline"
        else:
            message = f"Not started before the {deadline_ms:g} ms deadline"
        logger.warning("Agent %s timed out: %s", agent.name, message)
        return AnalysisReport.failed_report(
            agent.name,
            agent.version,
            ErrorKind.TIMEOUT,
            message,
            execution_time_ms=elapsed_ms,
            error_type="TimeoutError",
        )
