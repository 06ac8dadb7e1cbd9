"""Coordination request and result models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .agent import AnalysisReport
from .context import AnalysisContext
from .finding import (
    Finding,
    FindingCategory,
    FrozenCounts,
    count_by_category,
    count_by_severity,
    sort_findings,
)


class CoordinationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    context: AnalysisContext
    agent_names: Optional[frozenset[str]] = None
    parallel: bool = True
    deadline_ms: Optional[float] = Field(default=None, gt=0)

    @field_validator("agent_names", mode="before")
    @classmethod
    def _coerce_names(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            return frozenset({value})
        return frozenset(value)


class CoordinationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_findings: int = 0
    agents_run: int = 0
    agents_failed: int = 0
    total_execution_time: float = 0.0
    findings_by_severity: FrozenCounts = Field(default_factory=dict, validate_default=True)
    findings_by_category: FrozenCounts = Field(default_factory=dict, validate_default=True)

    @classmethod
    def from_reports(
        cls, reports: tuple[AnalysisReport, ...], wall_time_ms: float
    ) -> "CoordinationSummary":
        """Aggregate child reports.

        ``total_execution_time`` is the wall clock of the whole run, not the
        sum of per-agent times, which overlap under parallel execution.
        """
        succeeded = [r for r in reports if not r.failed]
        findings = [f for r in succeeded for f in r.findings]
        return cls(
            total_findings=len(findings),
            agents_run=len(reports),
            agents_failed=len(reports) - len(succeeded),
            total_execution_time=round(max(wall_time_ms, 0.0), 3),
            findings_by_severity=count_by_severity(findings),
            findings_by_category=count_by_category(findings),
        )


class CoordinationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    reports: tuple[AnalysisReport, ...] = ()
    summary: CoordinationSummary = Field(default_factory=CoordinationSummary)
    started_at: datetime = Field(default_factory=datetime.now)

    def report_for(self, agent_name: str) -> Optional[AnalysisReport]:
        for report in self.reports:
            if report.agent_name == agent_name:
                return report
        return None

    @property
    def failed_reports(self) -> tuple[AnalysisReport, ...]:
        return tuple(r for r in self.reports if r.failed)

    def all_findings(self) -> tuple[Finding, ...]:
        return sort_findings(f for r in self.reports if not r.failed for f in r.findings)

    def consolidated_findings(self) -> list[Finding]:
        """Findings deduplicated across agents, most severe first.

        Two findings are duplicates when they share file, line, column,
        category and title; the first one in report order wins.
        """
        seen: set[tuple] = set()
        consolidated: list[Finding] = []
        for report in self.reports:
            if report.failed:
                continue
            for finding in report.findings:
                key = finding.dedup_key
                if key in seen:
                    continue
                seen.add(key)
                consolidated.append(finding)
        consolidated.sort(key=lambda f: -f.severity.rank)
        return consolidated

    def findings_in(self, category: FindingCategory) -> list[Finding]:
        return [f for f in self.all_findings() if f.category == category]

