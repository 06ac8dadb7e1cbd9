"""Report rendering.

Turns a ``CoordinationResult`` (or any ``ReportData``) into JSON, markdown
or plain console text. Rendering never feeds back into coordination.
"""

from __future__ import annotations

import io
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field
from rich.console import Console
from rich.table import Table

from ..models.coordination import CoordinationResult
from ..models.finding import SEVERITY_ORDER, Finding, Severity
from .synthesis import calculate_verdict

DEFAULT_TITLE = "Code Analysis Report"


class ReportFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "markdown"
    CONSOLE = "console"


class GroupBy(str, Enum):
    SEVERITY = "severity"
    CATEGORY = "category"
    FILE = "file"
    AGENT = "agent"


class ReportSection(BaseModel):
    title: str
    content: str = ""
    rows: list[dict[str, Any]] = Field(default_factory=list)
    findings: list[Finding] = Field(default_factory=list)


class ReportData(BaseModel):
    title: str = DEFAULT_TITLE
    summary: dict[str, Any] = Field(default_factory=dict)
    sections: list[ReportSection] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ReportGenerator:
    """Render coordination results for humans and machines."""

    def __init__(
        self,
        min_severity: Severity | str = Severity.INFO,
        group_by: GroupBy | str = GroupBy.SEVERITY,
        max_findings: Optional[int] = None,
        width: int = 120,
    ):
        self.min_severity = Severity(min_severity)
        self.group_by = GroupBy(group_by)
        self.max_findings = max_findings
        self.width = width

    def render(self, data: Union[CoordinationResult, ReportData], fmt: ReportFormat | str = ReportFormat.MARKDOWN) -> str:
        """Render ``data`` in ``fmt``.

        Raises:
            ValueError: If ``fmt`` is not a supported format.
        """
        try:
            fmt = ReportFormat(fmt)
        except ValueError:
            raise ValueError(
                f"Unsupported report format: {fmt!r} (expected one of: "
                f"{', '.join(f.value for f in ReportFormat)})"
            ) from None

        if isinstance(data, CoordinationResult):
            data = self.from_result(data)

        if fmt == ReportFormat.JSON:
            return self.render_json(data)
        if fmt == ReportFormat.CONSOLE:
            return self.render_console(data)
        return self.render_markdown(data)

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def from_result(self, result: CoordinationResult, title: str = DEFAULT_TITLE) -> ReportData:
        summary = result.summary
        verdict = calculate_verdict(result)

        agent_rows = []
        for report in result.reports:
            agent_rows.append({
                "agent": report.agent_name,
                "version": report.agent_version,
                "status": report.error.kind.value if report.error else "ok",
                "findings": len(report.findings),
                "files": report.files_analyzed,
                "time_ms": round(report.execution_time_ms, 1),
                "error": report.error.message if report.error else None,
            })
        sections = [ReportSection(title="Agents", rows=agent_rows)]

        pairs = [
            (report.agent_name, finding)
            for report in result.reports
            if not report.failed
            for finding in report.findings
            if finding.severity.at_least(self.min_severity)
        ]
        pairs.sort(key=lambda p: (-p[1].severity.rank, p[1].sort_key))
        omitted = 0
        if self.max_findings is not None and len(pairs) > self.max_findings:
            omitted = len(pairs) - self.max_findings
            pairs = pairs[: self.max_findings]

        for group, findings in self._group(pairs):
            sections.append(ReportSection(title=group, findings=findings))

        notes = [f"{r.agent_name}: {note}" for r in result.reports for note in r.notes]
        if notes:
            sections.append(ReportSection(title="Notes", content="\n".join(notes)))

        return ReportData(
            title=title,
            summary={
                "verdict": verdict.value,
                "total_findings": summary.total_findings,
                "agents_run": summary.agents_run,
                "agents_failed": summary.agents_failed,
                "total_execution_time_ms": summary.total_execution_time,
                "findings_by_severity": dict(summary.findings_by_severity),
                "findings_by_category": dict(summary.findings_by_category),
            },
            sections=sections,
            metadata={
                "started_at": result.started_at.isoformat(timespec="seconds"),
                "min_severity": self.min_severity.value,
                "group_by": self.group_by.value,
                "findings_shown": len(pairs),
                "findings_omitted": omitted,
            },
        )

    def _group(self, pairs: list[tuple[str, Finding]]) -> list[tuple[str, list[Finding]]]:
        groups: dict[str, list[Finding]] = {}
        if self.group_by == GroupBy.SEVERITY:
            for severity in SEVERITY_ORDER:
                groups[f"{severity.value.title()} Findings"] = []
        for agent, finding in pairs:
            if self.group_by == GroupBy.SEVERITY:
                key = f"{finding.severity.value.title()} Findings"
            elif self.group_by == GroupBy.CATEGORY:
                key = finding.category.value.title()
            elif self.group_by == GroupBy.FILE:
                key = finding.location.file
            else:
                key = agent
            groups.setdefault(key, []).append(finding)

        ordered = [(k, v) for k, v in groups.items() if v]
        if self.group_by in (GroupBy.CATEGORY, GroupBy.FILE):
            ordered.sort(key=lambda kv: kv[0])
        return ordered

    # ------------------------------------------------------------------
    # Formats
    # ------------------------------------------------------------------

    def render_json(self, data: ReportData) -> str:
        return data.model_dump_json(indent=2)

    def render_markdown(self, data: ReportData) -> str:
        lines: list[str] = [f"# {data.title}", ""]

        if data.summary:
            lines.append("## Summary")
            lines.append("")
            lines.append("| Metric | Value |")
            lines.append("|--------|-------|")
            for key, value in data.summary.items():
                if isinstance(value, dict):
                    value = ", ".join(f"{k}: {v}" for k, v in value.items()) or "-"
                lines.append(f"| {key.replace('_', ' ').title()} | {value} |")
            lines.append("")

        for section in data.sections:
            lines.append(f"## {section.title}")
            lines.append("")
            if section.content:
                lines.append(section.content)
                lines.append("")
            if section.rows:
                headers = list(section.rows[0].keys())
                lines.append("| " + " | ".join(h.replace("_", " ").title() for h in headers) + " |")
                lines.append("|" + "|".join("---" for _ in headers) + "|")
                for row in section.rows:
                    cells = ["-" if row.get(h) is None else str(row.get(h)) for h in headers]
                    lines.append("| " + " | ".join(c.replace("|", "\\|") for c in cells) + " |")
                lines.append("")
            for finding in section.findings:
                lines.append(f"### {finding.title} [{finding.severity.value.upper()}]")
                lines.append(f"**Location:** `{finding.location}`")
                lines.append(f"**Category:** {finding.category.value}")
                if finding.rule_id:
                    lines.append(f"**Rule:** {finding.rule_id}")
                lines.append("")
                lines.append(finding.message)
                if finding.snippet:
                    lines.append("")
                    lines.append("```")
                    lines.append(finding.snippet)
                    lines.append("```")
                if finding.suggestion:
                    lines.append("")
                    lines.append(f"**Suggestion:** {finding.suggestion}")
                lines.append("")

        if data.metadata:
            lines.append("---")
            meta = ", ".join(f"{k}={v}" for k, v in data.metadata.items())
            lines.append(f"*{meta}*")

        return "\n".join(lines).rstrip() + "\n"

    def render_console(self, data: ReportData) -> str:
        console = Console(file=io.StringIO(), width=self.width, color_system=None, record=True)
        console.rule(data.title)

        if data.summary:
            table = Table(show_header=False, box=None)
            for key, value in data.summary.items():
                if isinstance(value, dict):
                    value = ", ".join(f"{k}={v}" for k, v in value.items()) or "-"
                table.add_row(key.replace("_", " "), str(value))
            console.print(table)

        for section in data.sections:
            console.print()
            console.print(f"{section.title}", style="bold")
            if section.content:
                console.print(section.content, markup=False)
            if section.rows:
                table = Table(*[h.replace("_", " ") for h in section.rows[0].keys()])
                for row in section.rows:
                    table.add_row(*["-" if v is None else str(v) for v in row.values()])
                console.print(table)
            for finding in section.findings:
                console.print(
                    f"  {finding.severity.value.upper():<8} {finding.location}  {finding.title}",
                    markup=False,
                    highlight=False,
                )
                console.print(f"           {finding.message}", markup=False, highlight=False)

        return console.export_text()
