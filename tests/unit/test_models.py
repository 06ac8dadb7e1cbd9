"""Tests for the shared data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentmesh.models import (
    AgentCapabilities,
    AgentKind,
    AnalysisContext,
    AnalysisReport,
    CoordinationRequest,
    CoordinationResult,
    CoordinationSummary,
    ErrorKind,
    Finding,
    FindingCategory,
    Location,
    Severity,
)
from agentmesh.models.finding import SEVERITY_ORDER, count_by_severity, sort_findings

from conftest import make_finding


class TestSeverity:
    def test_order_most_severe_first(self):
        assert SEVERITY_ORDER == [
            Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW, Severity.INFO,
        ]

    def test_at_least(self):
        assert Severity.HIGH.at_least(Severity.MEDIUM)
        assert Severity.MEDIUM.at_least(Severity.MEDIUM)
        assert not Severity.LOW.at_least(Severity.MEDIUM)


class TestLocation:
    def test_str(self):
        assert str(Location(file="a.ts")) == "a.ts"
        assert str(Location(file="a.ts", line=3)) == "a.ts:3"
        assert str(Location(file="a.ts", line=3, column=7)) == "a.ts:3:7"

    def test_rejects_zero_line(self):
        with pytest.raises(ValidationError):
            Location(file="a.ts", line=0)


class TestFinding:
    def test_frozen(self):
        finding = make_finding("a.ts", 1)
        with pytest.raises(ValidationError):
            finding.title = "changed"

    def test_metadata_read_only(self):
        finding = Finding(
            id="x",
            category=FindingCategory.QUALITY,
            severity=Severity.LOW,
            location=Location(file="a.ts"),
            title="t",
            message="m",
            metadata={"function": "f"},
        )
        with pytest.raises(TypeError):
            finding.metadata["function"] = "g"
        assert finding.model_dump()["metadata"] == {"function": "f"}

    def test_sort_by_file_line_then_severity(self):
        findings = [
            make_finding("b.ts", 1, Severity.HIGH),
            make_finding("a.ts", 5, Severity.LOW),
            make_finding("a.ts", 5, Severity.CRITICAL, title="Other"),
            make_finding("a.ts", 2, Severity.INFO),
        ]
        ordered = sort_findings(findings)
        assert [(f.location.file, f.location.line, f.severity) for f in ordered] == [
            ("a.ts", 2, Severity.INFO),
            ("a.ts", 5, Severity.CRITICAL),
            ("a.ts", 5, Severity.LOW),
            ("b.ts", 1, Severity.HIGH),
        ]

    def test_count_by_severity_includes_zero_buckets(self):
        counts = count_by_severity([make_finding("a.ts", 1, Severity.HIGH)])
        assert counts["high"] == 1
        assert counts["critical"] == 0
        assert set(counts) == {s.value for s in Severity}


class TestAnalysisContext:
    def test_defaults(self, tmp_path):
        ctx = AnalysisContext(project_path=str(tmp_path))
        assert ctx.files == ()
        assert ctx.depth.value == "deep"

    def test_rejects_blank_project_path(self):
        with pytest.raises(ValidationError):
            AnalysisContext(project_path="  ")

    def test_rejects_blank_file(self, tmp_path):
        with pytest.raises(ValidationError):
            AnalysisContext(project_path=str(tmp_path), files=("a.ts", ""))

    def test_immutable(self, tmp_path):
        ctx = AnalysisContext(project_path=str(tmp_path))
        with pytest.raises(ValidationError):
            ctx.files = ("x.ts",)

    def test_resolve_and_relative(self, tmp_path):
        ctx = AnalysisContext(project_path=str(tmp_path))
        path = ctx.resolve("src/a.ts")
        assert path == tmp_path / "src" / "a.ts"
        assert ctx.relative(path) == "src/a.ts"


class TestAgentCapabilities:
    def test_all_tags_include_kind(self):
        caps = AgentCapabilities(kind=AgentKind.SECURITY, tags=frozenset({"owasp"}))
        assert caps.all_tags() == {"owasp", "security"}

    def test_supports_file(self):
        caps = AgentCapabilities(supported_file_types=frozenset({"ts", "py"}))
        assert caps.supports_file("src/a.TS")
        assert caps.supports_file("b.py")
        assert not caps.supports_file("c.rb")
        assert not caps.supports_file("Makefile")

    def test_empty_types_support_everything(self):
        assert AgentCapabilities().supports_file("anything.xyz")


class TestAnalysisReport:
    def test_failed_report(self):
        report = AnalysisReport.failed_report("a", "1.0", ErrorKind.TIMEOUT, "late", 12.5, "TimeoutError")
        assert report.failed
        assert report.findings == ()
        assert report.error.kind == ErrorKind.TIMEOUT
        assert report.execution_time_ms == 12.5

    def test_negative_time_clamped(self):
        report = AnalysisReport.failed_report("a", "1.0", ErrorKind.FAILURE, "x", -3)
        assert report.execution_time_ms == 0

    def test_findings_by_category(self):
        report = AnalysisReport(
            agent_name="a",
            findings=(make_finding("a.ts", 1, category=FindingCategory.SECURITY),),
        )
        assert report.findings_by_category()["security"] == 1


class TestCoordinationRequest:
    def test_agent_names_coerced(self, tmp_path):
        ctx = AnalysisContext(project_path=str(tmp_path))
        assert CoordinationRequest(context=ctx, agent_names=["a", "b", "a"]).agent_names == {"a", "b"}
        assert CoordinationRequest(context=ctx, agent_names="a").agent_names == {"a"}
        assert CoordinationRequest(context=ctx).agent_names is None

    def test_non_positive_deadline_rejected(self, tmp_path):
        ctx = AnalysisContext(project_path=str(tmp_path))
        with pytest.raises(ValidationError):
            CoordinationRequest(context=ctx, deadline_ms=0)


class TestCoordinationSummary:
    def test_from_reports_skips_failed(self):
        ok = AnalysisReport(agent_name="ok", findings=(make_finding("a.ts", 1), make_finding("a.ts", 2)))
        bad = AnalysisReport.failed_report("bad", "1", ErrorKind.FAILURE, "boom")
        summary = CoordinationSummary.from_reports((ok, bad), 42.0)
        assert summary.total_findings == 2
        assert summary.agents_run == 2
        assert summary.agents_failed == 1
        assert summary.total_execution_time == 42.0
        assert summary.findings_by_severity["medium"] == 2

    def test_counts_read_only(self):
        summary = CoordinationSummary.from_reports((AnalysisReport(agent_name="ok"),), 1.0)
        with pytest.raises(TypeError):
            summary.findings_by_severity["critical"] = 5
        with pytest.raises(TypeError):
            summary.findings_by_category["security"] = 1
        assert summary.findings_by_severity["critical"] == 0

    def test_counts_serialize_as_plain_dict(self):
        summary = CoordinationSummary(findings_by_severity={"high": 2})
        assert summary.model_dump()["findings_by_severity"] == {"high": 2}
        assert '"findings_by_severity":{"high":2}' in summary.model_dump_json()
        assert CoordinationSummary().findings_by_category == {}


class TestCoordinationResult:
    def test_consolidated_dedups_across_agents(self):
        shared = make_finding("a.ts", 1, Severity.HIGH, agent="one")
        same_spot = make_finding("a.ts", 1, Severity.HIGH, agent="two")
        other = make_finding("b.ts", 4, Severity.CRITICAL)
        reports = (
            AnalysisReport(agent_name="one", findings=(shared,)),
            AnalysisReport(agent_name="two", findings=(same_spot, other)),
        )
        result = CoordinationResult(reports=reports, summary=CoordinationSummary.from_reports(reports, 1))
        consolidated = result.consolidated_findings()
        assert len(consolidated) == 2
        assert consolidated[0].severity == Severity.CRITICAL
        assert consolidated[1].id == shared.id

    def test_report_for(self):
        reports = (AnalysisReport(agent_name="one"),)
        result = CoordinationResult(reports=reports)
        assert result.report_for("one") is reports[0]
        assert result.report_for("missing") is None
