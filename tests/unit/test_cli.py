"""Tests for CLI entry points."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from agentmesh.cli.main import EXIT_BAD_CONFIG, EXIT_UNKNOWN_AGENT, cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def make_project(tmp_path: Path, files: dict[str, str], config: str | None = None) -> Path:
    project = tmp_path / "proj"
    project.mkdir()
    for name, text in files.items():
        (project / name).write_text(text, encoding="utf-8")
    if config is not None:
        (project / ".agentmesh").mkdir()
        (project / ".agentmesh" / "config.yaml").write_text(config, encoding="utf-8")
    return project


CLEAN_PY = "def add(a, b):\n    return a + b\n"
RISKY_JS = "eval(a);\neval(b);\neval(c);\neval(d);\n"


class TestAnalyze:
    def test_requires_project(self, runner):
        result = runner.invoke(cli, ["analyze"])
        assert result.exit_code == 2

    def test_json_report(self, runner, tmp_project):
        result = runner.invoke(cli, ["analyze", "-p", str(tmp_project), "-q", "-f", "json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        agents = [row["agent"] for row in payload["sections"][0]["rows"]]
        assert agents == ["static-analysis", "error-detection", "test-generation"]
        assert payload["summary"]["agents_failed"] == 0
        assert payload["summary"]["total_findings"] > 0

    def test_agent_subset(self, runner, tmp_project):
        result = runner.invoke(
            cli, ["analyze", "-p", str(tmp_project), "-q", "-f", "json", "--agents", "error-detection"]
        )
        payload = json.loads(result.stdout)
        assert [row["agent"] for row in payload["sections"][0]["rows"]] == ["error-detection"]

    def test_explicit_files(self, runner, tmp_project):
        result = runner.invoke(
            cli,
            ["analyze", "-p", str(tmp_project), "-q", "-f", "json", "--agents", "static-analysis",
             "--files", "src/loader.py"],
        )
        payload = json.loads(result.stdout)
        assert payload["sections"][0]["rows"][0]["files"] == 1

    def test_junit_output(self, runner, tmp_project):
        result = runner.invoke(cli, ["analyze", "-p", str(tmp_project), "-q", "-f", "junit", "--sequential"])
        assert result.exit_code == 0
        assert "<testsuites" in result.stdout

    def test_unknown_agent(self, runner, tmp_project):
        result = runner.invoke(cli, ["analyze", "-p", str(tmp_project), "--agents", "ghost"])
        assert result.exit_code == EXIT_UNKNOWN_AGENT
        assert "ghost" in result.output

    def test_bad_agent_config(self, runner, tmp_path):
        project = make_project(
            tmp_path, {"a.py": CLEAN_PY}, "agents:\n  static-analysis:\n    min_severity: bogus\n"
        )
        result = runner.invoke(cli, ["analyze", "-p", str(project)])
        assert result.exit_code == EXIT_BAD_CONFIG

    @pytest.mark.parametrize("deadline", ["0", "-10"])
    def test_bad_deadline_config(self, runner, tmp_path, deadline):
        project = make_project(tmp_path, {"a.py": CLEAN_PY}, f"coordination:\n  deadline_ms: {deadline}\n")
        result = runner.invoke(cli, ["analyze", "-p", str(project)])
        assert result.exit_code == EXIT_BAD_CONFIG
        assert "Invalid coordination configuration" in result.output

    def test_string_parallel_flag(self, runner, tmp_path):
        project = make_project(tmp_path, {"a.py": CLEAN_PY}, "coordination:\n  parallel: \"false\"\n")
        result = runner.invoke(cli, ["analyze", "-p", str(project), "-f", "json"])
        assert result.exit_code == 0
        assert "(sequential)" in result.output

    def test_ci_ship(self, runner, tmp_path):
        project = make_project(tmp_path, {"a.py": CLEAN_PY})
        result = runner.invoke(cli, ["analyze", "-p", str(project), "-q", "--ci"])
        assert result.exit_code == 0

    def test_ci_conditional(self, runner, tmp_path):
        project = make_project(tmp_path, {"risky.js": RISKY_JS})
        result = runner.invoke(cli, ["analyze", "-p", str(project), "-q", "--ci"])
        assert result.exit_code == 2

    def test_ci_custom_exit_codes(self, runner, tmp_path):
        project = make_project(tmp_path, {"risky.js": RISKY_JS}, "ci:\n  exit_codes:\n    conditional: 7\n")
        result = runner.invoke(cli, ["analyze", "-p", str(project), "-q", "--ci"])
        assert result.exit_code == 7

    def test_without_ci_exit_zero(self, runner, tmp_path):
        project = make_project(tmp_path, {"risky.js": RISKY_JS})
        result = runner.invoke(cli, ["analyze", "-p", str(project), "-q"])
        assert result.exit_code == 0

    def test_disabled_agent_not_run(self, runner, tmp_path):
        project = make_project(
            tmp_path, {"a.py": CLEAN_PY}, "agents:\n  test-generation:\n    enabled: false\n"
        )
        result = runner.invoke(cli, ["analyze", "-p", str(project), "-q", "-f", "json"])
        payload = json.loads(result.stdout)
        assert "test-generation" not in [row["agent"] for row in payload["sections"][0]["rows"]]


class TestAgentsCommand:
    def test_lists_builtin_agents(self, runner, tmp_path):
        result = runner.invoke(cli, ["agents", "-p", str(tmp_path)])
        assert result.exit_code == 0
        for name in ("static-analysis", "error-detection", "test-generation"):
            assert name in result.output


class TestGenerateTests:
    def test_pytest_skeleton(self, runner, tmp_path):
        target = tmp_path / "calc.py"
        target.write_text(CLEAN_PY, encoding="utf-8")
        result = runner.invoke(cli, ["generate-tests", str(target)])
        assert result.exit_code == 0, result.output
        assert "from calc import add" in result.stdout
        assert "def test_add" in result.stdout

    def test_missing_target(self, runner, tmp_path):
        result = runner.invoke(cli, ["generate-tests", str(tmp_path / "nope.py")])
        assert result.exit_code == 2
