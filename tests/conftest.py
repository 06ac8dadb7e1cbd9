"""Shared fixtures for agentmesh tests."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Optional

import pytest

from agentmesh.core.agents import BaseAgent
from agentmesh.core.registry import AgentRegistry
from agentmesh.models import (
    AgentCapabilities,
    AgentKind,
    AnalysisContext,
    AnalysisReport,
    Finding,
    FindingCategory,
    Location,
    Severity,
)

TS_SOURCE = """\
import { helper } from '../../../shared/helper';

// TODO: remove once the API is stable
export function parseUser(data: any) {
  console.log('parsing', data);
  const user = data.users.find((u) => u.active);
  return user.name;
}

export async function loadUser(id: string) {
  return fetch('/api/users/' + id).then((r) => r.json());
}

export class UserStore {
  private users: string[] = [];

  add(name: string) {
    this.users.push(name);
  }

  last() {
    return this.users.pop();
  }
}
"""

JS_SOURCE = """\
const apiKey = "sk-live-1234567890";

function render(el, html) {
  el.innerHTML = '<div>' + html + '</div>';
}

function run(code) {
  try {
    return eval(code);
  } catch (e) {
  }
}

setInterval(() => render(document.body, 'tick'), 5000);
"""

PY_SOURCE = """\
import os


def load(path):
    try:
        with open(path) as fh:
            return fh.read()
    except:
        return None


async def fetch_all(urls):
    print("fetching", len(urls))
    return [u for u in urls if u]


class Cache:
    def get(self, key):
        return os.environ.get(key)
"""


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a small mixed-language project."""
    project = tmp_path / "test-project"
    project.mkdir()
    (project / "src").mkdir()
    (project / "src" / "user.ts").write_text(TS_SOURCE, encoding="utf-8")
    (project / "src" / "legacy.js").write_text(JS_SOURCE, encoding="utf-8")
    (project / "src" / "loader.py").write_text(PY_SOURCE, encoding="utf-8")
    (project / "README.md").write_text("# Test Project\n", encoding="utf-8")
    (project / "node_modules").mkdir()
    (project / "node_modules" / "dep.js").write_text("eval('1');\n", encoding="utf-8")
    return project


@pytest.fixture
def context(tmp_project: Path) -> AnalysisContext:
    return AnalysisContext(project_path=str(tmp_project))


# ---------------------------------------------------------------------------
# Fake agents
# ---------------------------------------------------------------------------

def make_finding(
    file: str,
    line: int,
    severity: Severity = Severity.MEDIUM,
    category: FindingCategory = FindingCategory.QUALITY,
    title: str = "Issue",
    agent: str = "fake",
) -> Finding:
    return Finding(
        id=f"{agent}-{file}-{line}-{title}",
        category=category,
        severity=severity,
        location=Location(file=file, line=line),
        title=title,
        message=f"{title} in {file}",
        rule_id=title.lower().replace(" ", "-"),
    )


class StaticAgent:
    """Returns a fixed list of findings."""

    version = "1.0.0"
    description = "fixed findings"

    def __init__(
        self,
        name: str,
        findings: Optional[list[Finding]] = None,
        tags: frozenset[str] = frozenset(),
        kind: AgentKind = AgentKind.OTHER,
    ):
        self.name = name
        self.findings = findings or []
        self.capabilities = AgentCapabilities(kind=kind, tags=tags)
        self.calls = 0

    async def analyze(self, context: AnalysisContext) -> AnalysisReport:
        self.calls += 1
        return AnalysisReport(
            agent_name=self.name,
            agent_version=self.version,
            findings=tuple(self.findings),
            execution_time_ms=1.0,
        )


class FailingAgent(StaticAgent):
    def __init__(self, name: str = "failing", error: Optional[BaseException] = None):
        super().__init__(name)
        self.error = error or RuntimeError("boom")

    async def analyze(self, context: AnalysisContext) -> AnalysisReport:
        self.calls += 1
        raise self.error


class SlowAgent(StaticAgent):
    def __init__(self, name: str = "slow", delay: float = 0.5, findings: Optional[list[Finding]] = None):
        super().__init__(name, findings)
        self.delay = delay
        self.cancelled = False

    async def analyze(self, context: AnalysisContext) -> AnalysisReport:
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return await super().analyze(context)


class RecordingAgent(StaticAgent):
    """Appends (name, event, timestamp) tuples to a shared log."""

    def __init__(self, name: str, log: list, delay: float = 0.02):
        super().__init__(name)
        self.log = log
        self.delay = delay

    async def analyze(self, context: AnalysisContext) -> AnalysisReport:
        self.calls += 1
        self.log.append((self.name, "start", time.perf_counter()))
        await asyncio.sleep(self.delay)
        self.log.append((self.name, "end", time.perf_counter()))
        return AnalysisReport(agent_name=self.name, execution_time_ms=self.delay * 1000)


class WrongNameAgent(StaticAgent):
    async def analyze(self, context: AnalysisContext) -> AnalysisReport:
        return AnalysisReport(agent_name="someone-else")


class LineCountAgent(BaseAgent):
    """BaseAgent subclass emitting one finding per non-empty line."""

    name = "line-count"
    description = "one finding per line"
    capabilities = AgentCapabilities(supported_file_types=frozenset({"ts"}))

    def analyze_file(self, path, content, lines, context):
        return [
            self.finding(
                Severity.LOW if "low" in line else Severity.HIGH,
                FindingCategory.STYLE if "style" in line else FindingCategory.QUALITY,
                "Line",
                line,
                path,
                index + 1,
                rule_id="line",
            )
            for index, line in enumerate(lines)
            if line.strip()
        ]


@pytest.fixture
def registry() -> AgentRegistry:
    return AgentRegistry()
