"""Agent capability contract and the shared agent template.

The coordinator only ever talks to the ``Agent`` protocol. ``BaseAgent``
is a convenience for file-by-file analyzers: it validates the context,
picks the files, reads them off the event loop, turns per-file problems
into findings or notes, then filters and sorts the result.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

from ..models.agent import AgentCapabilities, AgentConfig, AnalysisReport
from ..models.context import AnalysisContext
from ..models.finding import Finding, FindingCategory, Location, Severity, sort_findings
from ..utils.sanitize import describe_exception, safe_snippet
from .errors import ContextError
from .scanner import discover_source_files

logger = logging.getLogger(__name__)


@runtime_checkable
class Agent(Protocol):
    """Protocol that all analysis agents must implement."""

    name: str
    version: str
    description: str
    capabilities: AgentCapabilities

    async def analyze(self, context: AnalysisContext) -> AnalysisReport: ...


class BaseAgent:
    """Base class with file selection, per-file isolation and filtering."""

    name: str = "base"
    version: str = "1.0.0"
    description: str = ""
    capabilities: AgentCapabilities = AgentCapabilities()

    def __init__(self, config: Optional[AgentConfig] = None):
        self.config = config or AgentConfig()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

    # ------------------------------------------------------------------
    # Hook
    # ------------------------------------------------------------------

    def analyze_file(
        self,
        path: str,
        content: str,
        lines: list[str],
        context: AnalysisContext,
    ) -> list[Finding]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Template
    # ------------------------------------------------------------------

    async def analyze(self, context: AnalysisContext) -> AnalysisReport:
        start = time.perf_counter()
        self.validate_context(context)

        files = self.select_files(context)
        logger.debug("%s: analyzing %d file(s)", self.name, len(files))

        findings: list[Finding] = []
        notes: list[str] = []
        analyzed = 0
        for path in files:
            file_findings, note, was_read = await asyncio.to_thread(
                self._process_file, path, context
            )
            findings.extend(file_findings)
            if note:
                notes.append(note)
            if was_read:
                analyzed += 1

        return AnalysisReport(
            agent_name=self.name,
            agent_version=self.version,
            findings=self.filter_findings(findings),
            execution_time_ms=(time.perf_counter() - start) * 1000,
            files_analyzed=analyzed,
            notes=tuple(notes),
        )

    def validate_context(self, context: AnalysisContext) -> None:
        root = context.root
        if not root.exists():
            raise ContextError(context.project_path, "Project path does not exist")
        if not root.is_dir():
            raise ContextError(context.project_path, "Project path is not a directory")

    def select_files(self, context: AnalysisContext) -> list[Path]:
        if context.files:
            return [
                context.resolve(f)
                for f in context.files
                if self.capabilities.supports_file(f)
            ]
        return discover_source_files(context.root, self.capabilities.supported_file_types)

    def _process_file(
        self, path: Path, context: AnalysisContext
    ) -> tuple[list[Finding], Optional[str], bool]:
        display = context.relative(path)
        try:
            content = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            return [self.file_error_finding(display, e)], None, False

        try:
            return list(self.analyze_file(display, content, content.splitlines(), context)), None, True
        except Exception as e:
            logger.warning("%s: skipped %s: %s", self.name, display, describe_exception(e))
            return [], f"{display}: skipped ({describe_exception(e)})", True

    # ------------------------------------------------------------------
    # Findings
    # ------------------------------------------------------------------

    def finding(
        self,
        severity: Severity,
        category: FindingCategory,
        title: str,
        message: str,
        file: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        snippet: Optional[str] = None,
        suggestion: Optional[str] = None,
        rule_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Finding:
        """Create a finding with an id derived from its content.

        Snippets holding a hardcoded credential are stored masked.
        """
        return Finding(
            id=self.finding_id(file, line, column, rule_id, title),
            category=category,
            severity=severity,
            location=Location(file=file, line=line, column=column or None),
            title=title,
            message=message,
            rule_id=rule_id,
            snippet=safe_snippet(snippet.rstrip()) if snippet else None,
            suggestion=suggestion,
            metadata=metadata or {},
        )

    def finding_id(
        self,
        file: str,
        line: Optional[int],
        column: Optional[int],
        rule_id: Optional[str],
        title: str,
    ) -> str:
        parts = [self.name, file, str(line or 0), str(column or 0), rule_id or "unknown", title]
        digest = hashlib.sha1("|".join(parts).encode("utf-8")).hexdigest()[:12]
        return f"{self.name}-{digest}"

    def file_error_finding(self, file: str, error: BaseException) -> Finding:
        return self.finding(
            Severity.HIGH,
            FindingCategory.CORRECTNESS,
            "File Read Error",
            f"Cannot read file: {describe_exception(error)}",
            file,
            suggestion="Check that the file exists, is readable and is UTF-8 encoded",
            rule_id="file-read-error",
        )

    def filter_findings(self, findings: Iterable[Finding]) -> tuple[Finding, ...]:
        """Apply severity/category filters and the findings cap, then sort."""
        config = self.config
        filtered = [f for f in findings if f.severity.at_least(config.min_severity)]

        if config.include_categories:
            filtered = [f for f in filtered if f.category in config.include_categories]
        if config.exclude_categories:
            filtered = [f for f in filtered if f.category not in config.exclude_categories]

        if config.max_findings is not None and len(filtered) > config.max_findings:
            # Keep the most severe
            filtered.sort(key=lambda f: (-f.severity.rank, f.sort_key))
            filtered = filtered[: config.max_findings]

        return sort_findings(filtered)
