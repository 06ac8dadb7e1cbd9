"""Agent data models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .finding import Finding, FindingCategory, Severity, count_by_category, count_by_severity


class AgentKind(str, Enum):
    STATIC_ANALYSIS = "static_analysis"
    ERROR_DETECTION = "error_detection"
    TEST_GENERATION = "test_generation"
    SECURITY = "security"
    OTHER = "other"


class AgentCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: AgentKind = AgentKind.OTHER
    tags: frozenset[str] = frozenset()
    supported_file_types: frozenset[str] = frozenset()
    categories: frozenset[FindingCategory] = frozenset()
    can_suggest_fixes: bool = False
    can_generate_tests: bool = False
    supports_incremental: bool = False

    def all_tags(self) -> frozenset[str]:
        return self.tags | {self.kind.value}

    def supports_file(self, file_name: str) -> bool:
        if not self.supported_file_types:
            return True
        ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
        return ext in self.supported_file_types


class AgentConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_severity: Severity = Severity.INFO
    include_categories: frozenset[FindingCategory] = frozenset()
    exclude_categories: frozenset[FindingCategory] = frozenset()
    max_findings: Optional[int] = Field(default=1000, ge=0)
    options: dict[str, Any] = Field(default_factory=dict)


class ErrorKind(str, Enum):
    FAILURE = "failure"
    TIMEOUT = "timeout"


class AgentError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    error_type: str = ""


class AnalysisReport(BaseModel):
    """One agent's write-once output for one context."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    agent_version: str = "0.0.0"
    findings: tuple[Finding, ...] = ()
    execution_time_ms: float = Field(default=0.0, ge=0)
    files_analyzed: int = 0
    notes: tuple[str, ...] = ()
    error: Optional[AgentError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def failed_report(
        cls,
        agent_name: str,
        agent_version: str,
        kind: ErrorKind,
        message: str,
        execution_time_ms: float = 0.0,
        error_type: str = "",
    ) -> "AnalysisReport":
        return cls(
            agent_name=agent_name,
            agent_version=agent_version,
            execution_time_ms=max(execution_time_ms, 0.0),
            error=AgentError(kind=kind, message=message, error_type=error_type),
        )

    def findings_by_severity(self) -> dict[str, int]:
        return count_by_severity(self.findings)

    def findings_by_category(self) -> dict[str, int]:
        return count_by_category(self.findings)
