"""Finding data models."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Mapping, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, other: "Severity") -> bool:
        return self.rank >= other.rank


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}

SEVERITY_ORDER: list[Severity] = sorted(Severity, key=lambda s: -s.rank)


def _freeze(value: Mapping) -> Mapping:
    return MappingProxyType(dict(value))


# Read-only view inside frozen models; serializes as a plain dict
FrozenCounts = Annotated[Mapping[str, int], AfterValidator(_freeze), PlainSerializer(dict, return_type=dict)]
FrozenMetadata = Annotated[Mapping[str, Any], AfterValidator(_freeze), PlainSerializer(dict, return_type=dict)]


class FindingCategory(str, Enum):
    SECURITY = "security"
    QUALITY = "quality"
    PERFORMANCE = "performance"
    CORRECTNESS = "correctness"
    STYLE = "style"
    MAINTAINABILITY = "maintainability"
    TESTING = "testing"
    DOCUMENTATION = "documentation"


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str
    line: Optional[int] = Field(default=None, ge=1)
    column: Optional[int] = Field(default=None, ge=1)
    end_line: Optional[int] = Field(default=None, ge=1)
    end_column: Optional[int] = Field(default=None, ge=1)

    def __str__(self) -> str:
        if self.line is None:
            return self.file
        if self.column is None:
            return f"{self.file}:{self.line}"
        return f"{self.file}:{self.line}:{self.column}"


class Finding(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: FindingCategory
    severity: Severity
    location: Location
    title: str
    message: str
    rule_id: Optional[str] = None
    snippet: Optional[str] = None
    suggestion: Optional[str] = None
    metadata: FrozenMetadata = Field(default_factory=dict, validate_default=True)

    @property
    def sort_key(self) -> tuple:
        """File, line, most severe first, then column/rule/title as tie breakers."""
        return (
            self.location.file,
            self.location.line or 0,
            -self.severity.rank,
            self.location.column or 0,
            self.rule_id or "",
            self.title,
        )

    @property
    def dedup_key(self) -> tuple:
        return (
            self.location.file,
            self.location.line or 0,
            self.location.column or 0,
            self.category,
            self.title,
        )


def sort_findings(findings) -> tuple[Finding, ...]:
    return tuple(sorted(findings, key=lambda f: f.sort_key))


def count_by_severity(findings) -> dict[str, int]:
    counts = {s.value: 0 for s in SEVERITY_ORDER}
    for f in findings:
        counts[f.severity.value] += 1
    return counts


def count_by_category(findings) -> dict[str, int]:
    counts = {c.value: 0 for c in FindingCategory}
    for f in findings:
        counts[f.category.value] += 1
    return counts
