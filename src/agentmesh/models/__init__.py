"""Shared data vocabulary for agents, the coordinator and reporters."""

from .agent import (
    AgentCapabilities,
    AgentConfig,
    AgentError,
    AgentKind,
    AnalysisReport,
    ErrorKind,
)
from .context import AnalysisContext, AnalysisDepth
from .coordination import CoordinationRequest, CoordinationResult, CoordinationSummary
from .finding import Finding, FindingCategory, Location, Severity
from .health import AgentHealth, Trend

__all__ = [
    "AgentCapabilities",
    "AgentConfig",
    "AgentError",
    "AgentHealth",
    "AgentKind",
    "AnalysisContext",
    "AnalysisDepth",
    "AnalysisReport",
    "CoordinationRequest",
    "CoordinationResult",
    "CoordinationSummary",
    "ErrorKind",
    "Finding",
    "FindingCategory",
    "Location",
    "Severity",
    "Trend",
]
