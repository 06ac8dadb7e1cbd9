"""Verdict logic for CI gating."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from ..models.coordination import CoordinationResult
from ..models.finding import Severity

# Above this many high findings a clean run becomes conditional
MAX_HIGH_FOR_SHIP = 3

DEFAULT_EXIT_CODES = {"ship": 0, "conditional": 2, "hold": 1}


class Verdict(str, Enum):
    SHIP = "SHIP"
    CONDITIONAL = "CONDITIONAL"
    HOLD = "HOLD"


def calculate_verdict(result: CoordinationResult) -> Verdict:
    """Calculate the verdict from a coordination result.

    - HOLD: any critical finding
    - CONDITIONAL: no critical but >3 high, or any agent failed
    - SHIP: everything else
    """
    counts = result.summary.findings_by_severity
    if counts.get(Severity.CRITICAL.value, 0) > 0:
        return Verdict.HOLD
    if counts.get(Severity.HIGH.value, 0) > MAX_HIGH_FOR_SHIP or result.summary.agents_failed:
        return Verdict.CONDITIONAL
    return Verdict.SHIP


def get_exit_code(verdict: Verdict, exit_codes: Optional[dict[str, int]] = None) -> int:
    """Map verdict to exit code."""
    codes = {**DEFAULT_EXIT_CODES, **(exit_codes or {})}
    return int(codes.get(verdict.value.lower(), 0))
