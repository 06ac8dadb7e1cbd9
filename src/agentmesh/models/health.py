"""Agent health data models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DEGRADING = "degrading"
    UNKNOWN = "unknown"


class AgentHealth(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_name: str
    samples: int = 0
    failure_rate: float = 0.0
    mean_execution_time_ms: float = 0.0
    trend: Trend = Trend.UNKNOWN
    healthy: bool = True
    last_error: Optional[str] = None
