"""Error taxonomy.

Only request-shape errors escape ``AgentCoordinator.coordinate()``; anything
an agent raises while running is recorded in its report instead.
"""

from __future__ import annotations

from typing import Iterable


class AgentMeshError(Exception):
    """Base class for all agentmesh errors."""


class AgentNotFoundError(AgentMeshError):
    def __init__(self, names: Iterable[str]):
        self.names = tuple(sorted(names))
        super().__init__(f"Unknown agent(s): {', '.join(self.names)}")


class DuplicateAgentError(AgentMeshError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Agent already registered: {name}")


class CoordinationError(AgentMeshError):
    """Malformed coordination request."""


class AgentAnalysisError(AgentMeshError):
    """Structured failure raised by an agent for a whole context."""


class ContextError(AgentAnalysisError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")
