"""Bundled analysis agents."""

from __future__ import annotations

import logging
from typing import Optional

from ..core.config import DEFAULT_CONFIG, agent_config_from, is_agent_enabled
from ..core.registry import AgentRegistry
from .error_detection import ErrorDetectionAgent
from .static_analysis import StaticAnalysisAgent
from .test_generation import GeneratedTest, TestGenerationAgent, TestGenerationRequest

logger = logging.getLogger(__name__)

BUILTIN_AGENTS = (StaticAnalysisAgent, ErrorDetectionAgent, TestGenerationAgent)


def build_default_registry(config: Optional[dict] = None) -> AgentRegistry:
    """Registry with every enabled built-in agent, configured from ``config``."""
    config = config if config is not None else DEFAULT_CONFIG
    registry = AgentRegistry()
    for agent_cls in BUILTIN_AGENTS:
        if not is_agent_enabled(config, agent_cls.name):
            logger.debug("Agent %s disabled by config", agent_cls.name)
            continue
        registry.register(agent_cls(agent_config_from(config, agent_cls.name)))
    return registry


__all__ = [
    "BUILTIN_AGENTS",
    "ErrorDetectionAgent",
    "GeneratedTest",
    "StaticAnalysisAgent",
    "TestGenerationAgent",
    "TestGenerationRequest",
    "build_default_registry",
]
