"""3-layer configuration system for agentmesh.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.agentmesh/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models.agent import AgentConfig

logger = logging.getLogger(__name__)

CONFIG_DIR = ".agentmesh"

DEFAULT_CONFIG: dict = {
    "coordination": {
        "parallel": True,
        "deadline_ms": None,
    },
    "agents": {
        "static-analysis": {"enabled": True, "min_severity": "info", "max_findings": 1000},
        "error-detection": {"enabled": True, "min_severity": "info", "max_findings": 1000},
        "test-generation": {"enabled": True, "min_severity": "info", "max_findings": 1000},
    },
    "health": {
        "window": 20,
        "max_failure_rate": 0.25,
        "trend_tolerance": 0.2,
        "min_samples": 4,
    },
    "output": {
        "format": "console",
        "min_severity": "info",
        "group_by": "severity",
        "max_findings": None,
    },
    "ci": {
        "exit_codes": {"ship": 0, "conditional": 2, "hold": 1},
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .agentmesh/config.yaml."""
    config_path = Path(project_path) / CONFIG_DIR / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        loaded = yaml.safe_load(content)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e.__class__.__name__)
        return {}
    if not isinstance(loaded, dict):
        return {}
    return loaded


def get_effective_config(
    project_path: Path,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    project_config = load_project_config(project_path)
    if project_config:
        config = deep_merge(config, project_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["_project_path"] = str(project_path)

    return config


def agent_settings(config: dict, name: str) -> dict[str, Any]:
    agents = config.get("agents") or {}
    settings = agents.get(name)
    return settings if isinstance(settings, dict) else {}


def is_agent_enabled(config: dict, name: str) -> bool:
    return bool(agent_settings(config, name).get("enabled", True))


def agent_config_from(config: dict, name: str) -> AgentConfig:
    """Build the ``AgentConfig`` for agent ``name``.

    Raises:
        ValueError: If the agent section holds invalid values.
    """
    settings = agent_settings(config, name)
    fields = {
        key: settings[key]
        for key in ("min_severity", "max_findings", "include_categories", "exclude_categories", "options")
        if settings.get(key) is not None
    }
    try:
        return AgentConfig(**fields)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration for agent '{name}': {e.error_count()} error(s)") from e


class CoordinationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    parallel: bool = True
    deadline_ms: Optional[float] = Field(default=None, gt=0)


def coordination_settings_from(config: dict) -> CoordinationSettings:
    """Validated ``coordination`` section.

    Raises:
        ValueError: If the section holds invalid values.
    """
    section = config.get("coordination") or {}
    if not isinstance(section, dict):
        raise ValueError("Invalid coordination configuration: expected a mapping")
    fields = {key: section[key] for key in ("parallel", "deadline_ms") if section.get(key) is not None}
    try:
        return CoordinationSettings(**fields)
    except ValidationError as e:
        raise ValueError(f"Invalid coordination configuration: {e.error_count()} error(s)") from e
