"""Agent registry.

An explicitly constructed, name-keyed collection of agents. Registration
is expected to finish before any coordination run starts.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .agents import Agent
from .errors import AgentNotFoundError, DuplicateAgentError

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Agents by name, in registration order."""

    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}
        self._tags: dict[str, frozenset[str]] = {}

    def register(self, agent: Agent, tags: Optional[Iterable[str]] = None) -> None:
        """Add an agent.

        Raises:
            TypeError: If ``agent`` does not implement the agent protocol.
            DuplicateAgentError: If an agent with the same name exists.
        """
        if not isinstance(agent, Agent):
            raise TypeError(f"{type(agent).__name__} does not implement the Agent protocol")
        name = agent.name
        if name in self._agents:
            raise DuplicateAgentError(name)

        self._agents[name] = agent
        self._tags[name] = frozenset(tags or ()) | agent.capabilities.all_tags()
        logger.debug("Registered agent %s v%s", name, agent.version)

    def unregister(self, name: str) -> Agent:
        """Remove and return an agent."""
        if name not in self._agents:
            raise AgentNotFoundError([name])
        self._tags.pop(name, None)
        return self._agents.pop(name)

    def get(self, name: str) -> Agent:
        try:
            return self._agents[name]
        except KeyError:
            raise AgentNotFoundError([name]) from None

    def list(self) -> list[Agent]:
        return list(self._agents.values())

    def names(self) -> list[str]:
        return list(self._agents)

    def tags_for(self, name: str) -> frozenset[str]:
        if name not in self._tags:
            raise AgentNotFoundError([name])
        return self._tags[name]

    def by_capability(self, tag: str) -> list[Agent]:
        """Agents carrying ``tag`` (registration tag, capability tag or kind)."""
        return [agent for name, agent in self._agents.items() if tag in self._tags[name]]

    def resolve(self, names: Optional[Iterable[str]] = None) -> list[Agent]:
        """Agents for ``names`` in registration order; all agents for ``None``.

        Raises:
            AgentNotFoundError: Listing every unknown name.
        """
        if names is None:
            return self.list()
        wanted = set(names)
        missing = wanted - self._agents.keys()
        if missing:
            raise AgentNotFoundError(missing)
        return [agent for name, agent in self._agents.items() if name in wanted]

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self):
        return iter(self.list())
