"""Agent Registry - Catalog of Available Agents and Capabilities

Agents are registered explicitly at process start (see app/engine.py)
and stay registered for the life of the process. The Orchestrator and
the HTTP layer only ever look agents up here.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.agent import AgentConfig, BaseAgent
from core.errors import DuplicateAgentError
from core.types import AgentDomain, Capability

logger = logging.getLogger(__name__)


@dataclass
class RegistryStats:
    """Aggregate counts over the registry"""

    total_agents: int = 0
    enabled_agents: int = 0
    total_capabilities: int = 0
    by_domain: Dict[str, int] = field(default_factory=dict)
    by_mode: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "total_agents": self.total_agents,
            "enabled_agents": self.enabled_agents,
            "total_capabilities": self.total_capabilities,
            "by_domain": self.by_domain,
            "by_mode": self.by_mode,
        }


class AgentRegistry:
    """Registry of all available agents and their capabilities

    get_agent() returns the same instance on every call; the registry
    never constructs or replaces agents itself.
    """

    def __init__(self):
        self._agents: Dict[str, BaseAgent] = {}
        logger.info("🗂️ Agent Registry created")

    def register(self, agent: BaseAgent, config: Optional[AgentConfig] = None) -> None:
        """Register an agent

        Raises:
            DuplicateAgentError: If an agent with the same id is registered
        """
        if agent.id in self._agents:
            raise DuplicateAgentError(agent.id)

        if config is not None:
            agent.config = config

        self._agents[agent.id] = agent
        logger.debug(f"   Registered: {agent.id} ({len(agent.capabilities)} capabilities)")

    def get_agent(self, agent_id: str) -> Optional[BaseAgent]:
        return self._agents.get(agent_id)

    def get_agent_config(self, agent_id: str) -> Optional[AgentConfig]:
        agent = self._agents.get(agent_id)
        return agent.config if agent else None

    def enable_agent(self, agent_id: str) -> bool:
        agent = self._agents.get(agent_id)
        if agent is None:
            return False
        agent.config.enabled = True
        logger.info(f"🟢 Agent '{agent_id}' enabled")
        return True

    def disable_agent(self, agent_id: str) -> bool:
        agent = self._agents.get(agent_id)
        if agent is None:
            return False
        agent.config.enabled = False
        logger.info(f"🔴 Agent '{agent_id}' disabled")
        return True

    def get_all_agents(self) -> List[BaseAgent]:
        return list(self._agents.values())

    def get_agents_by_domain(self, domain: AgentDomain) -> List[BaseAgent]:
        return [a for a in self._agents.values() if a.domain == domain]

    def find_capability(self, agent_id: str, capability_id: str) -> Optional[Capability]:
        agent = self._agents.get(agent_id)
        return agent.get_capability(capability_id) if agent else None

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def get_stats(self) -> RegistryStats:
        stats = RegistryStats(total_agents=len(self._agents))
        for agent in self._agents.values():
            if agent.config.enabled:
                stats.enabled_agents += 1
            stats.total_capabilities += len(agent.capabilities)
            stats.by_domain[agent.domain.value] = stats.by_domain.get(agent.domain.value, 0) + 1
            stats.by_mode[agent.mode.value] = stats.by_mode.get(agent.mode.value, 0) + 1
        return stats

    def get_agent_summaries(self) -> List[Dict]:
        return [agent.to_summary() for agent in self._agents.values()]

    async def initialize_all(self) -> None:
        """Initialize every agent; one failure does not stop the rest"""
        for agent in self._agents.values():
            try:
                await agent.initialize()
            except Exception as e:
                logger.error(f"❌ Failed to initialize agent '{agent.id}': {e}")
        logger.info(f"📚 Agent Registry initialized with {len(self._agents)} agents")

    async def shutdown_all(self) -> None:
        for agent in self._agents.values():
            try:
                await agent.shutdown()
            except Exception as e:
                logger.error(f"❌ Failed to shut down agent '{agent.id}': {e}")
