"""Action Routing - Closed Table of Action -> (Agent, Capability) Routes

Actions are dotted names such as "removal.execute". Each ActionRoute
lists the action aliases it answers to and the single agent capability
it dispatches to. The table is fixed at construction and validated
against the registry at startup, so a typo in a route fails the process
instead of failing the first request that hits it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from core.agent_registry import AgentRegistry
from core.errors import RoutingConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionRoute:
    """One routing rule"""

    id: str
    actions: Tuple[str, ...]
    agent_id: str
    capability_id: str
    description: str = ""

    def matches(self, action: str) -> bool:
        return action in self.actions

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "actions": list(self.actions),
            "agent_id": self.agent_id,
            "capability_id": self.capability_id,
            "description": self.description,
        }


class ActionRouter:
    """Resolves an action string to its ActionRoute"""

    def __init__(self, routes: Iterable[ActionRoute]):
        self._routes: Tuple[ActionRoute, ...] = tuple(routes)
        self._index: Dict[str, ActionRoute] = {}

        problems = []
        for route in self._routes:
            for action in route.actions:
                if action in self._index:
                    problems.append(
                        f"action '{action}' claimed by both '{self._index[action].id}' and '{route.id}'"
                    )
                else:
                    self._index[action] = route
        if problems:
            raise RoutingConfigurationError(problems)

    @property
    def routes(self) -> Tuple[ActionRoute, ...]:
        return self._routes

    def resolve(self, action: str) -> Optional[ActionRoute]:
        return self._index.get(action)

    def can_route(self, action: str) -> bool:
        return action in self._index

    def actions(self) -> List[str]:
        return sorted(self._index)

    def validate(self, registry: AgentRegistry) -> None:
        """Check every route targets a registered agent capability

        Raises:
            RoutingConfigurationError: Listing every broken route
        """
        problems = []
        for route in self._routes:
            agent = registry.get_agent(route.agent_id)
            if agent is None:
                problems.append(f"route '{route.id}' targets unknown agent '{route.agent_id}'")
            elif agent.get_capability(route.capability_id) is None:
                problems.append(
                    f"route '{route.id}' targets unknown capability "
                    f"'{route.capability_id}' on agent '{route.agent_id}'"
                )

        if problems:
            for problem in problems:
                logger.error(f"❌ {problem}")
            raise RoutingConfigurationError(problems)

        logger.info(f"✅ Routing table valid ({len(self._routes)} routes, {len(self._index)} actions)")
