"""Health Validation - QA Mode Over the Registry

Inspects agents without executing any capability: each agent reports
its derived health, availability and a list of human-readable issues.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.agent import BaseAgent
from core.agent_registry import AgentRegistry
from core.errors import AgentNotFoundError
from core.health import BLOCKING_STATUSES, HealthStatus

logger = logging.getLogger(__name__)

AI_FALLBACK_ISSUE = "AI not available, using rule-based fallback"


@dataclass
class AgentValidation:
    agent_id: str
    name: str
    status: HealthStatus
    is_available: bool
    consecutive_failures: int = 0
    ai_available: bool = False
    capability_count: int = 0
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "name": self.name,
            "status": self.status.value,
            "is_available": self.is_available,
            "consecutive_failures": self.consecutive_failures,
            "ai_available": self.ai_available,
            "capability_count": self.capability_count,
            "issues": self.issues,
        }


@dataclass
class ValidationReport:
    results: List[AgentValidation] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.results),
            "healthy": sum(1 for r in self.results if r.status == HealthStatus.HEALTHY),
            "degraded": sum(1 for r in self.results if r.status == HealthStatus.DEGRADED),
            "unhealthy": sum(1 for r in self.results if r.status in BLOCKING_STATUSES),
        }

    @property
    def success(self) -> bool:
        return self.summary["unhealthy"] == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "summary": self.summary,
            "results": [r.to_dict() for r in self.results],
            "generated_at": self.generated_at.isoformat(),
        }


async def validate_agent(agent: BaseAgent) -> AgentValidation:
    """Inspect one agent; a failing health probe reports ERROR"""
    try:
        health = await agent.get_health()
        is_available = await agent.is_available()
    except Exception as e:
        logger.error(f"❌ Validation of '{agent.id}' failed: {e}")
        return AgentValidation(
            agent_id=agent.id,
            name=agent.name,
            status=HealthStatus.ERROR,
            is_available=False,
            capability_count=len(agent.capabilities),
            issues=[f"Health check failed: {e}"],
        )

    issues = []
    if health.error_message:
        issues.append(health.error_message)
    if not agent.config.enabled:
        issues.append("Agent is disabled")
    if not health.ai_available and any(c.requires_ai for c in agent.capabilities):
        issues.append(AI_FALLBACK_ISSUE)

    return AgentValidation(
        agent_id=agent.id,
        name=agent.name,
        status=health.status,
        is_available=is_available,
        consecutive_failures=health.consecutive_failures,
        ai_available=health.ai_available,
        capability_count=len(agent.capabilities),
        issues=issues,
    )


async def validate_agents(registry: AgentRegistry, agent_id: Optional[str] = None) -> ValidationReport:
    """Validate every agent, or just `agent_id`

    Raises:
        AgentNotFoundError: If `agent_id` is given but not registered
    """
    if agent_id is not None:
        agent = registry.get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        agents = [agent]
    else:
        agents = registry.get_all_agents()

    report = ValidationReport()
    for agent in agents:
        report.results.append(await validate_agent(agent))

    summary = report.summary
    logger.info(
        f"🩺 Validation: {summary['healthy']} healthy, {summary['degraded']} degraded, "
        f"{summary['unhealthy']} unhealthy"
    )
    return report


async def system_health(registry: AgentRegistry) -> Dict[str, Any]:
    """Per-agent health snapshots plus an overall status"""
    agents = []
    for agent in registry.get_all_agents():
        try:
            snapshot = await agent.get_health()
            agents.append({"name": agent.name, **snapshot.to_dict()})
        except Exception as e:
            agents.append({"agent_id": agent.id, "name": agent.name, "status": HealthStatus.ERROR.value, "error_message": str(e)})

    statuses = [a["status"] for a in agents]
    unhealthy = sum(1 for s in statuses if s in (HealthStatus.UNHEALTHY.value, HealthStatus.ERROR.value))
    degraded = statuses.count(HealthStatus.DEGRADED.value)
    if unhealthy:
        overall = HealthStatus.UNHEALTHY if unhealthy == len(agents) else HealthStatus.DEGRADED
    elif degraded:
        overall = HealthStatus.DEGRADED
    else:
        overall = HealthStatus.HEALTHY

    return {
        "status": overall.value,
        "summary": {
            "total": len(agents),
            "healthy": statuses.count(HealthStatus.HEALTHY.value),
            "degraded": degraded,
            "unhealthy": unhealthy,
        },
        "agents": agents,
    }
