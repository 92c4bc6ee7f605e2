"""
Growth Agent - Referral and engagement analysis
"""

from typing import Any, Dict, List

from core.agent import BaseAgent
from core.hybrid import CapabilityOutput
from core.types import AgentDomain, AgentMode, Capability, ExecutionContext

# Referrals at which a user counts as a power user
POWER_USER_REFERRALS = 3


class GrowthAgent(BaseAgent):
    """
    Agent that analyzes referral loops and highly engaged users.
    """

    id = "growth-agent"
    name = "Growth Agent"
    domain = AgentDomain.GROWTH
    mode = AgentMode.HYBRID
    description = "Analyzes referral programs and identifies power users"
    capabilities = (
        Capability(
            id="optimize-referrals",
            name="Optimize Referrals",
            description="Recommend referral program changes",
            requires_ai=True,
            estimated_tokens=600,
        ),
        Capability(
            id="track-viral",
            name="Track Viral Loops",
            description="Compute the viral coefficient",
        ),
        Capability(
            id="identify-power-users",
            name="Identify Power Users",
            description="Find users who drive referrals",
            requires_ai=True,
            estimated_tokens=400,
        ),
    )

    def get_system_prompt(self) -> str:
        return (
            "You analyze referral data for a privacy service and recommend changes. "
            "Reply with a JSON object holding data, confidence, needs_human_review "
            "and suggested_actions."
        )

    def register_handlers(self) -> None:
        self.register_handler("optimize-referrals", self.optimize_referrals)
        self.register_handler("track-viral", self.track_viral)
        self.register_handler("identify-power-users", self.identify_power_users)

    async def optimize_referrals(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        payload = payload or {}
        sent = int(payload.get("invites_sent", 0))
        converted = int(payload.get("invites_converted", 0))
        rate = converted / sent if sent else 0.0

        recommendation = "raise_reward" if rate < 0.1 else "keep_current"
        return CapabilityOutput(
            data={"conversion_rate": round(rate, 3), "recommendation": recommendation},
            # Rules cannot judge reward economics; a person signs off
            confidence=0.55,
            suggested_actions=["Review reward budget before changing the program"],
        )

    async def track_viral(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        payload = payload or {}
        users = int(payload.get("active_users", 0))
        invites = int(payload.get("invites_sent", 0))
        converted = int(payload.get("invites_converted", 0))
        if users == 0:
            coefficient = 0.0
        else:
            coefficient = (invites / users) * (converted / invites if invites else 0.0)
        return {"viral_coefficient": round(coefficient, 4), "is_viral": coefficient > 1.0}

    async def identify_power_users(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        users: List[Dict[str, Any]] = list((payload or {}).get("users", []))
        power_users = [u["id"] for u in users if int(u.get("referrals", 0)) >= POWER_USER_REFERRALS]
        return CapabilityOutput(
            data={"power_users": power_users, "evaluated": len(users)},
            confidence=0.75 if users else 0.4,
        )
