"""
Verification Agent - Watches removed listings for reappearance
"""

from typing import Any, Dict, List

from core.agent import BaseAgent
from core.hybrid import CapabilityOutput
from core.types import AgentDomain, AgentMode, Capability, ExecutionContext


class VerificationAgent(BaseAgent):
    """
    Agent that confirms removals stay removed.

    Capabilities:
    - Detect listings that reappeared after removal
    - Collect proof of removal
    - Summarize long-term removal success (AI-assisted)
    """

    id = "verification-agent"
    name = "Verification Agent"
    domain = AgentDomain.VERIFICATION
    mode = AgentMode.AUTOMATIC
    description = "Re-scans removed listings and gathers proof of removal"
    capabilities = (
        Capability(
            id="monitor-reappearance",
            name="Monitor Re-appearances",
            description="Detect data reappearing after removal",
            supports_batch=True,
        ),
        Capability(
            id="collect-proof",
            name="Collect Proof",
            description="Gather proof of removal",
        ),
        Capability(
            id="long-term-tracking",
            name="Long-term Tracking",
            description="Track removal success over time",
            requires_ai=True,
            estimated_tokens=400,
        ),
    )

    def get_system_prompt(self) -> str:
        return (
            "You review the removal history of one user and judge whether removals are holding. "
            'Reply with JSON: {"data": {"trend": "...", "at_risk_brokers": [...]}, '
            '"confidence": 0.0-1.0, "needs_human_review": bool}'
        )

    def register_handlers(self) -> None:
        self.register_handler("monitor-reappearance", self.monitor_reappearance)
        self.register_handler("collect-proof", self.collect_proof)
        self.register_handler("long-term-tracking", self.long_term_tracking)

    async def monitor_reappearance(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        listings: List[Dict[str, Any]] = list((payload or {}).get("listings", []))
        reappeared = [item["id"] for item in listings if item.get("found_again")]

        output = CapabilityOutput(
            data={"checked": len(listings), "reappeared": reappeared},
        )
        if reappeared:
            output.needs_human_review = True
            output.manager_review_items.append(f"{len(reappeared)} listing(s) reappeared after removal")
            output.suggested_actions.append("Re-queue removals for the reappeared listings")
        return output

    async def collect_proof(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        payload = payload or {}
        reappeared = payload.get("reappeared", [])
        return {
            "proof_collected": payload.get("checked", 0) - len(reappeared),
            "missing_proof": list(reappeared),
        }

    async def long_term_tracking(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        history = list((payload or {}).get("history", []))
        if not history:
            return CapabilityOutput(data={"trend": "no_data", "success_rate": None}, confidence=0.3)

        verified = sum(1 for entry in history if entry.get("status") == "VERIFIED")
        rate = verified / len(history)
        return CapabilityOutput(
            data={"trend": "holding" if rate >= 0.8 else "slipping", "success_rate": round(rate, 3)},
            confidence=0.8,
        )
