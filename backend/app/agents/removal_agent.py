"""
Removal Agent - Opt-out strategy selection and removal request submission
"""

import hashlib
import logging
from typing import Any, Dict

from core.agent import BaseAgent
from core.hybrid import CapabilityOutput
from core.types import AgentDomain, AgentMode, Capability, ExecutionContext

logger = logging.getLogger(__name__)

# Confidence of each removal method when picked by the rules
METHOD_CONFIDENCE = {
    "FORM": 0.85,
    "EMAIL": 0.75,
    "MANUAL": 0.5,
}


def _request_id(exposure_id: str, method: str) -> str:
    digest = hashlib.sha1(f"{exposure_id}:{method}".encode()).hexdigest()
    return f"rr-{digest[:12]}"


class RemovalAgent(BaseAgent):
    """
    Agent that files removal requests with data brokers.

    Capabilities:
    - Select the removal method for an exposure (AI-assisted)
    - Submit a removal request
    - Verify a submitted removal
    - Process a batch of exposures
    """

    id = "removal-agent"
    name = "Removal Agent"
    domain = AgentDomain.REMOVAL
    mode = AgentMode.HYBRID
    version = "1.0.0"
    description = "Selects opt-out strategies and submits removal requests to data brokers"
    capabilities = (
        Capability(
            id="select-strategy",
            name="Select Removal Strategy",
            description="Choose the best removal method for an exposure",
            requires_ai=True,
            estimated_tokens=500,
        ),
        Capability(
            id="execute-removal",
            name="Execute Removal",
            description="Submit a removal request for one exposure",
        ),
        Capability(
            id="verify-removal",
            name="Verify Removal",
            description="Check whether a submitted removal took effect",
        ),
        Capability(
            id="batch-process",
            name="Batch Process Removals",
            description="Submit removal requests for a list of exposures",
            supports_batch=True,
        ),
    )

    def get_system_prompt(self) -> str:
        return """You pick the removal method for a personal-data exposure on a data broker site.

<methods>
FORM: the broker publishes a web opt-out form
EMAIL: the broker accepts opt-out requests by email only
MANUAL: anything else (phone, postal mail, identity verification)
</methods>

<response_format>
{"data": {"method": "FORM|EMAIL|MANUAL", "reason": "..."},
 "confidence": 0.0-1.0,
 "needs_human_review": true|false,
 "manager_review_items": ["..."],
 "suggested_actions": ["..."]}
</response_format>"""

    def register_handlers(self) -> None:
        self.register_handler("select-strategy", self.select_strategy)
        self.register_handler("execute-removal", self.execute_removal)
        self.register_handler("verify-removal", self.verify_removal)
        self.register_handler("batch-process", self.batch_process)

    async def select_strategy(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        payload = payload or {}
        if payload.get("has_opt_out_form"):
            method = "FORM"
        elif payload.get("opt_out_email"):
            method = "EMAIL"
        else:
            method = "MANUAL"

        output = CapabilityOutput(
            data={
                "method": method,
                "broker": payload.get("broker"),
                "exposure_id": payload.get("exposure_id"),
            },
            confidence=METHOD_CONFIDENCE[method],
        )
        if method == "MANUAL":
            output.manager_review_items.append(
                f"Broker '{payload.get('broker', 'unknown')}' has no automated opt-out channel"
            )
            output.suggested_actions.append("File the opt-out by hand and record the reference")
        return output

    async def execute_removal(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        payload = payload or {}
        exposure_id = payload.get("exposure_id")
        if not exposure_id:
            return CapabilityOutput.failed("exposure_id is required", code="INVALID_INPUT")

        method = payload.get("method", "EMAIL")
        status = "PENDING_MANUAL" if method == "MANUAL" else "SUBMITTED"
        logger.info(f"📨 Removal for {exposure_id} via {method}: {status}")
        return CapabilityOutput(
            data={
                "removal_request_id": _request_id(exposure_id, method),
                "exposure_id": exposure_id,
                "method": method,
                "status": status,
            },
            needs_human_review=method == "MANUAL",
        )

    async def verify_removal(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        payload = payload or {}
        removal_request_id = payload.get("removal_request_id")
        if not removal_request_id:
            return CapabilityOutput.failed("removal_request_id is required", code="INVALID_INPUT")

        still_listed = bool(payload.get("still_listed", False))
        output = CapabilityOutput(
            data={
                "removal_request_id": removal_request_id,
                "status": "STILL_PRESENT" if still_listed else "VERIFIED",
            },
            needs_human_review=still_listed,
        )
        if still_listed:
            output.manager_review_items.append(f"Removal {removal_request_id} is still listed by the broker")
            output.suggested_actions.append("Re-submit the removal or escalate to the broker")
        return output

    async def batch_process(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        exposure_ids = list((payload or {}).get("exposure_ids", []))
        submitted = [
            {"exposure_id": eid, "removal_request_id": _request_id(eid, "EMAIL")}
            for eid in exposure_ids
        ]
        return {"requested": len(exposure_ids), "submitted": submitted}
