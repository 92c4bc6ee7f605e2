"""Workflow catalog for the bundled agents"""

from typing import Any, Dict

from core.workflow import Workflow, WorkflowOptions, WorkflowStep


def _data(prior: Dict[str, Any], step_id: str) -> Dict[str, Any]:
    result = prior.get(step_id)
    if result is None or not result.success or not isinstance(result.data, dict):
        return {}
    return result.data


def _succeeded(step_id: str):
    def condition(prior) -> bool:
        result = prior.get(step_id)
        return result is not None and result.success
    return condition


FULL_REMOVAL_PIPELINE = Workflow(
    id="full-removal-pipeline",
    name="Full Removal Pipeline",
    description="Complete removal workflow: strategy selection -> execution -> verification",
    steps=(
        WorkflowStep(
            id="select-strategy",
            name="Select Removal Strategy",
            action="removal.strategy",
        ),
        WorkflowStep(
            id="execute-removal",
            name="Execute Removal",
            action="removal.execute",
            input=lambda wf_input, prior: {
                **_data(prior, "select-strategy"),
                "exposure_id": (wf_input or {}).get("exposure_id"),
            },
            condition=_succeeded("select-strategy"),
        ),
        WorkflowStep(
            id="verify-removal",
            name="Verify Removal",
            action="removal.verify",
            required=False,
            input=lambda wf_input, prior: {
                "removal_request_id": _data(prior, "execute-removal").get("removal_request_id"),
            },
            condition=_succeeded("execute-removal"),
        ),
    ),
)

VERIFICATION_SWEEP = Workflow(
    id="verification-sweep",
    name="Verification Sweep",
    description="Re-scan removed listings and collect proof for the ones still gone",
    steps=(
        WorkflowStep(id="monitor", name="Monitor Re-appearances", action="verification.monitor"),
        WorkflowStep(
            id="collect-proof",
            name="Collect Proof",
            action="verification.proof",
            required=False,
            input=lambda wf_input, prior: _data(prior, "monitor"),
        ),
    ),
)

CONTENT_GENERATION = Workflow(
    id="content-generation",
    name="Content Generation",
    description="Draft a blog post, build its metadata and check keyword coverage",
    steps=(
        WorkflowStep(id="draft", name="Generate Blog Post", action="content.blog"),
        WorkflowStep(
            id="meta",
            name="Generate Meta Tags",
            action="content.meta",
            input=lambda wf_input, prior: {"title": _data(prior, "draft").get("title")},
        ),
        WorkflowStep(
            id="seo",
            name="Optimize for SEO",
            action="content.seo",
            required=False,
            input=lambda wf_input, prior: {
                **_data(prior, "meta"),
                "keywords": (wf_input or {}).get("keywords", []),
            },
        ),
    ),
)

GROWTH_REVIEW = Workflow(
    id="growth-review",
    name="Growth Review",
    description="Referral, viral-loop and power-user analysis in parallel",
    steps=(
        WorkflowStep(id="referrals", name="Optimize Referrals", action="growth.referrals"),
        WorkflowStep(id="viral", name="Track Viral Loops", action="growth.viral"),
        WorkflowStep(id="power-users", name="Identify Power Users", action="growth.power-users", required=False),
    ),
    options=WorkflowOptions(parallel=True, timeout=60.0),
)

DEFAULT_WORKFLOWS = (
    FULL_REMOVAL_PIPELINE,
    VERIFICATION_SWEEP,
    CONTENT_GENERATION,
    GROWTH_REVIEW,
)
