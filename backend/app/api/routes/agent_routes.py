"""Agent API Routes

FastAPI endpoints for the orchestration engine:

    GET  /agents                 agent summaries + registry stats
    GET  /agents/health          per-agent health + system summary
    GET  /agents/workflows       workflow catalog
    POST /agents/orchestrate     run an action or workflow
    POST /agents/qa              validate agents without executing anything
    GET  /agents/{agent_id}      agent details
    POST /agents/{agent_id}      invoke one capability directly
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from app.api.models import (
    ContextOverrides,
    InvokeAgentRequest,
    OrchestrateRequest,
    QARequest,
    WorkflowsResponse,
)
from app.engine import Engine
from core.errors import AgentNotFoundError
from core.orchestrator import OrchestrationRequest
from core.types import ErrorKind, create_context
from core.validation import system_health, validate_agents
from core.workflow import WorkflowOptions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agents", tags=["agents"])

# Direct-invocation error kinds that are not plain 200 responses
STATUS_BY_KIND = {
    ErrorKind.AGENT_NOT_FOUND: 404,
    ErrorKind.CAPABILITY_NOT_FOUND: 404,
    ErrorKind.AGENT_UNAVAILABLE: 503,
}


def get_engine(request: Request) -> Engine:
    """Engine built at startup (see app.main)."""
    return request.app.state.engine


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"success": False, "error": message, "error_kind": ErrorKind.AGENT_NOT_FOUND.value},
    )


def _context_kwargs(context: Optional[ContextOverrides]) -> Dict[str, Any]:
    return context.model_dump(exclude_none=True) if context else {}


@router.get("")
async def list_agents(engine: Engine = Depends(get_engine)):
    """List all registered agents."""
    return {
        "success": True,
        "agents": engine.registry.get_agent_summaries(),
        "stats": engine.registry.get_stats().to_dict(),
    }


@router.get("/health")
async def get_health(engine: Engine = Depends(get_engine)):
    """Health of every agent plus the overall system status."""
    health = await system_health(engine.registry)
    return {"success": True, **health}


@router.get("/workflows", response_model=WorkflowsResponse)
async def list_workflows(engine: Engine = Depends(get_engine)):
    """Workflow catalog in registration order."""
    workflows = engine.orchestrator.list_workflows()
    return {"workflows": workflows, "count": len(workflows)}


@router.post("/orchestrate")
async def orchestrate(request: OrchestrateRequest, engine: Engine = Depends(get_engine)):
    """Run one action or one workflow.

    Failed actions still return 200; inspect `success` and `errors`.
    """
    if not request.action:
        raise HTTPException(status_code=400, detail="action is required")

    try:
        context = create_context(**_context_kwargs(request.context))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    options = WorkflowOptions(**request.workflow.model_dump()) if request.workflow else None
    response = await engine.orchestrator.orchestrate(
        OrchestrationRequest(
            action=request.action,
            input=request.input,
            context=context,
            workflow=options,
        )
    )
    return response.to_dict()


@router.post("/qa")
async def run_qa(request: Optional[QARequest] = None, engine: Engine = Depends(get_engine)):
    """Validate agents; no capability is executed."""
    agent_id = request.agent_id if request else None
    try:
        report = await validate_agents(engine.registry, agent_id)
    except AgentNotFoundError as e:
        return _not_found(e.message)
    return {"type": "validate", **report.to_dict()}


@router.get("/{agent_id}")
async def get_agent(agent_id: str, engine: Engine = Depends(get_engine)):
    """Agent details with capabilities, config and health."""
    agent = engine.registry.get_agent(agent_id)
    if agent is None:
        return _not_found(AgentNotFoundError(agent_id).message)

    health = await agent.get_health()
    return {
        "success": True,
        "agent": {
            **agent.to_summary(),
            "capabilities": [c.to_dict() for c in agent.capabilities],
            "config": agent.config.to_dict(),
        },
        "health": health.to_dict(),
        "is_available": await agent.is_available(),
    }


@router.post("/{agent_id}")
async def invoke_agent(agent_id: str, request: InvokeAgentRequest, engine: Engine = Depends(get_engine)):
    """Invoke one capability on one agent."""
    if engine.registry.get_agent(agent_id) is None:
        return _not_found(AgentNotFoundError(agent_id).message)
    if not request.capability:
        raise HTTPException(status_code=400, detail="capability is required")

    try:
        response = await engine.orchestrator.invoke_agent(
            agent_id,
            request.capability,
            request.input,
            _context_kwargs(request.context),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    status_code = STATUS_BY_KIND.get(response.error_kind, 200)
    return JSONResponse(status_code=status_code, content=response.to_dict())
