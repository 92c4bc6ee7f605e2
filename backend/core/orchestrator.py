"""Orchestrator - Resolves and Dispatches Actions and Workflows

Single entry point for callers (HTTP routes, CLI, batch runner):

1. "workflow.<id>" actions (or requests carrying workflow options) go
   to the Workflow Engine
2. anything else is resolved through the ActionRouter to one agent
   capability
3. the agent is looked up and health-gated before execute() is called

Nothing raises past this boundary for a single-action problem: every
rejection and every escaped exception becomes a structured failure.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from core.agent import BaseAgent
from core.agent_registry import AgentRegistry
from core.errors import AgentNotFoundError, AgentUnavailableError, CapabilityNotFoundError, OrchestrationError
from core.events import EventBus, EventType
from core.outcomes import NullOutcomeRecorder, OutcomeRecorder
from core.response_aggregator import DirectInvocationResponse, OrchestratorResponse, ResponseAggregator
from core.routing import ActionRouter
from core.types import (
    AgentError,
    ErrorKind,
    ExecutionContext,
    ExecutionResult,
    ResultMetadata,
    create_context,
)
from core.workflow import WORKFLOW_PREFIX, WorkflowEngine, WorkflowOptions

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationRequest:
    """One orchestrate() call"""

    action: str
    input: Any = None
    context: Optional[ExecutionContext] = None
    workflow: Optional[WorkflowOptions] = None

    @property
    def is_workflow(self) -> bool:
        return self.action.startswith(WORKFLOW_PREFIX) or self.workflow is not None

    @property
    def workflow_id(self) -> str:
        if self.action.startswith(WORKFLOW_PREFIX):
            return self.action[len(WORKFLOW_PREFIX):]
        return self.action


class Orchestrator:
    """Routes actions to agents and workflows to the Workflow Engine"""

    def __init__(
        self,
        registry: AgentRegistry,
        router: ActionRouter,
        workflow_engine: Optional[WorkflowEngine] = None,
        event_bus: Optional[EventBus] = None,
        outcome_recorder: Optional[OutcomeRecorder] = None,
        aggregator: Optional[ResponseAggregator] = None,
    ):
        self.registry = registry
        self.router = router
        self.workflow_engine = workflow_engine or WorkflowEngine()
        self.workflow_engine.bind(self.dispatch_action, router)
        self.event_bus = event_bus or EventBus()
        self.outcome_recorder = outcome_recorder or NullOutcomeRecorder()
        self.aggregator = aggregator or ResponseAggregator()
        logger.info("✅ Orchestrator initialized")

    async def orchestrate(self, request: OrchestrationRequest) -> OrchestratorResponse:
        context = request.context or ExecutionContext()
        started = time.perf_counter()

        if request.is_workflow:
            return await self._orchestrate_workflow(request, context)

        logger.info(f"🎯 Orchestrating '{request.action}' (request={context.request_id})")
        result = await self.dispatch_action(request.action, request.input, context)
        return self.aggregator.single(
            request.action,
            context.request_id,
            result,
            (time.perf_counter() - started) * 1000,
        )

    async def _orchestrate_workflow(
        self, request: OrchestrationRequest, context: ExecutionContext
    ) -> OrchestratorResponse:
        workflow_id = request.workflow_id
        await self.event_bus.emit(EventType.WORKFLOW_STARTED, request_id=context.request_id, workflow_id=workflow_id)

        try:
            run = await self.workflow_engine.run(workflow_id, request.input, context, request.workflow)
        except OrchestrationError as e:
            return self.aggregator.failure(
                request.action,
                context.request_id,
                AgentError.of(e.kind or ErrorKind.EXECUTION_FAILURE, e.message),
                is_workflow=True,
                workflow_id=workflow_id,
            )

        await self.event_bus.emit(
            EventType.WORKFLOW_COMPLETED,
            request_id=context.request_id,
            workflow_id=workflow_id,
            success=run.success,
            aborted=run.aborted,
        )
        return self.aggregator.workflow(request.action, run)

    async def dispatch_action(self, action: str, payload: Any, context: ExecutionContext) -> ExecutionResult:
        """Resolve one action and run it; also the Workflow Engine's step executor"""
        route = self.router.resolve(action)
        if route is None:
            return self._rejected(
                AgentError.of(ErrorKind.CAPABILITY_NOT_FOUND, f"No route for action '{action}'"),
                agent_id="",
                capability=action,
                context=context,
            )
        return await self._invoke(route.agent_id, route.capability_id, payload, context)

    async def invoke_agent(
        self,
        agent_id: str,
        capability_id: str,
        payload: Any = None,
        context_overrides: Optional[Dict[str, Any]] = None,
    ) -> DirectInvocationResponse:
        """Invoke one capability on one agent, bypassing the router"""
        context = create_context(**(context_overrides or {}))
        if self.registry.get_agent(agent_id) is None:
            error = AgentNotFoundError(agent_id)
            return self.aggregator.direct_error(AgentError.of(error.kind, error.message))

        result = await self._invoke(agent_id, capability_id, payload, context)
        return self.aggregator.direct(result)

    def list_workflows(self) -> List[Dict[str, Any]]:
        return [workflow.to_dict() for workflow in self.workflow_engine.get_all_workflows()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _rejected(
        self, error: AgentError, agent_id: str, capability: str, context: ExecutionContext
    ) -> ExecutionResult:
        logger.warning(f"🚫 {agent_id or '-'}/{capability}: {error.message}")
        return ExecutionResult.failure(
            error,
            ResultMetadata(agent_id=agent_id, capability=capability, request_id=context.request_id),
        )

    async def _unavailable_reason(self, agent: BaseAgent) -> Optional[str]:
        if not agent.config.enabled:
            return "is disabled"
        try:
            available = await agent.is_available()
        except Exception as e:
            logger.warning(f"⚠️ Availability check for '{agent.id}' raised: {e}")
            return f"availability check failed: {e}"
        if not available:
            return "is not available (unhealthy)"
        return None

    async def _invoke(
        self, agent_id: str, capability_id: str, payload: Any, context: ExecutionContext
    ) -> ExecutionResult:
        agent = self.registry.get_agent(agent_id)
        if agent is None:
            error = AgentNotFoundError(agent_id)
            return self._rejected(AgentError.of(error.kind, error.message), agent_id, capability_id, context)

        if agent.get_capability(capability_id) is None:
            error = CapabilityNotFoundError(agent_id, capability_id)
            return self._rejected(AgentError.of(error.kind, error.message), agent_id, capability_id, context)

        reason = await self._unavailable_reason(agent)
        if reason is not None:
            error = AgentUnavailableError(agent_id, reason)
            return self._rejected(AgentError.of(error.kind, error.message), agent_id, capability_id, context)

        await self.event_bus.emit(
            EventType.AGENT_STARTED, agent_id, context.request_id, capability=capability_id
        )

        try:
            result = await agent.execute(capability_id, payload, context)
        except Exception as e:
            logger.error(f"❌ {agent_id}/{capability_id} raised past execute(): {e}")
            result = ExecutionResult.failure(
                AgentError.of(ErrorKind.EXECUTION_FAILURE, str(e) or type(e).__name__, details=type(e).__name__),
                ResultMetadata(agent_id=agent_id, capability=capability_id, request_id=context.request_id),
            )
        result.normalize()
        # Workflow steps carry their step id in the context; outcomes need it too.
        if context.metadata.get("step_id"):
            result.metadata.step_id = context.metadata["step_id"]

        if result.success:
            await self.event_bus.emit(
                EventType.AGENT_COMPLETED,
                agent_id,
                context.request_id,
                capability=capability_id,
                duration_ms=result.metadata.duration_ms,
                execution_path=result.metadata.execution_path.value,
            )
        else:
            await self.event_bus.emit(
                EventType.AGENT_FAILED,
                agent_id,
                context.request_id,
                capability=capability_id,
                error=result.error.to_dict(),
            )
        if result.needs_human_review:
            await self.event_bus.emit(
                EventType.AGENT_NEEDS_REVIEW,
                agent_id,
                context.request_id,
                capability=capability_id,
                confidence=result.confidence,
                manager_review_items=result.manager_review_items,
            )

        await self.outcome_recorder.record(result, context.metadata.get("workflow_id"))
        return result
