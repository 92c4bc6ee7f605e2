"""Response Aggregator - Collects ExecutionResults into Caller-Facing Responses

Single actions and workflow runs come back in the same
OrchestratorResponse shape; direct agent invocations get the flatter
DirectInvocationResponse the HTTP layer maps to status codes.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.types import AgentError, ErrorKind, ExecutionResult
from core.workflow import WorkflowRun

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorMetadata:
    request_id: str
    action: str
    duration_ms: float = 0.0
    agents_invoked: List[str] = field(default_factory=list)
    workflow_id: Optional[str] = None
    aborted: bool = False
    skipped_steps: List[str] = field(default_factory=list)
    timed_out_steps: List[str] = field(default_factory=list)
    halted_at: Optional[str] = None
    executed_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "action": self.action,
            "duration_ms": round(self.duration_ms, 2),
            "agents_invoked": self.agents_invoked,
            "workflow_id": self.workflow_id,
            "aborted": self.aborted,
            "skipped_steps": self.skipped_steps,
            "timed_out_steps": self.timed_out_steps,
            "halted_at": self.halted_at,
            "executed_at": self.executed_at.isoformat(),
        }


@dataclass
class OrchestratorResponse:
    """Aggregated outcome of one orchestrate() call

    Failed results stay in `results`; their errors are also collected
    in `errors`.
    """

    success: bool
    results: List[ExecutionResult]
    metadata: OrchestratorMetadata
    errors: List[AgentError] = field(default_factory=list)
    is_workflow: bool = False

    @property
    def needs_human_review(self) -> bool:
        return any(r.needs_human_review for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "is_workflow": self.is_workflow,
            "needs_human_review": self.needs_human_review,
            "results": [r.to_dict() for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class DirectInvocationResponse:
    """Outcome of invoking one agent capability directly"""

    success: bool
    result: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.result is not None:
            payload["result"] = self.result
        if self.metadata is not None:
            payload["metadata"] = self.metadata
        if self.error is not None:
            payload["error"] = self.error
            payload["error_kind"] = self.error_kind.value if self.error_kind else None
        return payload


class ResponseAggregator:
    """Builds responses from results"""

    def single(self, action: str, request_id: str, result: ExecutionResult, duration_ms: float) -> OrchestratorResponse:
        metadata = OrchestratorMetadata(
            request_id=request_id,
            action=action,
            duration_ms=duration_ms,
            agents_invoked=[result.metadata.agent_id] if result.metadata.agent_id else [],
        )
        return OrchestratorResponse(
            success=result.success,
            results=[result],
            metadata=metadata,
            errors=[result.error] if result.error else [],
        )

    def workflow(self, action: str, run: WorkflowRun) -> OrchestratorResponse:
        agents: List[str] = []
        for result in run.results:
            agent_id = result.metadata.agent_id
            if agent_id and agent_id not in agents:
                agents.append(agent_id)

        metadata = OrchestratorMetadata(
            request_id=run.request_id,
            action=action,
            duration_ms=run.duration_ms,
            agents_invoked=agents,
            workflow_id=run.workflow_id,
            aborted=run.aborted,
            skipped_steps=list(run.skipped_steps),
            timed_out_steps=list(run.timed_out_steps),
            halted_at=run.halted_at,
        )
        return OrchestratorResponse(
            success=run.success,
            results=list(run.results),
            metadata=metadata,
            errors=run.errors,
            is_workflow=True,
        )

    def failure(
        self,
        action: str,
        request_id: str,
        error: AgentError,
        duration_ms: float = 0.0,
        is_workflow: bool = False,
        workflow_id: Optional[str] = None,
    ) -> OrchestratorResponse:
        """Response for requests rejected before anything ran"""
        logger.warning(f"⚠️ {action}: {error.kind.value}: {error.message}")
        return OrchestratorResponse(
            success=False,
            results=[],
            metadata=OrchestratorMetadata(
                request_id=request_id,
                action=action,
                duration_ms=duration_ms,
                workflow_id=workflow_id,
            ),
            errors=[error],
            is_workflow=is_workflow,
        )

    def direct(self, result: ExecutionResult) -> DirectInvocationResponse:
        view = result.to_dict()
        metadata = view.pop("metadata")
        if result.success:
            return DirectInvocationResponse(success=True, result=view, metadata=metadata)
        return DirectInvocationResponse(
            success=False,
            result=view,
            metadata=metadata,
            error=result.error.message,
            error_kind=result.error.kind,
        )

    def direct_error(self, error: AgentError) -> DirectInvocationResponse:
        return DirectInvocationResponse(success=False, error=error.message, error_kind=error.kind)
