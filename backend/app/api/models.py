"""Pydantic models for API requests and responses."""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from core.types import InvocationType, Priority


class ContextOverrides(BaseModel):
    """Execution context fields a caller may set."""
    request_id: Optional[str] = Field(None, description="Request id (generated when omitted)")
    invocation_type: InvocationType = Field(InvocationType.ON_DEMAND, description="What triggered the call")
    priority: Priority = Field(Priority.NORMAL, description="Invocation priority")
    prefer_ai: bool = Field(True, description="Use the AI path when the capability supports it")
    user_id: Optional[str] = Field(None, description="User the request acts for")
    timeout: Optional[float] = Field(None, gt=0, description="Single-action timeout in seconds")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form metadata")


class WorkflowOptionsModel(BaseModel):
    """Workflow run options."""
    parallel: Optional[bool] = Field(None, description="Dispatch all steps at once")
    stop_on_error: Optional[bool] = Field(None, description="Halt at the first failing required step")
    timeout: Optional[float] = Field(None, gt=0, description="Whole-run timeout in seconds")


class OrchestrateRequest(BaseModel):
    """Orchestration request model."""
    action: Optional[str] = Field(None, description="Action such as 'removal.execute' or 'workflow.<id>'")
    input: Any = Field(None, description="Action input")
    context: Optional[ContextOverrides] = Field(None, description="Execution context overrides")
    workflow: Optional[WorkflowOptionsModel] = Field(None, description="Workflow options")


class InvokeAgentRequest(BaseModel):
    """Direct capability invocation request."""
    capability: Optional[str] = Field(None, description="Capability id on the agent")
    input: Any = Field(None, description="Capability input")
    context: Optional[ContextOverrides] = Field(None, description="Execution context overrides")


class QARequest(BaseModel):
    """QA validation request."""
    agent_id: Optional[str] = Field(None, description="Validate one agent only")


class WorkflowStepInfo(BaseModel):
    """Workflow step in the catalog."""
    id: str
    name: str
    action: str
    required: bool


class WorkflowInfo(BaseModel):
    """Workflow catalog entry."""
    id: str
    name: str
    description: str
    enabled: bool
    version: str
    steps: List[WorkflowStepInfo]


class WorkflowsResponse(BaseModel):
    """Workflow catalog response."""
    workflows: List[WorkflowInfo] = Field(..., description="Workflows in registration order")
    count: int


class ErrorResponse(BaseModel):
    """Error response model."""
    success: bool = False
    error: str = Field(..., description="Error message")
    error_kind: Optional[str] = Field(None, description="Error taxonomy kind")
