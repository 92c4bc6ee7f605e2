"""Core Types - Capabilities, Execution Context and Execution Results

Shared value types threaded through the orchestration engine. Every
capability invocation receives an ExecutionContext and produces exactly
one ExecutionResult, whichever execution path (AI or rule-based) ran.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class AgentDomain(str, Enum):
    """Domain an agent owns"""
    REMOVAL = "removal"
    VERIFICATION = "verification"
    GROWTH = "growth"
    CONTENT = "content"
    OPERATIONS = "operations"


class AgentMode(str, Enum):
    """How an agent is expected to run"""
    AUTOMATIC = "AUTOMATIC"
    ON_DEMAND = "ON_DEMAND"
    HYBRID = "HYBRID"
    AI = "AI"
    RULE_BASED = "RULE_BASED"


class InvocationType(str, Enum):
    """What triggered an invocation"""
    ON_DEMAND = "ON_DEMAND"
    SCHEDULED = "SCHEDULED"
    MANUAL = "MANUAL"
    EVENT = "EVENT"
    WEBHOOK = "WEBHOOK"


class Priority(str, Enum):
    """Invocation priority"""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"
    CRITICAL = "CRITICAL"


class ErrorKind(str, Enum):
    """Error taxonomy surfaced in failed results"""
    AGENT_NOT_FOUND = "AgentNotFound"
    CAPABILITY_NOT_FOUND = "CapabilityNotFound"
    AGENT_UNAVAILABLE = "AgentUnavailable"
    WORKFLOW_NOT_FOUND = "WorkflowNotFound"
    WORKFLOW_DISABLED = "WorkflowDisabled"
    STEP_TIMEOUT = "StepTimeout"
    EXECUTION_FAILURE = "ExecutionFailure"


# Kinds the caller may retry later without changing the request
RETRYABLE_KINDS = frozenset({ErrorKind.AGENT_UNAVAILABLE, ErrorKind.STEP_TIMEOUT})


class ExecutionPath(str, Enum):
    """Which strategy produced a result"""
    AI = "ai"
    RULE_BASED = "rule_based"
    NONE = "none"


def generate_request_id() -> str:
    """Generate a fresh request id"""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Capability:
    """A named, independently invocable unit of work owned by one agent"""

    id: str
    name: str
    description: str = ""
    requires_ai: bool = False
    supports_batch: bool = False
    estimated_tokens: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "requires_ai": self.requires_ai,
            "supports_batch": self.supports_batch,
            "estimated_tokens": self.estimated_tokens,
        }


@dataclass
class ExecutionContext:
    """Per-invocation metadata passed through one call chain"""

    request_id: str = field(default_factory=generate_request_id)
    invocation_type: InvocationType = InvocationType.ON_DEMAND
    priority: Priority = Priority.NORMAL
    prefer_ai: bool = True
    user_id: Optional[str] = None
    parent_request_id: Optional[str] = None
    timeout: Optional[float] = None  # seconds, single-action override
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def child(self, **overrides) -> "ExecutionContext":
        """Derive a context for a nested invocation (e.g. a workflow step)"""
        values = {
            "request_id": generate_request_id(),
            "parent_request_id": self.request_id,
            "metadata": dict(self.metadata),
            "created_at": datetime.utcnow(),
        }
        values.update(overrides)
        return replace(self, **values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "invocation_type": self.invocation_type.value,
            "priority": self.priority.value,
            "prefer_ai": self.prefer_ai,
            "user_id": self.user_id,
            "parent_request_id": self.parent_request_id,
            "timeout": self.timeout,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


def create_context(**overrides) -> ExecutionContext:
    """Build an ExecutionContext from loosely-typed overrides

    Accepts the enum values as plain strings (as they arrive over HTTP or
    from the CLI) and ignores None values so callers can pass optional
    fields straight through.
    """
    values = {k: v for k, v in overrides.items() if v is not None}

    if "invocation_type" in values:
        values["invocation_type"] = InvocationType(values["invocation_type"])
    if "priority" in values:
        values["priority"] = Priority(values["priority"])
    if not values.get("request_id"):
        values.pop("request_id", None)

    return ExecutionContext(**values)


@dataclass
class AgentError:
    """Structured error attached to a failed result"""

    kind: ErrorKind
    message: str
    retryable: bool = False
    code: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def of(cls, kind: ErrorKind, message: str, **kwargs) -> "AgentError":
        kwargs.setdefault("retryable", kind in RETRYABLE_KINDS)
        return cls(kind=kind, message=message, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            "code": self.code,
            "details": self.details,
        }


@dataclass
class ResultMetadata:
    """Execution metadata for one capability invocation"""

    agent_id: str
    capability: str
    request_id: str
    duration_ms: float = 0.0
    used_fallback: bool = False
    execution_path: ExecutionPath = ExecutionPath.NONE
    tokens_used: int = 0
    model: Optional[str] = None
    step_id: Optional[str] = None
    executed_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "capability": self.capability,
            "request_id": self.request_id,
            "duration_ms": round(self.duration_ms, 2),
            "used_fallback": self.used_fallback,
            "execution_path": self.execution_path.value,
            "tokens_used": self.tokens_used,
            "model": self.model,
            "step_id": self.step_id,
            "executed_at": self.executed_at.isoformat(),
        }


@dataclass
class ExecutionResult:
    """Normalized outcome of one capability invocation

    A failed result never carries data and always carries an error.
    `confidence` is only meaningful for capabilities that require AI.
    """

    success: bool
    metadata: ResultMetadata
    data: Any = None
    confidence: Optional[float] = None
    needs_human_review: bool = False
    manager_review_items: List[str] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[AgentError] = None

    @classmethod
    def ok(
        cls,
        data: Any,
        metadata: ResultMetadata,
        confidence: Optional[float] = None,
        needs_human_review: bool = False,
        manager_review_items: Optional[List[str]] = None,
        suggested_actions: Optional[List[str]] = None,
        warnings: Optional[List[str]] = None,
    ) -> "ExecutionResult":
        return cls(
            success=True,
            data=data,
            metadata=metadata,
            confidence=confidence,
            needs_human_review=needs_human_review,
            manager_review_items=list(manager_review_items or []),
            suggested_actions=list(suggested_actions or []),
            warnings=list(warnings or []),
        )

    @classmethod
    def failure(
        cls,
        error: AgentError,
        metadata: ResultMetadata,
        needs_human_review: bool = False,
        manager_review_items: Optional[List[str]] = None,
        suggested_actions: Optional[List[str]] = None,
        warnings: Optional[List[str]] = None,
    ) -> "ExecutionResult":
        return cls(
            success=False,
            data=None,
            metadata=metadata,
            error=error,
            needs_human_review=needs_human_review,
            manager_review_items=list(manager_review_items or []),
            suggested_actions=list(suggested_actions or []),
            warnings=list(warnings or []),
        )

    def normalize(self) -> "ExecutionResult":
        """Enforce the failure invariant in place and return self"""
        if not self.success:
            self.data = None
            if self.error is None:
                self.error = AgentError.of(
                    ErrorKind.EXECUTION_FAILURE,
                    f"Capability '{self.metadata.capability}' reported failure without an error",
                )
        if self.confidence is not None:
            self.confidence = min(1.0, max(0.0, float(self.confidence)))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "confidence": self.confidence,
            "needs_human_review": self.needs_human_review,
            "manager_review_items": self.manager_review_items,
            "suggested_actions": self.suggested_actions,
            "warnings": self.warnings,
            "error": self.error.to_dict() if self.error else None,
            "metadata": self.metadata.to_dict(),
        }
