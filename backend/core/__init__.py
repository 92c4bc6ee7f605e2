"""Core orchestration components for the capability orchestration engine

This package contains the registry-led orchestration system:
- agent / agent_registry: pluggable agents and their capabilities
- orchestrator / routing: single-action dispatch
- workflow: multi-step workflows across agents
- health / hybrid: failure-derived health and AI/rule-based execution
"""

from core.agent import AgentConfig, BaseAgent
from core.agent_registry import AgentRegistry, RegistryStats
from core.batch import BatchResult, BatchRunner
from core.errors import (
    AgentNotFoundError,
    AgentUnavailableError,
    CapabilityNotFoundError,
    DuplicateAgentError,
    OrchestrationError,
    RoutingConfigurationError,
    WorkflowDisabledError,
    WorkflowNotFoundError,
)
from core.events import AgentEvent, EventBus, EventType
from core.health import HealthMonitor, HealthSnapshot, HealthStatus, derive_status
from core.hybrid import CapabilityOutput, apply_review_policy, select_strategy
from core.orchestrator import OrchestrationRequest, Orchestrator
from core.outcomes import InMemoryOutcomeRecorder, OutcomeRecorder, SQLOutcomeRecorder
from core.response_aggregator import DirectInvocationResponse, OrchestratorResponse
from core.routing import ActionRoute, ActionRouter
from core.types import (
    AgentDomain,
    AgentError,
    AgentMode,
    Capability,
    ErrorKind,
    ExecutionContext,
    ExecutionPath,
    ExecutionResult,
    InvocationType,
    Priority,
    create_context,
)
from core.workflow import Workflow, WorkflowEngine, WorkflowOptions, WorkflowRun, WorkflowStep

__version__ = "1.0.0"

__all__ = [
    # Types
    "AgentDomain",
    "AgentError",
    "AgentMode",
    "Capability",
    "ErrorKind",
    "ExecutionContext",
    "ExecutionPath",
    "ExecutionResult",
    "InvocationType",
    "Priority",
    "create_context",
    # Errors
    "OrchestrationError",
    "DuplicateAgentError",
    "AgentNotFoundError",
    "CapabilityNotFoundError",
    "AgentUnavailableError",
    "WorkflowNotFoundError",
    "WorkflowDisabledError",
    "RoutingConfigurationError",
    # Agents
    "AgentConfig",
    "BaseAgent",
    "AgentRegistry",
    "RegistryStats",
    "CapabilityOutput",
    "apply_review_policy",
    "select_strategy",
    # Health
    "HealthMonitor",
    "HealthSnapshot",
    "HealthStatus",
    "derive_status",
    # Orchestration
    "ActionRoute",
    "ActionRouter",
    "Orchestrator",
    "OrchestrationRequest",
    "OrchestratorResponse",
    "DirectInvocationResponse",
    "Workflow",
    "WorkflowEngine",
    "WorkflowOptions",
    "WorkflowRun",
    "WorkflowStep",
    "BatchRunner",
    "BatchResult",
    # Events & outcomes
    "AgentEvent",
    "EventBus",
    "EventType",
    "OutcomeRecorder",
    "InMemoryOutcomeRecorder",
    "SQLOutcomeRecorder",
]
