"""Typed exceptions for the orchestration engine

Registry, routing and workflow layers raise these. The Orchestrator and
the HTTP layer convert them to structured failures so callers never see
a bare exception for a single-action problem.
"""

from typing import List, Optional

from core.types import ErrorKind


class OrchestrationError(Exception):
    """Base class for engine errors"""

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateAgentError(OrchestrationError):
    """An agent with the same id is already registered"""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent '{agent_id}' is already registered")
        self.agent_id = agent_id


class AgentNotFoundError(OrchestrationError):
    kind = ErrorKind.AGENT_NOT_FOUND

    def __init__(self, agent_id: str):
        super().__init__(f"Agent '{agent_id}' not found")
        self.agent_id = agent_id


class CapabilityNotFoundError(OrchestrationError):
    kind = ErrorKind.CAPABILITY_NOT_FOUND

    def __init__(self, agent_id: str, capability_id: str):
        super().__init__(f"Capability '{capability_id}' not found on agent '{agent_id}'")
        self.agent_id = agent_id
        self.capability_id = capability_id


class AgentUnavailableError(OrchestrationError):
    kind = ErrorKind.AGENT_UNAVAILABLE

    def __init__(self, agent_id: str, reason: str = "is not available"):
        super().__init__(f"Agent '{agent_id}' {reason}")
        self.agent_id = agent_id


class WorkflowNotFoundError(OrchestrationError):
    kind = ErrorKind.WORKFLOW_NOT_FOUND

    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow '{workflow_id}' not found")
        self.workflow_id = workflow_id


class WorkflowDisabledError(OrchestrationError):
    kind = ErrorKind.WORKFLOW_DISABLED

    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow '{workflow_id}' is disabled")
        self.workflow_id = workflow_id


class RoutingConfigurationError(OrchestrationError):
    """Startup validation found routes or workflow steps that cannot dispatch"""

    def __init__(self, problems: List[str]):
        super().__init__("Invalid routing configuration: " + "; ".join(problems))
        self.problems = problems
