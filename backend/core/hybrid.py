"""Hybrid Execution - AI Path, Rule-Based Path and the Review Policy

Every capability runs through exactly one of two strategies:

    AIStrategy          calls the configured inference provider and parses
                        its JSON answer
    RuleBasedStrategy   calls the agent's deterministic handler

select_strategy() picks one per invocation. Whichever ran, the agent
turns the CapabilityOutput into an ExecutionResult and then applies
apply_review_policy(), so callers never branch on the path.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional

from core.types import Capability, ExecutionContext, ExecutionPath, ExecutionResult
from shared.llm.base import BaseLLMProvider, LLMResponse

if TYPE_CHECKING:
    from core.agent import BaseAgent

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7

DEFAULT_REVIEW_ACTION = "Review the result before acting on it"


@dataclass
class CapabilityOutput:
    """What a strategy produced, before metadata is attached

    Rule-based handlers may return one of these directly, or any plain
    value, which is treated as successful `data`.
    """

    data: Any = None
    success: bool = True
    confidence: Optional[float] = None
    needs_human_review: bool = False
    manager_review_items: List[str] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    retryable: bool = False
    tokens_used: int = 0
    model: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "CapabilityOutput":
        if isinstance(value, cls):
            return value
        return cls(data=value)

    @classmethod
    def failed(cls, message: str, code: Optional[str] = None, retryable: bool = False) -> "CapabilityOutput":
        return cls(success=False, error_message=message, error_code=code, retryable=retryable)


def select_strategy(
    capability: Capability,
    context: ExecutionContext,
    ai_provider: Optional[BaseLLMProvider],
    ai_available: bool,
) -> ExecutionPath:
    """Pick the execution path for one invocation

    AI runs only when the capability needs it, the caller did not opt out,
    AI is currently available and a provider is actually configured.
    """
    if (
        capability.requires_ai
        and context.prefer_ai
        and ai_available
        and ai_provider is not None
        and ai_provider.is_configured
    ):
        return ExecutionPath.AI
    return ExecutionPath.RULE_BASED


class ExecutionStrategy(ABC):
    """One way of producing a CapabilityOutput"""

    path: ExecutionPath = ExecutionPath.NONE

    @abstractmethod
    async def run(
        self,
        agent: "BaseAgent",
        capability: Capability,
        payload: Any,
        context: ExecutionContext,
    ) -> CapabilityOutput:
        pass


class RuleBasedStrategy(ExecutionStrategy):
    """Deterministic path: dispatch to the agent's registered handler"""

    path = ExecutionPath.RULE_BASED

    async def run(self, agent, capability, payload, context) -> CapabilityOutput:
        handler = agent.get_handler(capability.id)
        if handler is None:
            raise NotImplementedError(
                f"Agent '{agent.id}' has no rule-based handler for '{capability.id}'"
            )

        value = handler(payload, context)
        if inspect.isawaitable(value):
            value = await value
        return CapabilityOutput.coerce(value)


class AIStrategy(ExecutionStrategy):
    """AI path: one provider call with the agent's system prompt"""

    path = ExecutionPath.AI

    def __init__(self, provider: BaseLLMProvider):
        self.provider = provider

    async def run(self, agent, capability, payload, context) -> CapabilityOutput:
        response = await self.provider.generate(
            prompt=agent.build_user_message(capability, payload, context),
            system_prompt=agent.get_system_prompt(),
        )
        return parse_ai_response(response)


def parse_ai_response(response: LLMResponse) -> CapabilityOutput:
    """Map the provider's JSON answer onto a CapabilityOutput

    A reply without a JSON object becomes raw-text data with no confidence.
    """
    parsed = response.parsed_json
    if not isinstance(parsed, dict):
        return CapabilityOutput(
            data=response.content,
            tokens_used=response.tokens_used,
            model=response.model,
        )

    if "data" in parsed:
        data = parsed["data"]
    elif "result" in parsed:
        data = parsed["result"]
    else:
        data = parsed

    confidence = parsed.get("confidence")
    return CapabilityOutput(
        data=data,
        confidence=float(confidence) if isinstance(confidence, (int, float)) else None,
        needs_human_review=bool(parsed.get("needs_human_review", False)),
        manager_review_items=[str(item) for item in parsed.get("manager_review_items") or []],
        suggested_actions=[str(item) for item in parsed.get("suggested_actions") or []],
        warnings=[str(item) for item in parsed.get("warnings") or []],
        tokens_used=response.tokens_used,
        model=response.model,
    )


def apply_review_policy(
    result: ExecutionResult,
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> ExecutionResult:
    """Escalate low-confidence or flagged results to a human

    `success` is never touched. An escalated result always carries at
    least one manager review item and one suggested action.
    """
    low_confidence = result.confidence is not None and result.confidence < confidence_threshold
    if not (low_confidence or result.needs_human_review):
        return result

    result.needs_human_review = True
    capability = result.metadata.capability

    if not result.manager_review_items:
        if low_confidence:
            result.manager_review_items.append(
                f"Low confidence ({result.confidence:.2f}) on '{capability}', "
                f"below threshold {confidence_threshold:.2f}"
            )
        else:
            result.manager_review_items.append(f"'{capability}' was flagged for human review")

    if not result.suggested_actions:
        result.suggested_actions.append(DEFAULT_REVIEW_ACTION)

    logger.info(
        f"👀 Review required: {result.metadata.agent_id}/{capability} "
        f"(confidence={result.confidence})"
    )
    return result
