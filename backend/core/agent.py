"""Agent Base - Capability Execution with Health Tracking

Concrete agents declare their identity and capabilities as class
attributes and register one rule-based handler per capability. The base
class owns everything around the handler: capability lookup, strategy
selection, AI fallback, the review policy, the single-action timeout
and exactly one health counter update per invocation.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from core.health import HealthMonitor, HealthSnapshot
from core.hybrid import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    AIStrategy,
    CapabilityOutput,
    RuleBasedStrategy,
    apply_review_policy,
    select_strategy,
)
from core.types import (
    AgentDomain,
    AgentError,
    AgentMode,
    Capability,
    ErrorKind,
    ExecutionContext,
    ExecutionPath,
    ExecutionResult,
    ResultMetadata,
)
from shared.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)

DEFAULT_AGENT_TIMEOUT = 30.0

Handler = Callable[[Any, ExecutionContext], Union[Awaitable[Any], Any]]


@dataclass
class AgentConfig:
    """Per-agent runtime configuration held by the registry"""

    enabled: bool = True
    features: Dict[str, bool] = field(default_factory=dict)
    custom: Dict[str, Any] = field(default_factory=dict)

    def is_feature_enabled(self, feature: str) -> bool:
        return self.features.get(feature, False)

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "features": self.features, "custom": self.custom}


class BaseAgent(ABC):
    """Base class for every pluggable agent

    Subclasses set the class attributes below, implement
    get_system_prompt() and register their handlers in
    register_handlers().
    """

    id: str = ""
    name: str = ""
    domain: AgentDomain = AgentDomain.OPERATIONS
    mode: AgentMode = AgentMode.HYBRID
    version: str = "1.0.0"
    description: str = ""
    capabilities: Tuple[Capability, ...] = ()

    def __init__(
        self,
        monitor: Optional[HealthMonitor] = None,
        ai_provider: Optional[BaseLLMProvider] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        default_timeout: float = DEFAULT_AGENT_TIMEOUT,
        config: Optional[AgentConfig] = None,
    ):
        if not self.id:
            raise ValueError(f"{type(self).__name__} must define an id")

        seen = set()
        for capability in self.capabilities:
            if capability.id in seen:
                raise ValueError(f"Agent '{self.id}' declares capability '{capability.id}' twice")
            seen.add(capability.id)

        self.monitor = monitor or HealthMonitor()
        self.ai_provider = ai_provider
        self.confidence_threshold = confidence_threshold
        self.default_timeout = default_timeout
        self.config = config or AgentConfig()
        self._handlers: Dict[str, Handler] = {}
        self._initialized = False

        self._rule_based = RuleBasedStrategy()
        self._ai = AIStrategy(ai_provider) if ai_provider is not None else None

        self.register_handlers()
        self.monitor.track(self.id, ai_available=self.ai_available)

    # ------------------------------------------------------------------
    # Declaration hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def get_system_prompt(self) -> str:
        """System prompt sent with every AI call this agent makes"""
        pass

    def register_handlers(self) -> None:
        """Subclasses register one handler per capability here"""

    def register_handler(self, capability_id: str, handler: Handler) -> None:
        if self.get_capability(capability_id) is None:
            raise ValueError(f"Agent '{self.id}' has no capability '{capability_id}'")
        self._handlers[capability_id] = handler

    def get_handler(self, capability_id: str) -> Optional[Handler]:
        return self._handlers.get(capability_id)

    def get_capability(self, capability_id: str) -> Optional[Capability]:
        for capability in self.capabilities:
            if capability.id == capability_id:
                return capability
        return None

    @property
    def ai_available(self) -> bool:
        return self.ai_provider is not None and self.ai_provider.is_configured

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        self.monitor.set_ai_available(self.id, self.ai_available)
        self._initialized = True
        mode = "AI + rules" if self.ai_available else "rules only"
        logger.info(f"✅ {self.name} initialized ({mode})")

    async def shutdown(self) -> None:
        self._initialized = False
        logger.info(f"🛑 {self.name} shut down")

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def get_health(self) -> HealthSnapshot:
        try:
            return self.monitor.snapshot(self.id)
        except Exception as e:
            logger.error(f"❌ Health check failed for '{self.id}': {e}")
            return HealthSnapshot.error(self.id, str(e))

    async def is_available(self) -> bool:
        if not self.config.enabled:
            return False
        health = await self.get_health()
        return health.is_dispatchable

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def build_user_message(self, capability: Capability, payload: Any, context: ExecutionContext) -> str:
        lines = [
            f"CAPABILITY: {capability.id}",
            f"REQUEST_ID: {context.request_id}",
            f"INVOCATION_TYPE: {context.invocation_type.value}",
        ]
        if context.user_id:
            lines.append(f"USER_ID: {context.user_id}")
        if context.metadata:
            lines.append(f"METADATA: {json.dumps(context.metadata, default=str)}")
        lines.append("")
        lines.append("INPUT:")
        lines.append(json.dumps(payload, indent=2, default=str))
        lines.append("")
        lines.append(
            "Respond with a JSON object containing data, confidence (0-1), "
            "needs_human_review, manager_review_items and suggested_actions."
        )
        return "\n".join(lines)

    def _metadata(self, capability_id: str, context: ExecutionContext) -> ResultMetadata:
        return ResultMetadata(
            agent_id=self.id,
            capability=capability_id,
            request_id=context.request_id,
        )

    async def execute(
        self,
        capability_id: str,
        payload: Any = None,
        context: Optional[ExecutionContext] = None,
    ) -> ExecutionResult:
        """Run one capability and return its normalized result

        Never raises for capability failures. Unknown capabilities and a
        disabled agent are rejected without touching the health counters.
        """
        context = context or ExecutionContext()
        started = time.perf_counter()

        capability = self.get_capability(capability_id)
        if capability is None:
            return ExecutionResult.failure(
                AgentError.of(
                    ErrorKind.CAPABILITY_NOT_FOUND,
                    f"Capability '{capability_id}' not found on agent '{self.id}'",
                ),
                self._metadata(capability_id, context),
            )

        if not self.config.enabled:
            return ExecutionResult.failure(
                AgentError.of(ErrorKind.AGENT_UNAVAILABLE, f"Agent '{self.id}' is currently disabled"),
                self._metadata(capability_id, context),
            )

        timeout = context.timeout or self.default_timeout
        logger.debug(f"▶️ {self.id}/{capability_id} (request={context.request_id}, timeout={timeout}s)")

        try:
            result = await asyncio.wait_for(self._run(capability, payload, context), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ {self.id}/{capability_id} timed out after {timeout}s")
            result = ExecutionResult.failure(
                AgentError.of(
                    ErrorKind.EXECUTION_FAILURE,
                    f"Capability '{capability_id}' timed out after {timeout}s",
                    retryable=True,
                    code="TIMEOUT",
                ),
                self._metadata(capability_id, context),
            )
        except Exception as e:
            logger.error(f"❌ {self.id}/{capability_id} failed: {e}")
            result = ExecutionResult.failure(
                AgentError.of(
                    ErrorKind.EXECUTION_FAILURE,
                    str(e) or type(e).__name__,
                    details=type(e).__name__,
                ),
                self._metadata(capability_id, context),
            )

        result.metadata.duration_ms = (time.perf_counter() - started) * 1000
        result.normalize()
        apply_review_policy(result, self.confidence_threshold)

        if result.success:
            self.monitor.record_success(self.id)
        else:
            self.monitor.record_failure(self.id, result.error.message)

        return result

    async def _run(self, capability: Capability, payload: Any, context: ExecutionContext) -> ExecutionResult:
        # The monitor flag lets a health job force rule-based execution.
        ai_available = self.ai_available and self.monitor.is_ai_available(self.id)
        path = select_strategy(capability, context, self.ai_provider, ai_available)
        warnings: List[str] = []
        output: Optional[CapabilityOutput] = None

        if path == ExecutionPath.AI:
            try:
                output = await self._ai.run(self, capability, payload, context)
            except Exception as e:
                logger.warning(
                    f"⚠️ [{self.name}] AI execution failed for '{capability.id}', falling back to rules: {e}"
                )
                warnings.append(f"AI execution failed, used rule-based fallback: {e}")
                path = ExecutionPath.RULE_BASED

        if output is None:
            output = await self._rule_based.run(self, capability, payload, context)

        metadata = self._metadata(capability.id, context)
        metadata.execution_path = path
        metadata.used_fallback = capability.requires_ai and path == ExecutionPath.RULE_BASED
        metadata.tokens_used = output.tokens_used
        metadata.model = output.model

        warnings.extend(output.warnings)
        if output.success:
            return ExecutionResult.ok(
                output.data,
                metadata,
                confidence=output.confidence,
                needs_human_review=output.needs_human_review,
                manager_review_items=output.manager_review_items,
                suggested_actions=output.suggested_actions,
                warnings=warnings,
            )

        error = AgentError.of(
            ErrorKind.EXECUTION_FAILURE,
            output.error_message or f"Capability '{capability.id}' failed",
            retryable=output.retryable,
            code=output.error_code,
        )
        result = ExecutionResult.failure(
            error,
            metadata,
            needs_human_review=output.needs_human_review,
            manager_review_items=output.manager_review_items,
            suggested_actions=output.suggested_actions,
            warnings=warnings,
        )
        result.confidence = output.confidence
        return result

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain.value,
            "mode": self.mode.value,
            "version": self.version,
            "description": self.description,
            "capabilities": [c.id for c in self.capabilities],
            "enabled": self.config.enabled,
        }
