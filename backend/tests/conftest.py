"""Shared fixtures: a deterministic test agent, a fake AI provider and a wired orchestrator."""

import asyncio
import json
from typing import Any, Dict, Optional

import pytest

from core.agent import BaseAgent
from core.agent_registry import AgentRegistry
from core.health import HealthMonitor
from core.hybrid import CapabilityOutput
from core.orchestrator import Orchestrator
from core.outcomes import InMemoryOutcomeRecorder
from core.routing import ActionRoute, ActionRouter
from core.types import AgentDomain, AgentMode, Capability
from core.workflow import WorkflowEngine
from shared.llm.base import BaseLLMProvider, LLMResponse


class EchoAgent(BaseAgent):
    """Deterministic agent whose capabilities succeed, fail, raise or stall on demand."""

    id = "echo-agent"
    name = "Echo Agent"
    domain = AgentDomain.OPERATIONS
    mode = AgentMode.HYBRID
    description = "Test agent"
    capabilities = (
        Capability(id="echo", name="Echo"),
        Capability(id="fail", name="Fail"),
        Capability(id="boom", name="Boom"),
        Capability(id="slow", name="Slow"),
        Capability(id="low-confidence", name="Low Confidence"),
        Capability(id="summarize", name="Summarize", requires_ai=True, estimated_tokens=100),
    )

    def get_system_prompt(self) -> str:
        return "You are a test agent."

    def register_handlers(self) -> None:
        self.register_handler("echo", self._echo)
        self.register_handler("fail", self._fail)
        self.register_handler("boom", self._boom)
        self.register_handler("slow", self._slow)
        self.register_handler("low-confidence", self._low_confidence)
        self.register_handler("summarize", self._summarize)

    async def _echo(self, payload, context):
        return payload

    async def _fail(self, payload, context):
        return CapabilityOutput.failed("requested failure", code="TEST_FAILURE")

    async def _boom(self, payload, context):
        raise RuntimeError("boom")

    async def _slow(self, payload, context):
        delay = (payload or {}).get("delay", 0.2)
        await asyncio.sleep(delay)
        return {"slept": delay}

    async def _low_confidence(self, payload, context):
        return CapabilityOutput(data=payload, confidence=0.4)

    async def _summarize(self, payload, context):
        return CapabilityOutput(data={"summary": "rules"}, confidence=0.9)


class FakeProvider(BaseLLMProvider):
    """In-process AI provider returning a canned JSON reply or raising."""

    def __init__(self, reply: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        super().__init__("http://fake-llm/v1", "fake-model")
        self.reply = reply if reply is not None else {"data": {"summary": "ai"}, "confidence": 0.92}
        self.error = error
        self.calls = []

    @property
    def model_type(self) -> str:
        return "fake"

    async def generate(self, prompt, system_prompt="", config_override=None):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt})
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=json.dumps(self.reply),
            model=self.model,
            usage={"total_tokens": 42},
            parsed_json=self.reply,
        )


ECHO_ROUTES = (
    ActionRoute("echo.echo", ("echo.echo", "echo.say"), "echo-agent", "echo"),
    ActionRoute("echo.fail", ("echo.fail",), "echo-agent", "fail"),
    ActionRoute("echo.boom", ("echo.boom",), "echo-agent", "boom"),
    ActionRoute("echo.slow", ("echo.slow",), "echo-agent", "slow"),
    ActionRoute("echo.low", ("echo.low",), "echo-agent", "low-confidence"),
    ActionRoute("echo.summarize", ("echo.summarize",), "echo-agent", "summarize"),
)


@pytest.fixture
def echo_agent_class():
    return EchoAgent


@pytest.fixture
def fake_provider_class():
    return FakeProvider


@pytest.fixture
def monitor():
    return HealthMonitor(degraded_threshold=5)


@pytest.fixture
def echo_agent(monitor):
    return EchoAgent(monitor=monitor)


@pytest.fixture
def registry(echo_agent):
    registry = AgentRegistry()
    registry.register(echo_agent)
    return registry


@pytest.fixture
def router(registry):
    router = ActionRouter(ECHO_ROUTES)
    router.validate(registry)
    return router


@pytest.fixture
def recorder():
    return InMemoryOutcomeRecorder()


@pytest.fixture
def workflow_engine():
    return WorkflowEngine()


@pytest.fixture
def orchestrator(registry, router, workflow_engine, recorder):
    return Orchestrator(
        registry=registry,
        router=router,
        workflow_engine=workflow_engine,
        outcome_recorder=recorder,
    )
