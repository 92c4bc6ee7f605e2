"""Unit tests for strategy selection, AI fallback and the review policy."""

import asyncio

import pytest

from core.hybrid import (
    DEFAULT_REVIEW_ACTION,
    CapabilityOutput,
    apply_review_policy,
    parse_ai_response,
    select_strategy,
)
from core.types import (
    Capability,
    ErrorKind,
    ExecutionContext,
    ExecutionPath,
    ExecutionResult,
    ResultMetadata,
)
from shared.llm.base import LLMProviderError, LLMResponse


AI_CAPABILITY = Capability(id="summarize", name="Summarize", requires_ai=True)
RULE_CAPABILITY = Capability(id="echo", name="Echo")


class TestSelectStrategy:
    """Path selection rules."""

    def test_ai_when_everything_lines_up(self, fake_provider_class):
        path = select_strategy(AI_CAPABILITY, ExecutionContext(), fake_provider_class(), True)
        assert path == ExecutionPath.AI

    def test_rules_when_capability_does_not_need_ai(self, fake_provider_class):
        path = select_strategy(RULE_CAPABILITY, ExecutionContext(), fake_provider_class(), True)
        assert path == ExecutionPath.RULE_BASED

    def test_rules_when_caller_opts_out(self, fake_provider_class):
        path = select_strategy(AI_CAPABILITY, ExecutionContext(prefer_ai=False), fake_provider_class(), True)
        assert path == ExecutionPath.RULE_BASED

    def test_rules_without_provider(self):
        assert select_strategy(AI_CAPABILITY, ExecutionContext(), None, True) == ExecutionPath.RULE_BASED

    def test_rules_when_ai_marked_unavailable(self, fake_provider_class):
        path = select_strategy(AI_CAPABILITY, ExecutionContext(), fake_provider_class(), False)
        assert path == ExecutionPath.RULE_BASED


class TestParseAIResponse:
    """Mapping provider JSON onto CapabilityOutput."""

    def test_data_key(self):
        response = LLMResponse(
            content="{}",
            model="m",
            usage={"prompt_tokens": 10, "completion_tokens": 5},
            parsed_json={"data": {"a": 1}, "confidence": 0.8, "suggested_actions": ["ship it"]},
        )
        output = parse_ai_response(response)
        assert output.data == {"a": 1}
        assert output.confidence == 0.8
        assert output.suggested_actions == ["ship it"]
        assert output.tokens_used == 15
        assert output.model == "m"

    def test_result_key_and_whole_object(self):
        assert parse_ai_response(LLMResponse("{}", "m", parsed_json={"result": 3})).data == 3
        assert parse_ai_response(LLMResponse("{}", "m", parsed_json={"title": "x"})).data == {"title": "x"}

    def test_plain_text_reply(self):
        output = parse_ai_response(LLMResponse("just words", "m"))
        assert output.data == "just words"
        assert output.confidence is None

    def test_non_numeric_confidence_ignored(self):
        output = parse_ai_response(LLMResponse("{}", "m", parsed_json={"data": 1, "confidence": "high"}))
        assert output.confidence is None


class TestReviewPolicy:
    """apply_review_policy escalates without touching success."""

    def _result(self, confidence=None, needs_review=False):
        metadata = ResultMetadata(agent_id="a", capability="c", request_id="r")
        return ExecutionResult.ok({"x": 1}, metadata, confidence=confidence, needs_human_review=needs_review)

    def test_low_confidence_escalates(self):
        result = apply_review_policy(self._result(confidence=0.4), 0.7)

        assert result.success is True
        assert result.needs_human_review is True
        assert "0.40" in result.manager_review_items[0]
        assert result.suggested_actions == [DEFAULT_REVIEW_ACTION]

    def test_confident_result_untouched(self):
        result = apply_review_policy(self._result(confidence=0.9), 0.7)
        assert result.needs_human_review is False
        assert result.manager_review_items == []

    def test_no_confidence_is_not_escalated(self):
        assert apply_review_policy(self._result()).needs_human_review is False

    def test_flagged_result_gets_items(self):
        result = apply_review_policy(self._result(needs_review=True))
        assert result.manager_review_items == ["'c' was flagged for human review"]
        assert result.suggested_actions


class TestAgentExecution:
    """End-to-end through BaseAgent.execute."""

    @pytest.mark.asyncio
    async def test_rule_based_capability(self, echo_agent):
        result = await echo_agent.execute("echo", {"hello": "world"})

        assert result.success
        assert result.data == {"hello": "world"}
        assert result.metadata.execution_path == ExecutionPath.RULE_BASED
        assert result.metadata.used_fallback is False
        assert result.metadata.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_requires_ai_without_provider_falls_back(self, echo_agent):
        result = await echo_agent.execute("summarize", {"text": "abc"})

        assert result.success
        assert result.data == {"summary": "rules"}
        assert result.metadata.execution_path == ExecutionPath.RULE_BASED
        assert result.metadata.used_fallback is True

    @pytest.mark.asyncio
    async def test_ai_path_used_when_configured(self, echo_agent_class, fake_provider_class, monitor):
        provider = fake_provider_class()
        agent = echo_agent_class(monitor=monitor, ai_provider=provider)

        result = await agent.execute("summarize", {"text": "abc"})

        assert result.success
        assert result.data == {"summary": "ai"}
        assert result.confidence == pytest.approx(0.92)
        assert result.metadata.execution_path == ExecutionPath.AI
        assert result.metadata.used_fallback is False
        assert result.metadata.tokens_used == 42
        assert result.metadata.model == "fake-model"
        assert provider.calls[0]["system_prompt"] == "You are a test agent."
        assert "CAPABILITY: summarize" in provider.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_ai_failure_falls_back_to_rules(self, echo_agent_class, fake_provider_class, monitor):
        provider = fake_provider_class(error=LLMProviderError("model offline"))
        agent = echo_agent_class(monitor=monitor, ai_provider=provider)

        result = await agent.execute("summarize", {"text": "abc"})

        assert result.success
        assert result.data == {"summary": "rules"}
        assert result.metadata.used_fallback is True
        assert any("model offline" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_prefer_ai_false_skips_provider(self, echo_agent_class, fake_provider_class, monitor):
        provider = fake_provider_class()
        agent = echo_agent_class(monitor=monitor, ai_provider=provider)

        result = await agent.execute("summarize", {}, ExecutionContext(prefer_ai=False))

        assert provider.calls == []
        assert result.metadata.used_fallback is True

    @pytest.mark.asyncio
    async def test_monitor_marking_ai_unavailable_forces_rules(
        self, echo_agent_class, fake_provider_class, monitor
    ):
        provider = fake_provider_class()
        agent = echo_agent_class(monitor=monitor, ai_provider=provider)
        monitor.set_ai_available(agent.id, False)

        result = await agent.execute("summarize", {"text": "abc"})

        assert provider.calls == []
        assert result.success
        assert result.data == {"summary": "rules"}
        assert result.metadata.execution_path == ExecutionPath.RULE_BASED
        assert result.metadata.used_fallback is True

        monitor.set_ai_available(agent.id, True)
        result = await agent.execute("summarize", {"text": "abc"})

        assert len(provider.calls) == 1
        assert result.metadata.execution_path == ExecutionPath.AI

    @pytest.mark.asyncio
    async def test_low_confidence_handler_needs_review_but_succeeds(self, echo_agent):
        result = await echo_agent.execute("low-confidence", {"x": 1})

        assert result.success is True
        assert result.needs_human_review is True
        assert result.manager_review_items
        assert result.suggested_actions

    @pytest.mark.asyncio
    async def test_failed_handler_carries_error_and_no_data(self, echo_agent):
        result = await echo_agent.execute("fail")

        assert result.success is False
        assert result.data is None
        assert result.error.kind == ErrorKind.EXECUTION_FAILURE
        assert result.error.code == "TEST_FAILURE"

    @pytest.mark.asyncio
    async def test_raising_handler_becomes_failure(self, echo_agent):
        result = await echo_agent.execute("boom")

        assert result.success is False
        assert result.error.message == "boom"
        assert result.error.details == "RuntimeError"

    @pytest.mark.asyncio
    async def test_timeout_becomes_retryable_failure(self, echo_agent):
        context = ExecutionContext(timeout=0.05)
        result = await echo_agent.execute("slow", {"delay": 1.0}, context)

        assert result.success is False
        assert result.error.code == "TIMEOUT"
        assert result.error.retryable is True

    @pytest.mark.asyncio
    async def test_unknown_capability(self, echo_agent):
        result = await echo_agent.execute("nope")
        assert result.error.kind == ErrorKind.CAPABILITY_NOT_FOUND

    @pytest.mark.asyncio
    async def test_disabled_agent_rejects(self, echo_agent):
        echo_agent.config.enabled = False
        result = await echo_agent.execute("echo", {})
        assert result.error.kind == ErrorKind.AGENT_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_concurrent_invocations_count_every_failure(self, echo_agent):
        await asyncio.gather(*(echo_agent.execute("fail") for _ in range(7)))
        health = await echo_agent.get_health()
        assert health.consecutive_failures == 7
        assert health.total_failures == 7


class TestCapabilityOutput:
    def test_coerce_plain_value(self):
        output = CapabilityOutput.coerce([1, 2])
        assert output.success and output.data == [1, 2]

    def test_failed(self):
        output = CapabilityOutput.failed("bad", code="X", retryable=True)
        assert not output.success
        assert output.error_code == "X"
        assert output.retryable
