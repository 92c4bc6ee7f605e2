"""Unit tests for the Orchestrator: routing, health gating, events and outcome recording."""

import pytest
from unittest.mock import AsyncMock, patch

from core.events import EventType
from core.orchestrator import OrchestrationRequest
from core.types import ErrorKind, ExecutionContext, InvocationType


class TestOrchestrateSingleAction:

    @pytest.mark.asyncio
    async def test_routes_alias_to_capability(self, orchestrator):
        response = await orchestrator.orchestrate(OrchestrationRequest("echo.say", {"msg": "hi"}))

        assert response.success
        assert response.is_workflow is False
        assert response.results[0].data == {"msg": "hi"}
        assert response.metadata.agents_invoked == ["echo-agent"]
        assert response.errors == []

    @pytest.mark.asyncio
    async def test_unknown_action_is_structured_failure(self, orchestrator, echo_agent):
        response = await orchestrator.orchestrate(OrchestrationRequest("nothing.here"))

        assert response.success is False
        error = response.errors[0]
        assert error.kind == ErrorKind.CAPABILITY_NOT_FOUND
        assert error.message == "No route for action 'nothing.here'"
        assert (await echo_agent.get_health()).total_executions == 0

    @pytest.mark.asyncio
    async def test_failed_capability_keeps_result(self, orchestrator):
        response = await orchestrator.orchestrate(OrchestrationRequest("echo.fail"))

        assert response.success is False
        assert len(response.results) == 1
        assert response.results[0].data is None
        assert response.errors[0].code == "TEST_FAILURE"

    @pytest.mark.asyncio
    async def test_request_id_is_kept(self, orchestrator):
        context = ExecutionContext(request_id="req-123")
        response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}, context))

        assert response.metadata.request_id == "req-123"
        assert response.results[0].metadata.request_id == "req-123"

    @pytest.mark.asyncio
    async def test_needs_human_review_bubbles_up(self, orchestrator):
        response = await orchestrator.orchestrate(OrchestrationRequest("echo.low", {"x": 1}))
        assert response.success
        assert response.needs_human_review


class TestHealthGating:
    """Unavailable agents are rejected before execute() runs."""

    @pytest.mark.asyncio
    async def test_unhealthy_agent_rejected_without_execution(self, orchestrator, echo_agent, monitor):
        for _ in range(5):
            monitor.record_failure("echo-agent", "down")

        with patch.object(echo_agent, "execute", AsyncMock()) as execute:
            response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))

        execute.assert_not_called()
        assert response.errors[0].kind == ErrorKind.AGENT_UNAVAILABLE
        assert response.errors[0].retryable is True
        assert "unhealthy" in response.errors[0].message

    @pytest.mark.asyncio
    async def test_disabled_agent_rejected(self, orchestrator, registry):
        registry.disable_agent("echo-agent")
        response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))

        assert response.errors[0].kind == ErrorKind.AGENT_UNAVAILABLE
        assert response.errors[0].message == "Agent 'echo-agent' is disabled"

    @pytest.mark.asyncio
    async def test_degraded_agent_still_dispatched(self, orchestrator, monitor):
        monitor.record_failure("echo-agent", "flaky")
        response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))
        assert response.success

    @pytest.mark.asyncio
    async def test_availability_check_error_is_unavailable(self, orchestrator, echo_agent):
        with patch.object(echo_agent, "is_available", AsyncMock(side_effect=RuntimeError("probe broke"))):
            response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))

        assert response.errors[0].kind == ErrorKind.AGENT_UNAVAILABLE
        assert "probe broke" in response.errors[0].message

    @pytest.mark.asyncio
    async def test_exception_past_execute_is_contained(self, orchestrator, echo_agent):
        with patch.object(echo_agent, "execute", AsyncMock(side_effect=KeyError("lost"))):
            response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))

        assert response.success is False
        assert response.errors[0].kind == ErrorKind.EXECUTION_FAILURE
        assert response.errors[0].details == "KeyError"


class TestInvokeAgent:
    """Direct invocation bypassing the router."""

    @pytest.mark.asyncio
    async def test_success(self, orchestrator):
        response = await orchestrator.invoke_agent(
            "echo-agent", "echo", {"a": 1}, {"invocation_type": "MANUAL", "user_id": "u1"}
        )

        assert response.success
        assert response.result["data"] == {"a": 1}
        assert response.metadata["agent_id"] == "echo-agent"
        assert response.to_dict()["success"] is True

    @pytest.mark.asyncio
    async def test_unknown_agent(self, orchestrator):
        response = await orchestrator.invoke_agent("ghost-agent", "echo")

        assert response.success is False
        assert response.error_kind == ErrorKind.AGENT_NOT_FOUND
        assert response.to_dict() == {
            "success": False,
            "error": "Agent 'ghost-agent' not found",
            "error_kind": "AgentNotFound",
        }

    @pytest.mark.asyncio
    async def test_unknown_capability(self, orchestrator):
        response = await orchestrator.invoke_agent("echo-agent", "nope")
        assert response.error_kind == ErrorKind.CAPABILITY_NOT_FOUND

    @pytest.mark.asyncio
    async def test_context_overrides_applied(self, orchestrator, echo_agent):
        seen = {}

        async def capture(payload, context):
            seen["context"] = context
            return payload

        echo_agent.register_handler("echo", capture)
        await orchestrator.invoke_agent("echo-agent", "echo", {}, {"invocation_type": "SCHEDULED", "prefer_ai": False})

        assert seen["context"].invocation_type == InvocationType.SCHEDULED
        assert seen["context"].prefer_ai is False


class TestEventsAndOutcomes:

    @pytest.mark.asyncio
    async def test_success_emits_started_and_completed(self, orchestrator):
        await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))

        types = [e.type for e in orchestrator.event_bus.get_history()]
        assert types == [EventType.AGENT_STARTED, EventType.AGENT_COMPLETED]

    @pytest.mark.asyncio
    async def test_failure_and_review_events(self, orchestrator):
        await orchestrator.orchestrate(OrchestrationRequest("echo.fail"))
        await orchestrator.orchestrate(OrchestrationRequest("echo.low", {}))

        types = [e.type for e in orchestrator.event_bus.get_history()]
        assert EventType.AGENT_FAILED in types
        assert types[-1] == EventType.AGENT_NEEDS_REVIEW

    @pytest.mark.asyncio
    async def test_rejected_request_emits_nothing(self, orchestrator):
        await orchestrator.orchestrate(OrchestrationRequest("nothing.here"))
        assert orchestrator.event_bus.get_history() == []

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_break_invocation(self, orchestrator):
        def explode(event):
            raise RuntimeError("subscriber bug")

        orchestrator.event_bus.subscribe("*", explode)
        response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))
        assert response.success

    @pytest.mark.asyncio
    async def test_every_execution_recorded(self, orchestrator, recorder):
        await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))
        await orchestrator.orchestrate(OrchestrationRequest("echo.fail"))

        assert [r.success for r in recorder.records] == [True, False]
        assert recorder.records[1].error_kind == "ExecutionFailure"
        assert recorder.records[0].workflow_id is None

    @pytest.mark.asyncio
    async def test_recorder_failure_is_swallowed(self, orchestrator, recorder):
        with patch.object(recorder, "_write", AsyncMock(side_effect=RuntimeError("disk full"))):
            response = await orchestrator.orchestrate(OrchestrationRequest("echo.echo", {}))
        assert response.success
