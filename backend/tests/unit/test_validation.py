"""Unit tests for QA-mode health validation."""

import pytest
from unittest.mock import AsyncMock, patch

from core.errors import AgentNotFoundError
from core.health import HealthStatus
from core.validation import AI_FALLBACK_ISSUE, system_health, validate_agents


class TestValidateAgents:

    @pytest.mark.asyncio
    async def test_healthy_agent_without_ai(self, registry, echo_agent):
        report = await validate_agents(registry)

        result = report.results[0]
        assert report.success
        assert result.status == HealthStatus.HEALTHY
        assert result.is_available
        assert AI_FALLBACK_ISSUE in result.issues
        assert result.capability_count == 6
        assert (await echo_agent.get_health()).total_executions == 0

    @pytest.mark.asyncio
    async def test_unhealthy_agent_fails_report(self, registry, monitor):
        for _ in range(5):
            monitor.record_failure("echo-agent", "down")

        report = await validate_agents(registry, "echo-agent")

        assert report.success is False
        assert report.summary == {"total": 1, "healthy": 0, "degraded": 0, "unhealthy": 1}
        assert report.results[0].issues[0] == "5 consecutive failures (last: down)"

    @pytest.mark.asyncio
    async def test_probe_error_counts_as_unhealthy(self, registry, echo_agent):
        with patch.object(echo_agent, "is_available", AsyncMock(side_effect=RuntimeError("boom"))):
            report = await validate_agents(registry)

        assert report.results[0].status == HealthStatus.ERROR
        assert report.results[0].issues == ["Health check failed: boom"]
        assert report.summary["unhealthy"] == 1

    @pytest.mark.asyncio
    async def test_unknown_agent(self, registry):
        with pytest.raises(AgentNotFoundError):
            await validate_agents(registry, "ghost-agent")

    @pytest.mark.asyncio
    async def test_disabled_agent_flagged(self, registry):
        registry.disable_agent("echo-agent")
        report = await validate_agents(registry)
        assert "Agent is disabled" in report.results[0].issues
        assert report.results[0].is_available is False


class TestSystemHealth:

    @pytest.mark.asyncio
    async def test_overall_status(self, registry, monitor):
        health = await system_health(registry)
        assert health["status"] == "HEALTHY"
        assert health["agents"][0]["name"] == "Echo Agent"

        monitor.record_failure("echo-agent")
        assert (await system_health(registry))["status"] == "DEGRADED"

        for _ in range(4):
            monitor.record_failure("echo-agent")
        assert (await system_health(registry))["status"] == "UNHEALTHY"
