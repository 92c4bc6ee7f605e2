"""Unit tests for the action routing table."""

import pytest

from core.agent_registry import AgentRegistry
from core.errors import RoutingConfigurationError
from core.routing import ActionRoute, ActionRouter


class TestActionRouter:

    def test_resolve_alias(self, router):
        route = router.resolve("echo.say")
        assert route.agent_id == "echo-agent"
        assert route.capability_id == "echo"
        assert router.resolve("echo.echo") is route

    def test_unknown_action(self, router):
        assert router.resolve("nothing.here") is None
        assert not router.can_route("nothing.here")

    def test_actions_sorted(self, router):
        actions = router.actions()
        assert actions == sorted(actions)
        assert "echo.say" in actions

    def test_duplicate_action_rejected(self):
        with pytest.raises(RoutingConfigurationError) as exc_info:
            ActionRouter([
                ActionRoute("a", ("x.run",), "agent-a", "run"),
                ActionRoute("b", ("x.run",), "agent-b", "run"),
            ])
        assert "x.run" in exc_info.value.problems[0]


class TestRouterValidation:
    """Startup validation against the registry."""

    def test_unknown_agent(self, registry):
        router = ActionRouter([ActionRoute("ghost", ("ghost.run",), "ghost-agent", "run")])
        with pytest.raises(RoutingConfigurationError) as exc_info:
            router.validate(registry)
        assert "ghost-agent" in str(exc_info.value)

    def test_unknown_capability(self, registry):
        router = ActionRouter([ActionRoute("typo", ("echo.typo",), "echo-agent", "ecoh")])
        with pytest.raises(RoutingConfigurationError) as exc_info:
            router.validate(registry)
        assert "ecoh" in str(exc_info.value)

    def test_lists_every_problem(self):
        router = ActionRouter([
            ActionRoute("a", ("a.run",), "agent-a", "run"),
            ActionRoute("b", ("b.run",), "agent-b", "run"),
        ])
        with pytest.raises(RoutingConfigurationError) as exc_info:
            router.validate(AgentRegistry())
        assert len(exc_info.value.problems) == 2
