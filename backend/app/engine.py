"""Engine bootstrap - builds and wires every engine component once

The API and the CLI both call build_engine(); tests pass their own
settings, AI provider or outcome recorder.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Type

from app.agents import DEFAULT_AGENT_CLASSES, DEFAULT_ROUTES, DEFAULT_WORKFLOWS
from app.core.config import Settings, settings as default_settings
from core.agent import BaseAgent
from core.agent_registry import AgentRegistry
from core.batch import BatchRunner
from core.events import EventBus
from core.health import HealthMonitor
from core.orchestrator import Orchestrator
from core.outcomes import InMemoryOutcomeRecorder, OutcomeRecorder, SQLOutcomeRecorder
from core.routing import ActionRoute, ActionRouter
from core.workflow import Workflow, WorkflowEngine
from shared.llm import BaseLLMProvider, LLMProviderFactory

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """Container for the wired components"""

    settings: Settings
    registry: AgentRegistry
    monitor: HealthMonitor
    router: ActionRouter
    workflow_engine: WorkflowEngine
    orchestrator: Orchestrator
    event_bus: EventBus
    outcome_recorder: OutcomeRecorder
    batch_runner: BatchRunner

    async def start(self) -> None:
        await self.registry.initialize_all()

    async def stop(self) -> None:
        await self.registry.shutdown_all()


def build_ai_provider(settings: Settings) -> Optional[BaseLLMProvider]:
    if not settings.ai_configured:
        logger.info("🤖 AI provider disabled; all capabilities run rule-based")
        return None
    provider = LLMProviderFactory.create(
        model_type=settings.llm_model_type,
        endpoint=settings.llm_endpoint,
        model=settings.llm_model,
        api_key=settings.llm_api_key,
        timeout=settings.llm_timeout_seconds,
    )
    logger.info(f"🤖 AI provider: {provider.model_type} ({settings.llm_model})")
    return provider


def build_outcome_recorder(settings: Settings) -> OutcomeRecorder:
    if settings.outcome_database_url:
        return SQLOutcomeRecorder(settings.outcome_database_url)
    return InMemoryOutcomeRecorder()


def build_engine(
    settings: Optional[Settings] = None,
    ai_provider: Optional[BaseLLMProvider] = None,
    outcome_recorder: Optional[OutcomeRecorder] = None,
    agent_classes: Sequence[Type[BaseAgent]] = DEFAULT_AGENT_CLASSES,
    routes: Iterable[ActionRoute] = DEFAULT_ROUTES,
    workflows: Iterable[Workflow] = DEFAULT_WORKFLOWS,
) -> Engine:
    """Build a fully wired engine

    Raises:
        RoutingConfigurationError: If a route or workflow step cannot dispatch
    """
    settings = settings or default_settings
    if ai_provider is None:
        ai_provider = build_ai_provider(settings)

    monitor = HealthMonitor(degraded_threshold=settings.degraded_threshold)
    registry = AgentRegistry()
    for agent_class in agent_classes:
        registry.register(
            agent_class(
                monitor=monitor,
                ai_provider=ai_provider,
                confidence_threshold=settings.confidence_threshold,
                default_timeout=settings.agent_timeout_seconds,
            )
        )

    router = ActionRouter(routes)
    router.validate(registry)

    workflow_engine = WorkflowEngine(default_timeout=settings.workflow_timeout_seconds)
    for workflow in workflows:
        workflow_engine.register_workflow(workflow)
    workflow_engine.validate(router)

    event_bus = EventBus()
    outcome_recorder = outcome_recorder or build_outcome_recorder(settings)
    orchestrator = Orchestrator(
        registry=registry,
        router=router,
        workflow_engine=workflow_engine,
        event_bus=event_bus,
        outcome_recorder=outcome_recorder,
    )

    stats = registry.get_stats()
    logger.info(
        f"🚀 Engine ready: {stats.total_agents} agents, {stats.total_capabilities} capabilities, "
        f"{len(router.routes)} routes, {len(workflow_engine.get_all_workflows())} workflows"
    )

    return Engine(
        settings=settings,
        registry=registry,
        monitor=monitor,
        router=router,
        workflow_engine=workflow_engine,
        orchestrator=orchestrator,
        event_bus=event_bus,
        outcome_recorder=outcome_recorder,
        batch_runner=BatchRunner(
            orchestrator,
            default_deadline=settings.batch_deadline_seconds,
            default_concurrency=settings.batch_concurrency,
        ),
    )
