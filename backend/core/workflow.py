"""Workflow Engine - Multi-Step Execution Across Agents

A workflow is a named, ordered list of steps, each mapped to an action.
The engine runs the steps either sequentially or all at once and
reports one WorkflowRun:

1. sequential: step N settles before step N+1 starts; with
   stop_on_error (the default) the first failing required step halts
   the run
2. parallel: every step is dispatched at once and the engine waits for
   all of them to settle

A timeout bounds the whole run. Anything still outstanding at the
deadline is reported as a STEP_TIMEOUT failure; running steps are not
cancelled, the engine just stops waiting for them.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from core.errors import RoutingConfigurationError, WorkflowDisabledError, WorkflowNotFoundError
from core.routing import ActionRouter
from core.types import (
    AgentError,
    ErrorKind,
    ExecutionContext,
    ExecutionResult,
    ResultMetadata,
)

logger = logging.getLogger(__name__)

WORKFLOW_PREFIX = "workflow."

# (action, payload, context) -> result; supplied by the Orchestrator
StepExecutor = Callable[[str, Any, ExecutionContext], Awaitable[ExecutionResult]]

PriorResults = Dict[str, ExecutionResult]


@dataclass(frozen=True)
class WorkflowOptions:
    """Run options; None fields fall back to the workflow or engine default"""

    parallel: Optional[bool] = None
    stop_on_error: Optional[bool] = None
    timeout: Optional[float] = None  # seconds for the whole run

    def merge(self, override: Optional["WorkflowOptions"]) -> "WorkflowOptions":
        if override is None:
            return self
        return WorkflowOptions(
            parallel=override.parallel if override.parallel is not None else self.parallel,
            stop_on_error=override.stop_on_error if override.stop_on_error is not None else self.stop_on_error,
            timeout=override.timeout if override.timeout is not None else self.timeout,
        )

    @property
    def is_parallel(self) -> bool:
        return bool(self.parallel)

    @property
    def halts_on_error(self) -> bool:
        return True if self.stop_on_error is None else self.stop_on_error

    def to_dict(self) -> Dict[str, Any]:
        return {"parallel": self.parallel, "stop_on_error": self.stop_on_error, "timeout": self.timeout}


@dataclass(frozen=True)
class WorkflowStep:
    """One step of a workflow

    `input` is either a static payload or a callable
    ``(workflow_input, prior_results) -> payload``; None passes the
    workflow input through. `condition` receives the prior results and
    skips the step when it returns False.
    """

    id: str
    name: str
    action: str
    required: bool = True
    input: Any = field(default=None, compare=False)
    condition: Optional[Callable[[PriorResults], bool]] = field(default=None, compare=False)

    def resolve_input(self, workflow_input: Any, prior: PriorResults) -> Any:
        if self.input is None:
            return workflow_input
        if callable(self.input):
            return self.input(workflow_input, prior)
        return self.input

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "action": self.action, "required": self.required}


@dataclass(frozen=True)
class Workflow:
    """A read-only workflow definition"""

    id: str
    name: str
    steps: Tuple[WorkflowStep, ...]
    description: str = ""
    enabled: bool = True
    version: str = "1.0.0"
    options: WorkflowOptions = field(default_factory=WorkflowOptions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "enabled": self.enabled,
            "version": self.version,
            "steps": [step.to_dict() for step in self.steps],
        }


@dataclass
class WorkflowRun:
    """Outcome of one workflow run; results are in declared step order"""

    workflow_id: str
    request_id: str
    results: List[ExecutionResult] = field(default_factory=list)
    aborted: bool = False
    success: bool = True
    skipped_steps: List[str] = field(default_factory=list)
    timed_out_steps: List[str] = field(default_factory=list)
    halted_at: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def errors(self) -> List[AgentError]:
        return [r.error for r in self.results if r.error is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "request_id": self.request_id,
            "success": self.success,
            "aborted": self.aborted,
            "results": [r.to_dict() for r in self.results],
            "skipped_steps": self.skipped_steps,
            "timed_out_steps": self.timed_out_steps,
            "halted_at": self.halted_at,
            "duration_ms": round(self.duration_ms, 2),
        }


class WorkflowEngine:
    """Runs registered workflows through a step executor"""

    def __init__(
        self,
        executor: Optional[StepExecutor] = None,
        router: Optional[ActionRouter] = None,
        default_timeout: Optional[float] = None,
    ):
        self._executor = executor
        self._router = router
        self.default_timeout = default_timeout
        self._workflows: Dict[str, Workflow] = {}
        # Steps abandoned at a deadline; held until they finish
        self._detached: Set[asyncio.Future] = set()
        logger.info("🏗️ Workflow Engine initialized")

    def bind(self, executor: StepExecutor, router: Optional[ActionRouter] = None) -> None:
        self._executor = executor
        if router is not None:
            self._router = router

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def register_workflow(self, workflow: Workflow) -> None:
        if workflow.id in self._workflows:
            raise ValueError(f"Workflow '{workflow.id}' is already registered")
        step_ids = [step.id for step in workflow.steps]
        if len(step_ids) != len(set(step_ids)):
            raise ValueError(f"Workflow '{workflow.id}' has duplicate step ids")
        self._workflows[workflow.id] = workflow
        logger.debug(f"   Registered workflow: {workflow.id} ({len(workflow.steps)} steps)")

    def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        return self._workflows.get(workflow_id)

    def get_all_workflows(self) -> List[Workflow]:
        return list(self._workflows.values())

    def validate(self, router: Optional[ActionRouter] = None) -> None:
        """Check that every step action is routable

        Raises:
            RoutingConfigurationError: Listing every unroutable step
        """
        router = router or self._router
        if router is None:
            raise ValueError("validate() needs an ActionRouter")

        problems = []
        for workflow in self._workflows.values():
            for step in workflow.steps:
                if not router.can_route(step.action):
                    problems.append(
                        f"workflow '{workflow.id}' step '{step.id}' uses unknown action '{step.action}'"
                    )
        if problems:
            for problem in problems:
                logger.error(f"❌ {problem}")
            raise RoutingConfigurationError(problems)

    @property
    def detached_count(self) -> int:
        return len(self._detached)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(
        self,
        workflow_id: str,
        input: Any = None,
        context: Optional[ExecutionContext] = None,
        options: Optional[WorkflowOptions] = None,
    ) -> WorkflowRun:
        """Run a workflow

        Raises:
            WorkflowNotFoundError: Unknown workflow id
            WorkflowDisabledError: Workflow exists but is disabled
        """
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        if not workflow.enabled:
            raise WorkflowDisabledError(workflow_id)
        if self._executor is None:
            raise RuntimeError("WorkflowEngine has no step executor bound")

        context = context or ExecutionContext()
        effective = WorkflowOptions(timeout=self.default_timeout).merge(workflow.options).merge(options)
        run = WorkflowRun(workflow_id=workflow_id, request_id=context.request_id)

        mode = "parallel" if effective.is_parallel else "sequential"
        logger.info(
            f"🚀 Workflow '{workflow_id}' started ({mode}, {len(workflow.steps)} steps, "
            f"timeout={effective.timeout})"
        )
        started = time.perf_counter()

        if effective.is_parallel:
            await self._run_parallel(workflow, input, context, effective, run)
        else:
            await self._run_sequential(workflow, input, context, effective, run)

        run.duration_ms = (time.perf_counter() - started) * 1000
        required = {step.id for step in workflow.steps if step.required}
        run.success = not any(
            not result.success and result.metadata.step_id in required for result in run.results
        )

        status = "✅" if run.success else "❌"
        logger.info(
            f"{status} Workflow '{workflow_id}' finished: {len(run.results)} results, "
            f"aborted={run.aborted}, {run.duration_ms:.0f}ms"
        )
        return run

    async def _run_sequential(
        self,
        workflow: Workflow,
        workflow_input: Any,
        context: ExecutionContext,
        options: WorkflowOptions,
        run: WorkflowRun,
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + options.timeout if options.timeout else None
        prior: PriorResults = {}
        steps = workflow.steps

        for index, step in enumerate(steps):
            if deadline is not None and loop.time() >= deadline:
                self._time_out(steps[index:], context, options.timeout, run)
                return

            try:
                if step.condition is not None and not step.condition(prior):
                    logger.info(f"   ⏭️ Step '{step.id}' skipped (condition not met)")
                    run.skipped_steps.append(step.id)
                    continue
                payload = step.resolve_input(workflow_input, prior)
            except Exception as e:
                result = self._preparation_failure(workflow, step, context, e)
            else:
                task = asyncio.ensure_future(self._dispatch(workflow, step, payload, context))
                if deadline is not None:
                    await asyncio.wait({task}, timeout=max(0.0, deadline - loop.time()))
                    if not task.done():
                        self._detach(task)
                        self._time_out(steps[index:], context, options.timeout, run)
                        return
                result = await task

            prior[step.id] = result
            run.results.append(result)

            if not result.success and step.required and options.halts_on_error:
                logger.warning(f"🛑 Workflow '{workflow.id}' halted at step '{step.id}'")
                run.halted_at = step.id
                run.aborted = True
                return

    async def _run_parallel(
        self,
        workflow: Workflow,
        workflow_input: Any,
        context: ExecutionContext,
        options: WorkflowOptions,
        run: WorkflowRun,
    ) -> None:
        tasks: Dict[str, asyncio.Future] = {}
        unprepared: Dict[str, ExecutionResult] = {}
        for step in workflow.steps:
            try:
                if step.condition is not None and not step.condition({}):
                    run.skipped_steps.append(step.id)
                    continue
                payload = step.resolve_input(workflow_input, {})
            except Exception as e:
                unprepared[step.id] = self._preparation_failure(workflow, step, context, e)
                continue
            tasks[step.id] = asyncio.ensure_future(self._dispatch(workflow, step, payload, context))

        if tasks:
            await asyncio.wait(set(tasks.values()), timeout=options.timeout)

        late = []
        for step in workflow.steps:
            if step.id in unprepared:
                run.results.append(unprepared[step.id])
                continue
            task = tasks.get(step.id)
            if task is None:
                continue
            if task.done():
                run.results.append(task.result())
            else:
                self._detach(task)
                late.append(step)
                run.results.append(self._timeout_result(step, context, options.timeout))

        if late:
            run.timed_out_steps.extend(step.id for step in late)
            run.aborted = True
            logger.warning(
                f"⏱️ Workflow '{workflow.id}' timed out; outstanding steps: "
                f"{[step.id for step in late]}"
            )

    async def _dispatch(
        self,
        workflow: Workflow,
        step: WorkflowStep,
        payload: Any,
        context: ExecutionContext,
    ) -> ExecutionResult:
        step_context = context.child(
            metadata={**context.metadata, "workflow_id": workflow.id, "step_id": step.id}
        )
        logger.info(f"   ▶️ Step '{step.id}' -> {step.action}")
        try:
            result = await self._executor(step.action, payload, step_context)
        except Exception as e:
            logger.error(f"❌ Step '{step.id}' raised: {e}")
            result = ExecutionResult.failure(
                AgentError.of(ErrorKind.EXECUTION_FAILURE, str(e) or type(e).__name__),
                self._step_metadata(step, step_context),
            )
        result.metadata.step_id = step.id
        return result

    def _preparation_failure(
        self, workflow: Workflow, step: WorkflowStep, context: ExecutionContext, error: Exception
    ) -> ExecutionResult:
        """Result for a step whose condition or input mapping raised"""
        logger.error(f"❌ Step '{step.id}' of '{workflow.id}' could not be prepared: {error}")
        return ExecutionResult.failure(
            AgentError.of(
                ErrorKind.EXECUTION_FAILURE,
                f"Step '{step.id}' input or condition failed: {error}",
                details=type(error).__name__,
            ),
            self._step_metadata(step, context),
        )

    def _step_metadata(self, step: WorkflowStep, context: ExecutionContext) -> ResultMetadata:
        route = self._router.resolve(step.action) if self._router else None
        return ResultMetadata(
            agent_id=route.agent_id if route else "",
            capability=route.capability_id if route else step.action,
            request_id=context.request_id,
            step_id=step.id,
        )

    def _timeout_result(
        self, step: WorkflowStep, context: ExecutionContext, timeout: Optional[float]
    ) -> ExecutionResult:
        return ExecutionResult.failure(
            AgentError.of(
                ErrorKind.STEP_TIMEOUT,
                f"Step '{step.id}' did not finish within the workflow timeout of {timeout}s",
            ),
            self._step_metadata(step, context),
        )

    def _time_out(
        self,
        steps: Tuple[WorkflowStep, ...],
        context: ExecutionContext,
        timeout: Optional[float],
        run: WorkflowRun,
    ) -> None:
        for step in steps:
            run.results.append(self._timeout_result(step, context, timeout))
            run.timed_out_steps.append(step.id)
        run.aborted = True
        logger.warning(f"⏱️ Workflow '{run.workflow_id}' timed out at step '{steps[0].id}'")

    def _detach(self, task: asyncio.Future) -> None:
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)
