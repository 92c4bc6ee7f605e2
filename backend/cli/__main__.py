"""Agent Orchestration CLI - Command Line Interface

Runs the orchestration engine in-process:
- health: validate agents (no capability executes)
- workflows: list the workflow catalog
- run: orchestrate one action or workflow
- batch: time-boxed run of one action over many items

Usage:
    python -m cli health
    python -m cli health --agent removal-agent
    python -m cli workflows
    python -m cli run removal.strategy --input '{"broker": "acme", "has_opt_out_form": true}'
    python -m cli run workflow.growth-review --timeout 10
    python -m cli batch removal.execute --items '[{"exposure_id": "e1"}, {"exposure_id": "e2"}]'
"""

import asyncio
import json
import logging
import sys
import argparse
from pathlib import Path

# Add backend and the repo root (shared/) to path if running as module
backend_dir = Path(__file__).parent.parent
for path in (backend_dir, backend_dir.parent):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from app.core.config import configure_logging, settings
from app.engine import Engine, build_engine
from cli.terminal_ui import TerminalUI
from core.errors import AgentNotFoundError
from core.orchestrator import OrchestrationRequest
from core.types import InvocationType, create_context
from core.validation import validate_agents
from core.workflow import WorkflowOptions


def _json_arg(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        prog="agentctl",
        description="Capability orchestration engine CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of tables")
    parser.add_argument("--version", action="version", version="agentctl v1.0.0")

    sub = parser.add_subparsers(dest="command", required=True)

    health = sub.add_parser("health", help="Validate agent health")
    health.add_argument("--agent", help="Validate one agent only")

    sub.add_parser("workflows", help="List the workflow catalog")

    run = sub.add_parser("run", help="Orchestrate one action or workflow")
    run.add_argument("action", help="Action such as 'removal.execute' or 'workflow.<id>'")
    run.add_argument("--input", type=_json_arg, default=None, help="Action input as JSON")
    run.add_argument("--parallel", action="store_true", default=None, help="Run workflow steps in parallel")
    run.add_argument("--no-stop-on-error", dest="stop_on_error", action="store_false", default=None,
                     help="Keep running workflow steps after a required step fails")
    run.add_argument("--timeout", type=float, default=None, help="Workflow timeout in seconds")

    batch = sub.add_parser("batch", help="Time-boxed run of one action over many items")
    batch.add_argument("action", help="Action to run for each item")
    batch.add_argument("--items", type=_json_arg, required=True, help="JSON array of item inputs")
    batch.add_argument("--deadline", type=float, default=None, help="Stop starting items after N seconds")
    batch.add_argument("--concurrency", type=int, default=None, help="Items in flight at once")

    return parser


def _render(ui: TerminalUI, args: argparse.Namespace, data, renderer):
    if args.json:
        ui.show_json(data)
    else:
        renderer(data)


async def run_command(args: argparse.Namespace, engine: Engine, ui: TerminalUI) -> int:
    """Execute one parsed command; returns the exit code"""
    await engine.start()
    try:
        if args.command == "health":
            try:
                report = await validate_agents(engine.registry, args.agent)
            except AgentNotFoundError as e:
                ui.error(e.message)
                return 1
            data = report.to_dict()
            _render(ui, args, data, ui.show_health)
            return 0 if report.success else 1

        if args.command == "workflows":
            workflows = engine.orchestrator.list_workflows()
            _render(ui, args, workflows, ui.show_workflows)
            return 0

        if args.command == "run":
            options = None
            if args.parallel is not None or args.stop_on_error is not None or args.timeout is not None:
                options = WorkflowOptions(
                    parallel=args.parallel,
                    stop_on_error=args.stop_on_error,
                    timeout=args.timeout,
                )
            response = await engine.orchestrator.orchestrate(
                OrchestrationRequest(
                    action=args.action,
                    input=args.input,
                    context=create_context(invocation_type=InvocationType.MANUAL),
                    workflow=options,
                )
            )
            data = response.to_dict()
            _render(ui, args, data, ui.show_orchestration)
            return 0 if response.success else 1

        if args.command == "batch":
            if not isinstance(args.items, list):
                ui.error("--items must be a JSON array")
                return 2
            result = await engine.batch_runner.run(
                args.action,
                args.items,
                context=create_context(invocation_type=InvocationType.MANUAL),
                deadline=args.deadline,
                concurrency=args.concurrency,
            )
            data = result.to_dict()
            _render(ui, args, data, ui.show_batch)
            return 0 if result.failed_count == 0 else 1

        ui.error(f"Unknown command: {args.command}")
        return 2
    finally:
        await engine.stop()


def main(argv=None) -> int:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.debug else settings.log_level)
    if not args.debug:
        # Keep tables readable; engine info logs only with --debug
        logging.getLogger().setLevel(logging.WARNING)

    ui = TerminalUI()
    try:
        engine = build_engine(settings)
        return asyncio.run(run_command(args, engine, ui))
    except KeyboardInterrupt:
        ui.console.print("\n\nExiting...")
        return 130
    except Exception as e:
        ui.error(str(e))
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
