"""Terminal UI - Rich rendering for CLI output

Turns engine responses (health reports, workflow catalog, orchestration
and batch results) into rich tables and panels.
"""

import json
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

STATUS_COLORS = {
    "HEALTHY": "green",
    "DEGRADED": "yellow",
    "UNHEALTHY": "red",
    "ERROR": "bold red",
}


class TerminalUI:
    """Rich console renderer for engine output"""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def _status(self, status: str) -> str:
        color = STATUS_COLORS.get(status, "white")
        return f"[{color}]{status}[/{color}]"

    def show_health(self, report: Dict[str, Any]):
        """Render a validation report"""
        summary = report["summary"]
        table = Table(show_header=True, header_style="bold cyan", title="Agent Health")
        table.add_column("Agent", style="cyan")
        table.add_column("Status")
        table.add_column("Available")
        table.add_column("Failures", justify="right")
        table.add_column("AI")
        table.add_column("Issues")

        for result in report["results"]:
            table.add_row(
                result["agent_id"],
                self._status(result["status"]),
                "✅" if result["is_available"] else "❌",
                str(result["consecutive_failures"]),
                "yes" if result["ai_available"] else "no",
                "\n".join(result["issues"]) or "-",
            )

        self.console.print(table)
        self.console.print(
            f"Total: {summary['total']}  "
            f"[green]healthy {summary['healthy']}[/green]  "
            f"[yellow]degraded {summary['degraded']}[/yellow]  "
            f"[red]unhealthy {summary['unhealthy']}[/red]"
        )

    def show_workflows(self, workflows: List[Dict[str, Any]]):
        """Render the workflow catalog"""
        if not workflows:
            self.console.print("[yellow]No workflows registered[/yellow]")
            return

        for workflow in workflows:
            table = Table(show_header=True, header_style="bold cyan", box=None)
            table.add_column("#", justify="right")
            table.add_column("Step")
            table.add_column("Action", style="magenta")
            table.add_column("Required")
            for i, step in enumerate(workflow["steps"], 1):
                table.add_row(str(i), step["name"], step["action"], "yes" if step["required"] else "no")

            state = "" if workflow["enabled"] else " [red](disabled)[/red]"
            self.console.print(Panel(
                table,
                title=f"{workflow['id']} v{workflow['version']}{state}",
                subtitle=workflow["description"],
                border_style="cyan",
            ))

    def show_orchestration(self, response: Dict[str, Any]):
        """Render an orchestration response"""
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Step")
        table.add_column("Agent / Capability")
        table.add_column("Result")
        table.add_column("Path")
        table.add_column("Confidence", justify="right")
        table.add_column("ms", justify="right")

        for result in response["results"]:
            meta = result["metadata"]
            if result["success"]:
                outcome = "[green]ok[/green]"
            else:
                outcome = f"[red]{result['error']['kind']}[/red]"
            if result["needs_human_review"]:
                outcome += " [yellow]👀 review[/yellow]"
            confidence = result["confidence"]
            table.add_row(
                meta.get("step_id") or "-",
                f"{meta['agent_id'] or '-'}/{meta['capability']}",
                outcome,
                meta["execution_path"] + (" (fallback)" if meta["used_fallback"] else ""),
                f"{confidence:.2f}" if confidence is not None else "-",
                f"{meta['duration_ms']:.0f}",
            )

        title = response["metadata"]["action"]
        color = "green" if response["success"] else "red"
        self.console.print(Panel(table, title=title, border_style=color))

        for error in response["errors"]:
            self.console.print(f"[red]❌ {error['kind']}:[/red] {error['message']}")

        meta = response["metadata"]
        if meta.get("aborted"):
            self.console.print(f"[yellow]⚠️ Aborted[/yellow] halted_at={meta.get('halted_at')} "
                               f"timed_out={meta.get('timed_out_steps')}")
        if meta.get("skipped_steps"):
            self.console.print(f"[dim]Skipped: {', '.join(meta['skipped_steps'])}[/dim]")

    def show_batch(self, batch: Dict[str, Any]):
        """Render a batch result"""
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        for key in ("batch_id", "total_items", "processed", "success_count",
                    "failed_count", "skipped_count", "time_boxed"):
            table.add_row(key, str(batch[key]))
        table.add_row("duration_ms", f"{batch['duration_ms']:.0f}")
        self.console.print(Panel(table, title="Batch Result", border_style="cyan"))

    def show_json(self, data: Any):
        self.console.print_json(json.dumps(data, default=str))

    def error(self, message: str):
        self.console.print(f"\n[bold red]❌ Error:[/bold red] {message}")
