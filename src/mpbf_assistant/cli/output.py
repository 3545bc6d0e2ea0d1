"""Rich display helpers for CLI output."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mpbf_assistant.models.action import CommandResponse, ExecutionResponse, ResponseStatus
from mpbf_assistant.storage.context import DashboardStats

console = Console()

_STATUS_STYLES = {
    ResponseStatus.CONFIRM: "yellow",
    ResponseStatus.INFO: "cyan",
    ResponseStatus.CLARIFICATION: "magenta",
    ResponseStatus.SUCCESS: "green",
    ResponseStatus.ERROR: "red",
}


def print_response(response: CommandResponse) -> None:
    style = _STATUS_STYLES[response.status]
    text = response.summary if response.needs_confirmation and response.summary else response.message
    console.print(
        Panel(text, title=response.status.value.capitalize(), border_style=style)
    )


def print_execution(result: ExecutionResponse) -> None:
    style = _STATUS_STYLES[result.status]
    console.print(Panel(f"[{style}]{result.message}[/]", title=result.status.value.capitalize(), border_style=style))


def print_stats(stats: DashboardStats) -> None:
    table = Table(title="Factory KPIs", show_header=False, expand=True)
    table.add_column("Metric", style="bold cyan")
    table.add_column("Value")
    table.add_row("Active orders", str(stats.active_orders))
    table.add_row("Production rate", f"{stats.production_rate:.1f}%")
    table.add_row("Quality score", f"{stats.quality_score:.1f}%")
    table.add_row("Waste", f"{stats.waste_percentage:.1f}%")
    table.add_row("Active machines", str(stats.active_machines))
    table.add_row("Machines in maintenance", str(stats.maintenance_machines))
    console.print(table)


def print_error(message: str) -> None:
    console.print(Panel(f"[red]{message}[/]", title="Error", border_style="red"))


def print_info(message: str) -> None:
    console.print(f"[dim]{message}[/]")
