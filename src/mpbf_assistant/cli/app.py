"""Typer CLI commands."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from mpbf_assistant.cli.output import (
    print_error,
    print_execution,
    print_info,
    print_response,
    print_stats,
)
from mpbf_assistant.cli.prompts import confirm_pending
from mpbf_assistant.config.settings import Settings
from mpbf_assistant.exceptions import AssistantError
from mpbf_assistant.models.intent import UserCommand
from mpbf_assistant.storage.context import KpiContext
from mpbf_assistant.storage.database import FactoryDatabase

console = Console()
app = typer.Typer(name="mpbf", help="AI command assistant for the MPBF factory.")


def _get_settings():
    try:
        return Settings()  # type: ignore[call-arg]
    except Exception as exc:
        print_error(f"Failed to load settings: {exc}")
        raise typer.Exit(1)


def _get_orchestrator(settings):
    from mpbf_assistant.main import build_orchestrator, configure_logging

    configure_logging(settings.log_level)
    return build_orchestrator(settings=settings)


@app.command()
def ask(
    message: str = typer.Argument(..., help="Command in Arabic or English"),
    user: int = typer.Option(1, "--user", "-u", help="Acting user ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm pending actions without asking"),
) -> None:
    """Classify a command and, after confirmation, execute it."""
    settings = _get_settings()

    async def _run():
        orchestrator = _get_orchestrator(settings)
        await orchestrator.db.initialize()
        try:
            response = await orchestrator.handle_user_command(
                UserCommand(user_id=user, message=message)
            )
            print_response(response)

            if response.needs_confirmation and response.pending_action is not None:
                if not yes and not confirm_pending(response):
                    print_info("Cancelled.")
                    return
                result = await orchestrator.confirm_and_execute(user, response.pending_action)
                print_execution(result)
                if result.status.value == "error":
                    raise typer.Exit(1)
        except AssistantError as exc:
            print_error(str(exc))
            raise typer.Exit(1)
        finally:
            await orchestrator.close()

    asyncio.run(_run())


@app.command()
def stats() -> None:
    """Show the current factory KPI snapshot."""
    settings = _get_settings()

    async def _run():
        db = FactoryDatabase(db_path=settings.db_path)
        await db.initialize()
        try:
            print_stats(await KpiContext(db).snapshot())
        finally:
            await db.close()

    asyncio.run(_run())


@app.command(name="init-db")
def init_db() -> None:
    """Create the factory and log tables if they do not exist."""
    settings = _get_settings()

    async def _run():
        db = FactoryDatabase(db_path=settings.db_path)
        await db.initialize()
        await db.close()

    asyncio.run(_run())
    print_info(f"Database ready at {settings.db_path}")


@app.command(name="config")
def show_config() -> None:
    """Show current configuration."""
    settings = _get_settings()

    table_data = {
        "Model": settings.openai_model,
        "DB Path": str(settings.db_path),
        "Log Level": settings.log_level,
        "Min Confidence": str(settings.min_confidence),
        "Synthetic Identifiers": str(settings.allow_synthetic_identifiers),
        "Example Limit": str(settings.example_limit),
        "Notifications": str(settings.notifications_enabled),
    }

    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    for k, v in table_data.items():
        table.add_row(k, v)
    console.print(table)
