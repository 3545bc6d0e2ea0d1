"""User confirmation dialogs."""

from __future__ import annotations

from rich.console import Console
from rich.prompt import Confirm

from mpbf_assistant.models.action import CommandResponse
from mpbf_assistant.parser.language import localize

console = Console()


def confirm_pending(response: CommandResponse) -> bool:
    pending = response.pending_action
    if pending is None:
        return False

    language = response.language
    header = localize(language, "هذا الإجراء يحتاج إلى تأكيد:", "This action requires confirmation:")
    console.print(f"\n[bold yellow]{header}[/]\n")
    console.print(
        localize(
            language,
            f"  الإجراء: [cyan]{pending.action}[/] على [cyan]{pending.table}[/]",
            f"  Action: [cyan]{pending.action}[/] on [cyan]{pending.table}[/]",
        )
    )
    for name, value in pending.parameters.items():
        console.print(f"     {name}: [dim]{value}[/]")

    console.print()
    prompt = localize(language, "تأكيد التنفيذ؟", "Proceed with execution?")
    return Confirm.ask(prompt, default=False)
