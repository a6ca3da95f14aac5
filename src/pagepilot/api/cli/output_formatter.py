"""Rich console output for the CLI."""

import json
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pagepilot.application.executor import ProgressUpdate
from pagepilot.core.domain.models import StepRecord

EVENT_STYLES = {
    "thinking": "dim cyan",
    "tool_executing": "yellow",
    "tool_completed": "green",
    "output": "bold green",
    "error": "bold red",
}


class PagePilotConsole:
    """Console wrapper printing banner, progress events and task results."""

    def __init__(self, debug: bool = False, console: Console | None = None):
        self.debug = debug
        self.console = console or Console()

    def print_banner(self) -> None:
        self.console.print(Panel.fit("[bold blue]PagePilot[/bold blue] page agent", border_style="blue"))

    def print_divider(self) -> None:
        self.console.rule(style="dim")

    def print_system_message(self, message: str, level: str = "info") -> None:
        style = {"system": "bold blue", "info": "cyan", "warning": "yellow"}.get(level, "white")
        self.console.print(f"[{style}]{message}[/{style}]")

    def print_debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[dim]{message}[/dim]")

    def print_success(self, message: str) -> None:
        self.console.print(f"[bold green]✓ {message}[/bold green]")

    def print_error(self, message: str) -> None:
        self.console.print(f"[bold red]✗ {message}[/bold red]")

    def print_agent_message(self, message: str) -> None:
        self.console.print(Panel(message, title="Agent", border_style="green"))

    def print_progress(self, update: ProgressUpdate) -> None:
        """Print one agent event. Task reset/input/completed only show in debug mode."""
        style = EVENT_STYLES.get(update.event_type)
        if style is None:
            self.print_debug(f"[{update.event_type}] {update.message}")
            return
        if update.message:
            self.console.print(f"[{style}]{update.message}[/{style}]")
        if update.event_type == "tool_completed" and self.debug:
            self.print_debug(str(update.details.get("result", "")))

    def print_history(self, history: Sequence[StepRecord]) -> None:
        table = Table(title="Steps")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Tool", style="cyan")
        table.add_column("Input", style="white")
        table.add_column("Output", style="white")
        table.add_column("Tokens", justify="right")
        for number, step in enumerate(history, start=1):
            table.add_row(
                str(number),
                step.action.name,
                _short(json.dumps(step.action.input, ensure_ascii=False)),
                _short(step.action.output),
                str(step.usage.total_tokens),
            )
        self.console.print(table)


def _short(value: Any, limit: int = 60) -> str:
    text = str(value).replace("\n", " ")
    return text if len(text) <= limit else text[: limit - 3] + "..."
