"""Tools command - List and inspect available tools."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from pagepilot.application.factory import AgentFactory
from pagepilot.core.domain.macro_tool import compose_decision_schema
from pagepilot.core.domain.registry import ToolRegistry

app = typer.Typer(help="Tool management")
console = Console()


def _load_tools(ctx: typer.Context, profile: Optional[str]) -> ToolRegistry:
    global_opts = ctx.obj or {}
    factory = AgentFactory(config_dir=global_opts.get("config_dir", "configs"))
    try:
        return factory.create_tools(profile or global_opts.get("profile", "dev"))
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command("list")
def list_tools(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Configuration profile"),
):
    """List available tools."""
    table = Table(title="Available Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description", style="white")

    for item in _load_tools(ctx, profile).values():
        table.add_row(item.name, item.description)

    console.print(table)


@app.command("inspect")
def inspect_tool(
    ctx: typer.Context,
    tool_name: str = typer.Argument(..., help="Tool name to inspect"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Configuration profile"),
):
    """Inspect tool details and parameters."""
    selected = _load_tools(ctx, profile).get(tool_name)

    if not selected:
        console.print(f"[red]Tool '{tool_name}' not found[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]{selected.name}[/bold cyan]")
    console.print(f"{selected.description}\n")

    console.print("[bold]Parameters:[/bold]")
    console.print_json(data=selected.parameters_schema)


@app.command("schema")
def show_schema(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Configuration profile"),
):
    """Print the AgentOutput function definition sent to the model."""
    schema = compose_decision_schema(_load_tools(ctx, profile))
    console.print_json(data=schema.to_function_tool())
