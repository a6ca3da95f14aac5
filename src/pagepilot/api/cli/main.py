"""PagePilot CLI entry point."""

import typer
from rich.console import Console

from pagepilot.api.cli.commands import run, tools

app = typer.Typer(
    name="pagepilot",
    help="PagePilot - step-driven page agent",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(run.app, name="run", help="Execute tasks")
app.add_typer(tools.app, name="tools", help="Tool management")


@app.callback()
def main(
    ctx: typer.Context,
    profile: str = typer.Option("dev", "--profile", "-p", help="Configuration profile"),
    config_dir: str = typer.Option("configs", "--config-dir", help="Directory holding profile YAML files"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """PagePilot Agent CLI."""
    ctx.obj = {"profile": profile, "config_dir": config_dir, "debug": debug}


@app.command()
def version():
    """Show PagePilot version."""
    from pagepilot import __version__

    console.print(f"[bold blue]PagePilot[/bold blue] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
