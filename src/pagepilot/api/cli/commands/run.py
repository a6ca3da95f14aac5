"""Run command - Execute page agent tasks."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from pagepilot.api.cli.output_formatter import PagePilotConsole
from pagepilot.application.executor import TaskExecutor
from pagepilot.application.factory import AgentFactory
from pagepilot.core.domain.errors import PagePilotError
from pagepilot.infrastructure.host.console_host import ConsoleHost
from pagepilot.logging_config import setup_logging

app = typer.Typer(help="Execute page agent tasks")


@app.command("task")
def run_task(
    ctx: typer.Context,
    task: str = typer.Argument(..., help="Task description"),
    page_file: Path = typer.Option(..., "--page-file", "-f", help="Flattened page content, re-read every step"),
    url: str = typer.Option("about:blank", "--url", help="URL reported for the page"),
    title: Optional[str] = typer.Option(None, "--title", help="Title reported for the page"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Configuration profile (overrides global --profile)"),
    max_steps: Optional[int] = typer.Option(None, "--max-steps", min=1, help="Step ceiling"),
    language: Optional[str] = typer.Option(None, "--language", help="Narrative language (en-US, zh-CN)"),
    non_interactive: bool = typer.Option(False, "--non-interactive", help="Do not prompt when the agent asks the user"),
    as_json: bool = typer.Option(False, "--json", help="Print only the result (success, data, history) as JSON"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output (also on with global --debug or the profile's logging.debug)"),
):
    """Execute a task against a page.

    Examples:
        # Run against a flattened page dump
        pagepilot run task "Log in as demo" --page-file page.txt

        # Chinese narrative, at most 5 steps
        pagepilot run task "搜索天气" -f page.txt --language zh-CN --max-steps 5

        # Machine-readable result
        pagepilot run task "Accept cookies" -f page.txt --json
    """
    global_opts = ctx.obj or {}
    profile = profile or global_opts.get("profile", "dev")
    config_dir = global_opts.get("config_dir", "configs")

    factory = AgentFactory(config_dir=config_dir)
    pp_console = PagePilotConsole(debug=debug)
    try:
        settings = factory.load_settings(profile)
    except (FileNotFoundError, ValueError) as e:
        pp_console.print_error(str(e))
        raise typer.Exit(1)

    debug = debug or global_opts.get("debug", False) or settings.debug
    pp_console.debug = debug
    setup_logging(debug)

    if not as_json:
        pp_console.print_banner()
        pp_console.print_system_message(f"Task: {task}", "system")
        pp_console.print_system_message(f"Profile: {profile}", "info")
        pp_console.print_divider()

    host = ConsoleHost(
        page_file,
        url=url,
        title=title,
        console=Console(stderr=True) if as_json else pp_console.console,
        interactive=not non_interactive,
    )
    executor = TaskExecutor(factory)

    try:
        result = asyncio.run(
            executor.execute_task(
                task,
                host,
                profile=profile,
                progress_callback=None if as_json else pp_console.print_progress,
                max_steps=max_steps,
                language=language,
            )
        )
    except (FileNotFoundError, PagePilotError, ValueError) as e:
        pp_console.print_error(str(e))
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        pp_console.print_divider()
        if debug:
            pp_console.print_history(result.history)

        if result.success:
            pp_console.print_success("Task completed!")
        else:
            pp_console.print_error("Task failed")
        pp_console.print_agent_message(result.data)

    if not result.success:
        raise typer.Exit(1)
