"""
Console host environment.

A host for running the agent from a terminal without a browser: the page
state is read from a text file holding an already flattened, index-annotated
page (re-read before every step, so it can be edited while the agent runs),
page interactions are printed to the console, and ask_user prompts on stdin.
"""

import asyncio
from pathlib import Path

import structlog
from rich.console import Console

from pagepilot.core.interfaces.host import PageSnapshot


class ConsoleHost:
    def __init__(
        self,
        page_file: str | Path,
        url: str = "about:blank",
        title: str | None = None,
        console: Console | None = None,
        interactive: bool = True,
    ):
        self.page_file = Path(page_file)
        self.url = url
        self.title = title or self.page_file.stem
        self.console = console or Console()
        self.interactive = interactive
        self.actions: list[str] = []
        self.mask_visible = False
        self.logger = structlog.get_logger().bind(component="console_host")

    async def get_page_snapshot(self) -> PageSnapshot:
        if not self.page_file.exists():
            raise FileNotFoundError(f"Page file not found: {self.page_file}")
        content = self.page_file.read_text(encoding="utf-8").strip() or "<EMPTY>"
        return PageSnapshot(url=self.url, title=self.title, content=content, full_page=True)

    def _record(self, description: str) -> str:
        self.actions.append(description)
        self.console.print(f"[magenta]>> {description}[/magenta]")
        return f"✅ {description}"

    async def click_element(self, index: int) -> str:
        return self._record(f"Clicked element [{index}]")

    async def input_text(self, index: int, text: str) -> str:
        return self._record(f'Typed "{text}" into element [{index}]')

    async def select_option(self, index: int, option_text: str) -> str:
        return self._record(f'Selected "{option_text}" in element [{index}]')

    async def scroll(self, down: bool, num_pages: float, index: int | None) -> str:
        direction = "down" if down else "up"
        target = f"element [{index}]" if index is not None else "the page"
        return self._record(f"Scrolled {target} {direction} by {num_pages} pages")

    async def scroll_horizontally(self, right: bool, pixels: int, index: int | None) -> str:
        direction = "right" if right else "left"
        target = f"element [{index}]" if index is not None else "the page"
        return self._record(f"Scrolled {target} {direction} by {pixels}px")

    async def execute_javascript(self, script: str) -> str:
        self._record("Executed script")
        return "Scripts cannot run in console mode; result unavailable."

    async def ask_user(self, question: str) -> str:
        if not self.interactive:
            return "The user is not available. Continue on your own."
        self.console.print(f"[bold yellow]? {question}[/bold yellow]")
        return await asyncio.to_thread(self.console.input, "> ")

    def show_mask(self) -> None:
        self.mask_visible = True

    def hide_mask(self) -> None:
        self.mask_visible = False

    def clean_up_highlights(self) -> None:
        self.logger.debug("highlights_cleared")

    def dispose(self) -> None:
        self.mask_visible = False
        self.actions.clear()
