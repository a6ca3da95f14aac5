"""
Host Environment Interface

Everything the agent needs from the page it drives: a textual snapshot of
the current page state, the primitive interactions the built-in tools
perform, and the on-page UI affordances (mask, highlights). Implementations
are injected into the agent; the control loop never touches a host API
directly.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PageSnapshot:
    """
    Flattened state of the current page as seen by the model.

    Attributes:
        url: Current page URL
        title: Document title
        content: Simplified, index-annotated page content
        viewport_width / viewport_height: Visible area in pixels
        page_width / page_height: Full document size in pixels
        pixels_above / pixels_below: Scroll distance to the document edges
        full_page: Content covers the whole page rather than the viewport
    """

    url: str
    title: str
    content: str = "<EMPTY>"
    viewport_width: int = 0
    viewport_height: int = 0
    page_width: int = 0
    page_height: int = 0
    pixels_above: int = 0
    pixels_below: int = 0
    full_page: bool = False

    @property
    def pages_above(self) -> float:
        return self.pixels_above / self.viewport_height if self.viewport_height else 0.0

    @property
    def pages_below(self) -> float:
        return self.pixels_below / self.viewport_height if self.viewport_height else 0.0

    @property
    def total_pages(self) -> float:
        return self.page_height / self.viewport_height if self.viewport_height else 0.0

    @property
    def current_page_position(self) -> float:
        scrollable = self.page_height - self.viewport_height
        if scrollable <= 0:
            return 0.0
        return min(max(self.pixels_above / scrollable, 0.0), 1.0)


class HostEnvironmentProtocol(Protocol):
    """Page-state, navigation and UI collaborator of a PageAgent."""

    async def get_page_snapshot(self) -> PageSnapshot: ...

    async def click_element(self, index: int) -> str: ...

    async def input_text(self, index: int, text: str) -> str: ...

    async def select_option(self, index: int, option_text: str) -> str: ...

    async def scroll(self, down: bool, num_pages: float, index: int | None) -> str: ...

    async def scroll_horizontally(self, right: bool, pixels: int, index: int | None) -> str: ...

    async def execute_javascript(self, script: str) -> str: ...

    async def ask_user(self, question: str) -> str: ...

    def show_mask(self) -> None: ...

    def hide_mask(self) -> None: ...

    def clean_up_highlights(self) -> None: ...

    def dispose(self) -> None: ...
