"""
Built-in page tools.

Every built-in delegates the actual page interaction to the injected host
environment through ToolContext. `done` and `wait` carry no page side
effects; the step loop gives them their special meaning (task termination
and wait accounting).
"""

import asyncio

import structlog
from pydantic import BaseModel, Field

from pagepilot.core.domain.models import DONE_TOOL, WAIT_TOOL
from pagepilot.core.interfaces.tools import Tool, ToolContext, tool

logger = structlog.get_logger().bind(component="page_tools")


class DoneInput(BaseModel):
    text: str | None = Field(None, description="Final answer or findings for the user")
    success: bool | None = Field(None, description="True only if the full request was completed")


class WaitInput(BaseModel):
    seconds: float = Field(1, ge=0, le=10, description="Seconds to wait (default 1)")


class AskUserInput(BaseModel):
    question: str = Field(..., description="Question for the user")


class ClickElementInput(BaseModel):
    index: int = Field(..., ge=0, description="Index of the interactive element")


class InputTextInput(BaseModel):
    index: int = Field(..., ge=0, description="Index of the input element")
    text: str = Field(..., description="Text to type")


class SelectOptionInput(BaseModel):
    index: int = Field(..., ge=0, description="Index of the dropdown element")
    text: str = Field(..., description="Visible text of the option to select")


class ScrollInput(BaseModel):
    down: bool = Field(True, description="Scroll down (true) or up (false)")
    num_pages: float = Field(0.1, ge=0, le=10, description="Number of viewport heights to scroll")
    index: int | None = Field(None, description="Scroll inside this element instead of the page")


class ScrollHorizontallyInput(BaseModel):
    right: bool = Field(True, description="Scroll right (true) or left (false)")
    pixels: int = Field(..., ge=0, description="Distance in pixels")
    index: int | None = Field(None, description="Scroll inside this element instead of the page")


class ExecuteJavascriptInput(BaseModel):
    script: str = Field(..., description="JavaScript to run in the page")


@tool(DONE_TOOL, DoneInput)
async def done(context: ToolContext, input: DoneInput) -> str:
    """Complete the task. Call once the request is fulfilled or cannot be continued."""
    return input.text or ""


@tool(WAIT_TOOL, WaitInput)
async def wait(context: ToolContext, input: WaitInput) -> str:
    """Wait for a number of seconds, e.g. for page content to load."""
    try:
        await asyncio.wait_for(context.token.wait(), timeout=input.seconds)
    except asyncio.TimeoutError:
        pass
    context.token.raise_if_cancelled()
    return f"✅ Waited for {input.seconds} seconds."


@tool("ask_user", AskUserInput)
async def ask_user(context: ToolContext, input: AskUserInput) -> str:
    """Ask the user a question and wait for the answer. Use when information is missing."""
    answer = await context.token.run(context.host.ask_user(input.question))
    return f"✅ Received user answer: {answer}"


@tool("click_element_by_index", ClickElementInput)
async def click_element_by_index(context: ToolContext, input: ClickElementInput) -> str:
    """Click the interactive element with the given index."""
    return await context.host.click_element(input.index)


@tool("input_text", InputTextInput)
async def input_text(context: ToolContext, input: InputTextInput) -> str:
    """Click an input element and type text into it."""
    return await context.host.input_text(input.index, input.text)


@tool("select_dropdown_option", SelectOptionInput)
async def select_dropdown_option(context: ToolContext, input: SelectOptionInput) -> str:
    """Select an option of a dropdown element by its visible text."""
    return await context.host.select_option(input.index, input.text)


@tool("scroll", ScrollInput)
async def scroll(context: ToolContext, input: ScrollInput) -> str:
    """Scroll the page or an element vertically."""
    return await context.host.scroll(input.down, input.num_pages, input.index)


@tool("scroll_horizontally", ScrollHorizontallyInput)
async def scroll_horizontally(context: ToolContext, input: ScrollHorizontallyInput) -> str:
    """Scroll the page or an element horizontally."""
    return await context.host.scroll_horizontally(input.right, input.pixels, input.index)


@tool("execute_javascript", ExecuteJavascriptInput)
async def execute_javascript(context: ToolContext, input: ExecuteJavascriptInput) -> str:
    """Run JavaScript in the page and return its result. Use only when no other action fits."""
    logger.debug("execute_javascript", task_id=context.task_id, script_length=len(input.script))
    return await context.host.execute_javascript(input.script)


BUILTIN_TOOLS: tuple[Tool, ...] = (
    done,
    wait,
    ask_user,
    click_element_by_index,
    input_text,
    select_dropdown_option,
    scroll,
    scroll_horizontally,
    execute_javascript,
)


def create_builtin_tools() -> dict[str, Tool]:
    """Fresh name -> Tool mapping of the built-in set."""
    return {item.name: item for item in BUILTIN_TOOLS}
