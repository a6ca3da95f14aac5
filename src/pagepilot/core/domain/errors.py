"""
Domain Errors

Exception taxonomy for the page agent control loop.

Only TaskInputError and DisposedError escape PageAgent.execute(); every other
error raised inside the step loop is converted into a failed ExecutionResult
carrying the error description.
"""


class PagePilotError(Exception):
    """Base class for all pagepilot errors."""


class TaskInputError(PagePilotError, ValueError):
    """Raised synchronously when execute() receives an empty task."""


class DisposedError(PagePilotError, RuntimeError):
    """Raised when execute() is called on a disposed agent."""


class DecodeError(PagePilotError):
    """Model output does not conform to the composed decision schema."""


class ToolNotFoundError(DecodeError):
    """A decision references a tool name absent from the registry."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class CancellationError(PagePilotError):
    """A checkpoint observed a cancelled token."""

    def __init__(self, reason: str | None = None):
        self.reason = reason or "cancelled"
        super().__init__(f"AbortError: {self.reason}")


class ToolExecutionError(PagePilotError):
    """The selected tool's executor raised."""

    def __init__(self, tool_name: str, error: BaseException):
        self.tool_name = tool_name
        self.error = error
        super().__init__(f"Tool '{tool_name}' failed: {error}")


class ModelClientError(PagePilotError):
    """The model client gave up after exhausting its retry policy."""
