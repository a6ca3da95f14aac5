"""
Tool Interface

A tool is a named capability the model can select: a pydantic input model
describing its arguments and an async executor returning a string result.
Executors receive an explicit ToolContext instead of a bound receiver, so the
collaborators a tool touches are visible at the call site.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from pagepilot.core.domain.cancellation import CancellationToken
from pagepilot.core.domain.errors import DecodeError

if TYPE_CHECKING:
    from pagepilot.core.i18n import I18n
    from pagepilot.core.interfaces.host import HostEnvironmentProtocol


@dataclass(frozen=True)
class ToolContext:
    """
    Execution context handed to every tool call.

    Attributes:
        host: Page-state, navigation and UI collaborator
        token: Cancellation token of the running task
        i18n: Localized strings for the configured language
        task: The user request being executed
        task_id: Identifier of the running task
        agent_id: Identifier of the agent instance
    """

    host: "HostEnvironmentProtocol"
    token: CancellationToken
    i18n: "I18n"
    task: str = ""
    task_id: str = ""
    agent_id: str = ""


ToolExecutor = Callable[[ToolContext, Any], Awaitable[str]]


@dataclass(frozen=True)
class Tool:
    """
    A registered tool.

    Attributes:
        name: Unique registry key and the action key the model must emit
        description: Shown to the model in the decision schema
        input_model: pydantic model validating the tool's input
        execute: async (context, validated_input) -> str
    """

    name: str
    description: str
    input_model: type[BaseModel]
    execute: ToolExecutor

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()

    def parse_input(self, raw: Any) -> BaseModel:
        """Validate raw input against the tool's input model."""
        if isinstance(raw, self.input_model):
            return raw
        try:
            return self.input_model.model_validate(raw if raw is not None else {})
        except ValidationError as e:
            raise DecodeError(f"Invalid input for tool '{self.name}': {e}") from e


def tool(
    name: str,
    input_model: type[BaseModel],
    description: str = "",
) -> Callable[[ToolExecutor], Tool]:
    """
    Decorator turning an async function into a Tool.

    Example:
        >>> class AskInput(BaseModel):
        ...     question: str
        >>> @tool("ask_user", AskInput, "Ask the user a question")
        ... async def ask_user(context, input):
        ...     return await context.host.ask_user(input.question)
    """

    def decorator(fn: ToolExecutor) -> Tool:
        return Tool(
            name=name,
            description=description or (fn.__doc__ or "").strip(),
            input_model=input_model,
            execute=fn,
        )

    return decorator
