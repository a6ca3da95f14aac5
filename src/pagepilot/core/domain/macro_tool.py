"""
MacroTool Composer

Merges every registered tool into one decision schema, the "AgentOutput"
macro tool offered to the model on each step:

    {
        "evaluation_previous_goal": str,
        "memory": str,
        "next_goal": str,
        "action": {"<tool_name>": <tool input>}
    }

`action` is a tagged union over the registered tools. Each variant is a
single-key object whose key is the tool name and whose value is validated by
that tool's own input model; the tag is the key itself, so decoding is an
exhaustive match over the registry rather than a first-fit trial.
"""

import json
from collections.abc import Mapping
from typing import Annotated, Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationError,
    create_model,
)

from pagepilot.core.domain.errors import DecodeError, ToolNotFoundError
from pagepilot.core.domain.models import AgentBrain, Decision
from pagepilot.core.interfaces.tools import Tool

MACRO_TOOL_NAME = "AgentOutput"
MACRO_TOOL_DESCRIPTION = (
    "Report the evaluation of the previous goal, your memory and the next goal, "
    "then choose exactly one action to perform."
)


def _action_tag(value: Any) -> str | None:
    """Tag of an action object: its only key, or None when malformed."""
    if isinstance(value, Mapping) and len(value) == 1:
        key = next(iter(value))
        if isinstance(key, str):
            return key
    return None


def _variant_name(tool_name: str) -> str:
    return "".join(part.capitalize() for part in tool_name.split("_") if part) + "Action"


class DecisionSchema:
    """
    Decision schema composed from a set of tools.

    Attributes:
        model: pydantic model of the full macro-tool input (AgentOutput)
        tool_names: Names of the tools the schema accepts, in registry order
    """

    def __init__(self, tools: Mapping[str, Tool]):
        if not tools:
            raise ValueError("Cannot compose a decision schema without tools")

        self._variants: dict[str, type[BaseModel]] = {
            name: self._wrap_tool(name, item) for name, item in tools.items()
        }
        self._names: dict[type[BaseModel], str] = {
            variant: name for name, variant in self._variants.items()
        }

        self.model: type[BaseModel] = create_model(
            MACRO_TOOL_NAME,
            __config__=ConfigDict(extra="ignore"),
            __doc__=MACRO_TOOL_DESCRIPTION,
            evaluation_previous_goal=(str | None, None),
            memory=(str | None, None),
            next_goal=(str | None, None),
            action=(
                self._action_type(),
                Field(..., description="Exactly one action: {tool_name: tool_input}"),
            ),
        )

    @property
    def tool_names(self) -> list[str]:
        return list(self._variants)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._variants

    @staticmethod
    def _wrap_tool(name: str, item: Tool) -> type[BaseModel]:
        """Single-key object {name: <input_model>}; any other key is rejected."""
        return create_model(
            _variant_name(name),
            __config__=ConfigDict(extra="forbid"),
            __doc__=item.description or None,
            payload=(item.input_model, Field(..., alias=name, description=item.description)),
        )

    def _action_type(self) -> Any:
        if len(self._variants) == 1:
            return next(iter(self._variants.values()))
        tagged = tuple(Annotated[variant, Tag(name)] for name, variant in self._variants.items())
        return Annotated[
            Union[tagged],
            Discriminator(
                _action_tag,
                custom_error_type="invalid_action",
                custom_error_message="action must be an object with exactly one registered tool name as key",
            ),
        ]

    def json_schema(self) -> dict[str, Any]:
        return self.model.model_json_schema()

    def to_function_tool(self) -> dict[str, Any]:
        """Macro tool in OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": MACRO_TOOL_NAME,
                "description": MACRO_TOOL_DESCRIPTION,
                "parameters": self.json_schema(),
            },
        }

    def decode(self, payload: Mapping[str, Any] | str | bytes) -> Decision:
        """
        Validate raw model output and turn it into a Decision.

        Raises:
            ToolNotFoundError: The action names a tool outside the schema
            DecodeError: Any other schema violation (bad JSON, zero or several
                action keys, invalid tool input)
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise DecodeError(f"Model output is not valid JSON: {e}") from e

        if not isinstance(payload, Mapping):
            raise DecodeError(f"Model output must be a JSON object, got {type(payload).__name__}")

        tag = _action_tag(payload.get("action"))
        if tag is not None and tag not in self._variants:
            raise ToolNotFoundError(tag)

        try:
            output = self.model.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(f"Model output does not match {MACRO_TOOL_NAME}: {e}") from e

        variant = output.action
        name = self._names[type(variant)]
        return Decision(
            brain=AgentBrain(
                evaluation_previous_goal=output.evaluation_previous_goal or "",
                memory=output.memory or "",
                next_goal=output.next_goal or "",
            ),
            action={name: variant.payload},
        )


def compose_decision_schema(tools: Mapping[str, Tool]) -> DecisionSchema:
    """Build the macro-tool decision schema over the given tools."""
    return DecisionSchema(tools)
