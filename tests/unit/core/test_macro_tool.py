"""
Unit Tests for the MacroTool composer

Verifies that the composed AgentOutput schema accepts exactly one action
keyed by a registered tool name and rejects everything else.
"""

import json

import pytest

from pagepilot.core.domain.errors import DecodeError, ToolNotFoundError
from pagepilot.core.domain.macro_tool import MACRO_TOOL_NAME, compose_decision_schema
from pagepilot.core.tools.page_tools import ClickElementInput, DoneInput, create_builtin_tools


@pytest.fixture
def schema():
    return compose_decision_schema(create_builtin_tools())


class TestDecisionSchemaComposition:
    """Tests for schema composition."""

    def test_tool_names_follow_registry_order(self, schema):
        """Test the schema lists tools in registry order."""
        assert schema.tool_names == list(create_builtin_tools())
        assert "done" in schema
        assert "teleport" not in schema

    def test_json_schema_names_every_tool(self, schema):
        """Test every tool name appears as an action key in the JSON schema."""
        dumped = json.dumps(schema.json_schema())

        for name in create_builtin_tools():
            assert f'"{name}"' in dumped

    def test_function_tool_format(self, schema):
        """Test the OpenAI function definition wraps the JSON schema."""
        function_tool = schema.to_function_tool()

        assert function_tool["type"] == "function"
        assert function_tool["function"]["name"] == MACRO_TOOL_NAME
        assert "action" in function_tool["function"]["parameters"]["properties"]

    def test_removed_tool_is_absent(self):
        """Test a tool removed before composition is not part of the schema."""
        tools = create_builtin_tools()
        del tools["execute_javascript"]

        schema = compose_decision_schema(tools)

        assert "execute_javascript" not in schema
        assert "execute_javascript" not in json.dumps(schema.json_schema())

    def test_empty_tool_set_rejected(self):
        """Test composing over no tools raises ValueError."""
        with pytest.raises(ValueError):
            compose_decision_schema({})


class TestDecisionSchemaDecode:
    """Tests for DecisionSchema.decode()."""

    def test_decodes_valid_payload(self, schema):
        """Test a conforming payload becomes a Decision with a validated input."""
        decision = schema.decode(
            {
                "evaluation_previous_goal": "Page loaded",
                "memory": "On login page",
                "next_goal": "Click login",
                "action": {"click_element_by_index": {"index": 3}},
            }
        )

        assert decision.brain.evaluation_previous_goal == "Page loaded"
        assert decision.brain.memory == "On login page"
        assert decision.brain.next_goal == "Click login"
        assert decision.action == {"click_element_by_index": ClickElementInput(index=3)}

    def test_decodes_json_string(self, schema):
        """Test JSON text is parsed before validation."""
        decision = schema.decode('{"action": {"done": {"text": "ok", "success": true}}}')

        assert decision.action == {"done": DoneInput(text="ok", success=True)}
        assert decision.brain.memory == ""

    def test_unknown_tool_raises_tool_not_found(self, schema):
        """Test an unregistered action key raises ToolNotFoundError, a DecodeError."""
        with pytest.raises(ToolNotFoundError) as exc_info:
            schema.decode({"action": {"teleport": {}}})

        assert exc_info.value.tool_name == "teleport"
        assert isinstance(exc_info.value, DecodeError)

    def test_multiple_actions_rejected(self, schema):
        """Test two keys in one action are a decode error."""
        with pytest.raises(DecodeError) as exc_info:
            schema.decode({"action": {"done": {}, "wait": {"seconds": 1}}})

        assert not isinstance(exc_info.value, ToolNotFoundError)

    @pytest.mark.parametrize("action", [{}, None, [], "done"])
    def test_malformed_action_rejected(self, schema, action):
        """Test empty or non-object actions are decode errors."""
        with pytest.raises(DecodeError):
            schema.decode({"action": action})

    def test_missing_action_rejected(self, schema):
        """Test a payload without action is a decode error."""
        with pytest.raises(DecodeError):
            schema.decode({"next_goal": "Think harder"})

    def test_invalid_tool_input_rejected(self, schema):
        """Test tool input is validated by the tool's own model."""
        with pytest.raises(DecodeError):
            schema.decode({"action": {"wait": {"seconds": 60}}})

    def test_invalid_json_rejected(self, schema):
        """Test unparsable text is a decode error."""
        with pytest.raises(DecodeError, match="not valid JSON"):
            schema.decode("{not json")

    def test_non_object_rejected(self, schema):
        """Test a JSON array is a decode error."""
        with pytest.raises(DecodeError, match="JSON object"):
            schema.decode("[1, 2]")


class TestSingleToolSchema:
    """Tests for a schema composed over a single tool."""

    def test_single_tool_decodes(self):
        """Test the only tool is accepted without a union."""
        tools = {"done": create_builtin_tools()["done"]}
        schema = compose_decision_schema(tools)

        decision = schema.decode({"action": {"done": {"text": "bye"}}})

        assert decision.action == {"done": DoneInput(text="bye")}

    def test_single_tool_rejects_unknown(self):
        """Test other keys still raise ToolNotFoundError."""
        schema = compose_decision_schema({"done": create_builtin_tools()["done"]})

        with pytest.raises(ToolNotFoundError):
            schema.decode({"action": {"wait": {}}})
