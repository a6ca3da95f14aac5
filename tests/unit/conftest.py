"""Shared fixtures: a recording host and a scripted decision client."""

from typing import Any

import pytest

from pagepilot.core.domain.cancellation import CancellationToken
from pagepilot.core.domain.macro_tool import DecisionSchema
from pagepilot.core.domain.models import DecisionResult, TokenUsage
from pagepilot.core.interfaces.host import PageSnapshot


def make_payload(
    tool_name: str,
    tool_input: dict[str, Any] | None = None,
    evaluation: str = "Success",
    memory: str = "",
    next_goal: str = "Continue",
) -> dict[str, Any]:
    """Raw AgentOutput arguments as a model would return them."""
    return {
        "evaluation_previous_goal": evaluation,
        "memory": memory,
        "next_goal": next_goal,
        "action": {tool_name: tool_input or {}},
    }


class FakeHost:
    """Host environment recording every interaction."""

    def __init__(self, content: str = "[0]<button>Submit</button>"):
        self.content = content
        self.calls: list[tuple] = []
        self.mask_visible = False
        self.disposed = False
        self.answer = "yes"
        self.click_error: Exception | None = None

    async def get_page_snapshot(self) -> PageSnapshot:
        self.calls.append(("get_page_snapshot",))
        return PageSnapshot(
            url="https://example.com",
            title="Example",
            content=self.content,
            viewport_width=1280,
            viewport_height=800,
            page_width=1280,
            page_height=1600,
            pixels_below=800,
        )

    async def click_element(self, index: int) -> str:
        self.calls.append(("click_element", index))
        if self.click_error is not None:
            raise self.click_error
        return f"✅ Clicked element [{index}]"

    async def input_text(self, index: int, text: str) -> str:
        self.calls.append(("input_text", index, text))
        return f'✅ Typed "{text}"'

    async def select_option(self, index: int, option_text: str) -> str:
        self.calls.append(("select_option", index, option_text))
        return f'✅ Selected "{option_text}"'

    async def scroll(self, down: bool, num_pages: float, index: int | None) -> str:
        self.calls.append(("scroll", down, num_pages, index))
        return "✅ Scrolled"

    async def scroll_horizontally(self, right: bool, pixels: int, index: int | None) -> str:
        self.calls.append(("scroll_horizontally", right, pixels, index))
        return "✅ Scrolled horizontally"

    async def execute_javascript(self, script: str) -> str:
        self.calls.append(("execute_javascript", script))
        return "42"

    async def ask_user(self, question: str) -> str:
        self.calls.append(("ask_user", question))
        return self.answer

    def show_mask(self) -> None:
        self.calls.append(("show_mask",))
        self.mask_visible = True

    def hide_mask(self) -> None:
        self.calls.append(("hide_mask",))
        self.mask_visible = False

    def clean_up_highlights(self) -> None:
        self.calls.append(("clean_up_highlights",))

    def dispose(self) -> None:
        self.calls.append(("dispose",))
        self.disposed = True

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class ScriptedDecisionClient:
    """
    Decision client replaying a script.

    Each item is a raw AgentOutput payload (decoded against the schema the
    agent passes in, like a real client does) or an exception to raise. The
    last item repeats once the script is exhausted.
    """

    def __init__(self, script: list[Any], usage: TokenUsage | None = None):
        self.script = list(script)
        self.usage = usage or TokenUsage(prompt_tokens=100, completion_tokens=20, total_tokens=120)
        self.calls = 0
        self.messages: list[list[dict[str, Any]]] = []
        self.tokens: list[CancellationToken] = []

    async def invoke(
        self,
        messages: list[dict[str, Any]],
        schema: DecisionSchema,
        token: CancellationToken,
    ) -> DecisionResult:
        item = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        self.messages.append(messages)
        self.tokens.append(token)
        if isinstance(item, Exception):
            raise item
        return DecisionResult(decision=schema.decode(item), usage=self.usage)


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def done_payload():
    return make_payload("done", {"text": "All done", "success": True})


@pytest.fixture
def payload():
    """Builder for raw AgentOutput payloads."""
    return make_payload


@pytest.fixture
def scripted_client():
    """Factory for ScriptedDecisionClient instances."""
    return ScriptedDecisionClient


APPLICATION_PROFILE = """
profile: test
llm:
  model: gpt-4.1-mini
  temperature: 0.1
  max_tokens: 2048
  max_retries: 1
  api_key_env: PAGEPILOT_TEST_KEY
agent:
  max_steps: 7
  language: zh-CN
  step_delay: 0
tools:
  disabled:
    - execute_javascript
    - scroll_horizontally
"""


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "test.yaml").write_text(APPLICATION_PROFILE, encoding="utf-8")
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
    return tmp_path
