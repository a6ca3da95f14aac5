"""
Page Agent Prompts

- PAGE_AGENT_SYSTEM_PROMPT: Operating rules for the browser agent
- build_system_prompt(): System prompt with the configured working language
- build_user_prompt(): Per-step user message with agent history, agent state
  and the current browser state

Usage:
    from pagepilot.core.prompts.page_agent_prompts import (
        build_system_prompt,
        build_user_prompt,
    )

    messages = [
        {"role": "system", "content": build_system_prompt("en-US")},
        {"role": "user", "content": build_user_prompt(task, history, 20, snapshot)},
    ]
"""

import re
from collections.abc import Sequence
from datetime import datetime, timezone

from pagepilot.core.domain.models import StepRecord
from pagepilot.core.interfaces.host import PageSnapshot

PAGE_AGENT_SYSTEM_PROMPT = """
You are an AI agent designed to operate in an iterative loop to automate browser tasks.
Your ultimate goal is accomplishing the task provided in <user_request>.

<language_settings>
Default working language: **English**
Use the language that the user is using. Return in user's language.
</language_settings>

<input>
At every step, your input will consist of:
1. <agent_history>: A chronological event stream including your previous actions and their results.
2. <agent_state>: Current <user_request> and <step_info>.
3. <browser_state>: Current URL, interactive elements indexed for actions, and visible page content.
</input>

<browser_state>
Interactive elements are provided as [index]<type>text</type>.
- index: Numeric identifier for interaction
- Only elements with numeric indexes in [] are interactive
- Elements marked with *[ are new since the last step
</browser_state>

<browser_rules>
- Only interact with elements that have a numeric [index] assigned.
- Only use indexes that are explicitly provided.
- If the page changes after an action, analyze the new elements before acting again.
- If expected elements are missing, try scrolling or waiting briefly.
- Do NOT wait repeatedly without a reason.
- If a captcha or login wall blocks you, call ask_user or finish with done.
</browser_rules>

<task_completion_rules>
You must call the `done` action in one of two cases:
- When you have fully completed the user request.
- When it is impossible to continue.
Set `success` to true only if the full user request has been completed.
Use the `text` field of `done` to communicate your findings to the user.
</task_completion_rules>

<reasoning_rules>
- Evaluate whether the previous goal succeeded in `evaluation_previous_goal`.
- Track progress and anything worth remembering in `memory`.
- State the immediate next goal in `next_goal`.
</reasoning_rules>

<output>
Always respond by calling the AgentOutput tool with exactly one action.
</output>
""".strip()

_LANGUAGE_LINE = re.compile(r"Default working language: \*\*.*?\*\*")


def build_system_prompt(language: str | None = None, base_prompt: str | None = None) -> str:
    """Return the system prompt with the working language substituted."""
    target_language = "中文" if language == "zh-CN" else "English"
    return _LANGUAGE_LINE.sub(
        f"Default working language: **{target_language}**",
        base_prompt or PAGE_AGENT_SYSTEM_PROMPT,
    )


def trim_lines(text: str) -> str:
    """Strip leading/trailing whitespace from every line."""
    return "\n".join(line.strip() for line in text.splitlines())


def format_agent_history(history: Sequence[StepRecord]) -> str:
    blocks = []
    for index, record in enumerate(history, start=1):
        blocks.append(
            f"<step_{index}>\n"
            f"Evaluation of Previous Step: {record.brain.evaluation_previous_goal}\n"
            f"Memory: {record.brain.memory}\n"
            f"Next Goal: {record.brain.next_goal}\n"
            f"Action Results: {record.action.output}\n"
            f"</step_{index}>"
        )
    return "<agent_history>\n" + "\n".join(blocks) + ("\n" if blocks else "") + "</agent_history>"


def format_browser_state(snapshot: PageSnapshot) -> str:
    lines = [
        "<browser_state>",
        f"Current Page: [{snapshot.title}]({snapshot.url})",
        "",
        (
            f"Page info: {snapshot.viewport_width}x{snapshot.viewport_height}px viewport, "
            f"{snapshot.page_width}x{snapshot.page_height}px total page size, "
            f"{snapshot.pages_above:.1f} pages above, {snapshot.pages_below:.1f} pages below, "
            f"{snapshot.total_pages:.1f} total pages, "
            f"at {snapshot.current_page_position * 100:.0f}% of page"
        ),
        "",
        (
            "Interactive elements from top layer of the current page (full page):"
            if snapshot.full_page
            else "Interactive elements from top layer of the current page inside the viewport:"
        ),
        "",
    ]

    if snapshot.pixels_above > 4 and not snapshot.full_page:
        lines.append(
            f"... {snapshot.pixels_above} pixels above "
            f"({snapshot.pages_above:.1f} pages) - scroll to see more ..."
        )
    else:
        lines.append("[Start of page]")

    lines.append(snapshot.content)

    if snapshot.pixels_below > 4 and not snapshot.full_page:
        lines.append(
            f"... {snapshot.pixels_below} pixels below "
            f"({snapshot.pages_below:.1f} pages) - scroll to see more ..."
        )
    else:
        lines.append("[End of page]")

    lines.append("</browser_state>")
    return "\n".join(lines)


def build_user_prompt(
    task: str,
    history: Sequence[StepRecord],
    max_steps: int,
    snapshot: PageSnapshot,
    now: datetime | None = None,
) -> str:
    """Assemble the per-step user message."""
    now = now or datetime.now(timezone.utc)
    agent_state = (
        "<agent_state>\n"
        "<user_request>\n"
        f"{task}\n"
        "</user_request>\n"
        "<step_info>\n"
        f"Step {len(history) + 1} of {max_steps} max possible steps\n"
        f"Current date and time: {now.isoformat()}\n"
        "</step_info>\n"
        "</agent_state>"
    )
    return "\n\n".join(
        [format_agent_history(history), agent_state, format_browser_state(snapshot)]
    )


def format_brain(evaluation: str, memory: str, next_goal: str) -> str:
    """Thinking text shown to observers after each decision."""
    return trim_lines(f"✅: {evaluation}\n💾: {memory}\n🎯: {next_goal}")
