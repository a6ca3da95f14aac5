"""
Domain Events for Agent Execution

Notifications the agent publishes while a task runs. Events are immutable,
fire-and-forget facts: nothing in the control loop waits for a subscriber
or expects an acknowledgement.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class AgentEventType(str, Enum):
    """Type of notification emitted by the agent."""

    TASK_RESET = "task_reset"
    INPUT = "input"
    THINKING = "thinking"
    TOOL_EXECUTING = "tool_executing"
    TOOL_COMPLETED = "tool_completed"
    OUTPUT = "output"
    ERROR = "error"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AgentEvent:
    """
    A notification about task progress.

    Attributes:
        type: Kind of event
        agent_id: Identifier of the emitting agent instance
        task_id: Identifier of the task execution the event belongs to
        display_text: Localized text meant for a presentation layer
        payload: Structured details (tool name, args, result, duration)
        timestamp: When the event was created
    """

    type: AgentEventType
    agent_id: str
    task_id: str
    display_text: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
