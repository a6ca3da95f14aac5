"""
Core Domain Models

Data models shared by the control loop, the model client and the tools:
the model's per-step decision, the immutable step records of the history
ledger, token usage statistics, and the final execution result.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

MAX_STEPS = 20
DONE_TOOL = "done"
WAIT_TOOL = "wait"
WAIT_ADVISORY_THRESHOLD = 3
STEP_LIMIT_MESSAGE = "Step count exceeded maximum limit"
NO_TEXT_MESSAGE = "no text provided"


@dataclass(frozen=True)
class AgentBrain:
    """Narrative fields the model reports alongside its action."""

    evaluation_previous_goal: str = ""
    memory: str = ""
    next_goal: str = ""


@dataclass(frozen=True)
class Decision:
    """
    One step's structured output from the model.

    Attributes:
        brain: Narrative fields (evaluation, memory, next goal)
        action: Single-key mapping {tool_name: tool_input}. The input is either
            the validated input model of the tool or a raw mapping that the
            orchestrator validates before dispatch.
    """

    brain: AgentBrain
    action: dict[str, Any]


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cached_tokens: int | None = None
    reasoning_tokens: int | None = None


@dataclass(frozen=True)
class DecisionResult:
    """What the model client returns for one decision request."""

    decision: Decision
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class ActionRecord:
    name: str
    input: dict[str, Any]
    output: str


@dataclass(frozen=True)
class StepRecord:
    """
    Immutable record of one completed step.

    Attributes:
        brain: The decision's narrative fields
        action: Selected tool name, its validated input and its string output
        usage: Token usage of the decision request
    """

    brain: AgentBrain
    action: ActionRecord
    usage: TokenUsage

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ExecutionResult:
    """
    Result of one task execution.

    Attributes:
        success: Whether the task finished successfully
        data: Final text (done text, step-limit message or error description)
        history: Step records accumulated before termination
    """

    success: bool
    data: str
    history: list[StepRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "history": [record.to_dict() for record in self.history],
        }
