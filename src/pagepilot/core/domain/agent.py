"""
Page Agent - Step-driven control loop with macro-tool dispatch

The agent repeatedly asks the model client for the next action against the
live page, executes that action through the selected tool and records the
outcome, until the model calls `done`, the step ceiling is reached, or an
error ends the task.

Per step:
1. Pause / cancellation checkpoint
2. Decision request: system + user messages with the composed AgentOutput schema
3. Pause / cancellation checkpoint
4. Tool execution with an explicit ToolContext
5. Wait accounting, ledger append, termination checks

Every task runs against its own _TaskRun (ledger, token, step counter, wait
accumulator). Starting a new task cancels the token of the running one, which
then stops at its next checkpoint without touching the new task's state.
"""

import asyncio
import math
import time
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import BaseModel

from pagepilot.core.domain.cancellation import CancellationToken, PauseController
from pagepilot.core.domain.errors import (
    DecodeError,
    DisposedError,
    PagePilotError,
    TaskInputError,
    ToolExecutionError,
)
from pagepilot.core.domain.events import AgentEvent, AgentEventType
from pagepilot.core.domain.history import HistoryLedger
from pagepilot.core.domain.hooks import AgentHooks, invoke_hook
from pagepilot.core.domain.macro_tool import DecisionSchema, compose_decision_schema
from pagepilot.core.domain.models import (
    DONE_TOOL,
    MAX_STEPS,
    NO_TEXT_MESSAGE,
    STEP_LIMIT_MESSAGE,
    WAIT_ADVISORY_THRESHOLD,
    WAIT_TOOL,
    ActionRecord,
    Decision,
    ExecutionResult,
    StepRecord,
)
from pagepilot.core.domain.registry import ToolRegistry
from pagepilot.core.i18n import I18n
from pagepilot.core.interfaces.host import HostEnvironmentProtocol
from pagepilot.core.interfaces.llm import DecisionClientProtocol
from pagepilot.core.interfaces.tools import Tool, ToolContext
from pagepilot.core.prompts.page_agent_prompts import (
    build_system_prompt,
    build_user_prompt,
    format_brain,
)
from pagepilot.core.tools.page_tools import create_builtin_tools
from pagepilot.infrastructure.events.event_bus import EventBus

STEP_DELAY_SECONDS = 0.1


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _dump_input(tool_input: BaseModel) -> dict[str, Any]:
    return tool_input.model_dump(mode="json", exclude_unset=True)


@dataclass
class _TaskRun:
    """Mutable state of one task execution."""

    task: str
    task_id: str
    token: CancellationToken
    history: HistoryLedger = field(default_factory=HistoryLedger)
    step: int = 0
    wait_time: int = 0


class PageAgent:
    """
    Autonomous page agent driven by a structured-decoding model client.

    Attributes:
        id: Identifier of this agent instance
        tools: Frozen tool registry (built-ins plus custom overrides)
        history: Ledger of the most recently started task
        bus: Event bus receiving progress notifications
        disposed: True once dispose() has been called
    """

    def __init__(
        self,
        llm_client: DecisionClientProtocol,
        host: HostEnvironmentProtocol,
        tools: Mapping[str, Tool] | Iterable[Tool] | None = None,
        *,
        custom_tools: Mapping[str, Tool | None] | None = None,
        hooks: AgentHooks | None = None,
        event_bus: EventBus | None = None,
        max_steps: int = MAX_STEPS,
        language: str | None = None,
        step_delay: float = STEP_DELAY_SECONDS,
        system_prompt: str | None = None,
    ):
        """
        Initialize PageAgent with injected dependencies.

        Args:
            llm_client: Model client returning one Decision per step
            host: Page-state, navigation and UI collaborator
            tools: Base tool set (defaults to the built-in page tools)
            custom_tools: name -> Tool overrides; None removes a tool
            hooks: Optional lifecycle hooks
            event_bus: Receives progress events (a private bus if omitted)
            max_steps: Step ceiling per task
            language: Narrative language ("en-US" or "zh-CN")
            step_delay: Pause after each tool execution, letting observers react
            system_prompt: Base system prompt override
        """
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")

        self.id = uuid.uuid4().hex
        self.llm_client = llm_client
        self.host = host
        self.hooks = hooks or AgentHooks()
        self.bus = event_bus or EventBus()
        self.max_steps = max_steps
        self.language = language
        self.step_delay = step_delay
        self.i18n = I18n(language)
        self._system_prompt = build_system_prompt(language, system_prompt)
        self.logger = structlog.get_logger().bind(component="page_agent", agent_id=self.id)

        base_tools = create_builtin_tools() if tools is None else tools
        if isinstance(base_tools, Mapping):
            self.tools = ToolRegistry()
            self.tools.apply_overrides(base_tools)
        else:
            self.tools = ToolRegistry(base_tools)
        if custom_tools:
            self.tools.apply_overrides(custom_tools)
        self.tools.freeze()
        self.decision_schema: DecisionSchema = compose_decision_schema(self.tools)

        self.disposed = False
        self.task = ""
        self.task_id = ""
        self.history = HistoryLedger()
        self._pause = PauseController()
        self._token = CancellationToken()
        self._run: _TaskRun | None = None

    # ------------------------------------------------------------------
    # Pause / state accessors
    # ------------------------------------------------------------------

    @property
    def paused(self) -> bool:
        return self._pause.paused

    @paused.setter
    def paused(self, value: bool) -> None:
        if value:
            self.pause()
        else:
            self.resume()

    def pause(self) -> None:
        self._pause.pause()
        self.logger.info("agent_paused", task_id=self.task_id)

    def resume(self) -> None:
        self._pause.resume()
        self.logger.info("agent_resumed", task_id=self.task_id)

    @property
    def cancellation_token(self) -> CancellationToken:
        """Token of the current (or most recent) task."""
        return self._token

    @property
    def total_wait_time(self) -> int:
        """Wait accumulator of the current task."""
        return self._run.wait_time if self._run else 0

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    # ------------------------------------------------------------------
    # Task execution
    # ------------------------------------------------------------------

    async def execute(self, task: str) -> ExecutionResult:
        """
        Execute a task until `done`, the step ceiling, or an error.

        Args:
            task: The user request

        Returns:
            ExecutionResult. Loop errors never propagate; they become a failed
            result carrying the error description and the history so far.

        Raises:
            DisposedError: The agent has been disposed
            TaskInputError: `task` is empty (raised before any state changes)
        """
        if self.disposed:
            raise DisposedError("PageAgent has been disposed")
        if not task or not task.strip():
            raise TaskInputError("Task is required")

        token = CancellationToken()
        previous, self._token = self._token, token
        if previous.cancel("superseded by a new task"):
            self.logger.info("previous_task_cancelled", task_id=self.task_id)

        run = _TaskRun(task=task, task_id=uuid.uuid4().hex, token=token)
        self._run = run
        self.task = task
        self.task_id = run.task_id
        self.history = run.history

        self.logger.info("execute_start", task_id=run.task_id, task=task[:100])

        await invoke_hook(self.hooks.on_before_task, self)

        self.host.show_mask()
        self._emit(run, AgentEventType.TASK_RESET)
        self._emit(run, AgentEventType.INPUT, display_text=task)

        try:
            success, data = await self._run_loop(run)
        except Exception as e:
            self.logger.error(
                "task_failed",
                task_id=run.task_id,
                step=run.step,
                error=str(e),
                error_type=type(e).__name__,
            )
            success, data = False, str(e) or type(e).__name__

        await self._on_done(run, data, success)

        result = ExecutionResult(success=success, data=data, history=run.history.snapshot())
        self.logger.info(
            "execute_complete",
            task_id=run.task_id,
            success=success,
            steps=len(result.history),
        )

        await invoke_hook(self.hooks.on_after_task, self, result)
        return result

    async def _run_loop(self, run: _TaskRun) -> tuple[bool, str]:
        while True:
            await invoke_hook(self.hooks.on_before_step, self, run.step)
            self.logger.info("loop_step", task_id=run.task_id, step=run.step + 1)

            run.token.raise_if_cancelled()
            await self._pause.wait_until_resumed(run.token)

            self._emit(run, AgentEventType.THINKING, display_text=self.i18n.t("ui.panel.thinking"))
            messages = await self._build_messages(run)
            response = await self.llm_client.invoke(messages, self.decision_schema, run.token)
            decision = response.decision

            tool_name, raw_input = self._select_action(decision)
            self._emit(
                run,
                AgentEventType.THINKING,
                display_text=format_brain(
                    decision.brain.evaluation_previous_goal,
                    decision.brain.memory,
                    decision.brain.next_goal,
                ),
            )

            await self._pause.wait_until_resumed(run.token)

            args, output = await self._execute_tool(run, tool_name, raw_input)

            run.history.append(
                StepRecord(
                    brain=decision.brain,
                    action=ActionRecord(name=tool_name, input=args, output=output),
                    usage=response.usage,
                )
            )
            self.logger.info("step_finished", task_id=run.task_id, step=run.step + 1, tool=tool_name)

            await invoke_hook(self.hooks.on_after_step, self, run.step, run.history.snapshot())

            run.step += 1

            if tool_name == DONE_TOOL:
                success = args.get("success")
                text = args.get("text") or NO_TEXT_MESSAGE
                self.logger.info("task_done", task_id=run.task_id, success=bool(success))
                return bool(success) if success is not None else False, text

            if run.step >= self.max_steps:
                self.logger.warning("step_limit_exceeded", task_id=run.task_id, max_steps=self.max_steps)
                return False, STEP_LIMIT_MESSAGE

    @staticmethod
    def _select_action(decision: Decision) -> tuple[str, Any]:
        action = decision.action
        if not isinstance(action, Mapping) or len(action) != 1:
            count = len(action) if isinstance(action, Mapping) else 0
            raise DecodeError(f"Decision action must contain exactly one tool, got {count}")
        return next(iter(action.items()))

    async def _build_messages(self, run: _TaskRun) -> list[dict[str, Any]]:
        snapshot = await self.host.get_page_snapshot()
        return [
            {"role": "system", "content": self._system_prompt},
            {
                "role": "user",
                "content": build_user_prompt(run.task, run.history, self.max_steps, snapshot),
            },
        ]

    async def _execute_tool(
        self,
        run: _TaskRun,
        tool_name: str,
        raw_input: Any,
    ) -> tuple[dict[str, Any], str]:
        """Execute the selected tool. Returns (recorded args, output)."""
        selected = self.tools.get_tool(tool_name)
        tool_input = selected.parse_input(raw_input)
        args = _dump_input(tool_input)

        self.logger.info("tool_execute", task_id=run.task_id, tool=tool_name, args_keys=list(args))
        self._emit(
            run,
            AgentEventType.TOOL_EXECUTING,
            display_text=self.i18n.tool_executing_text(tool_name, tool_input.model_dump(mode="json")),
            payload={"name": tool_name, "args": args},
        )

        started = time.monotonic()
        try:
            output = await selected.execute(self._tool_context(run), tool_input)
        except PagePilotError:
            raise
        except Exception as e:
            raise ToolExecutionError(tool_name, e) from e
        duration = time.monotonic() - started

        output = self._account_wait(run, tool_name, tool_input, duration, "" if output is None else str(output))
        self.logger.info("tool_complete", task_id=run.task_id, tool=tool_name, duration_ms=int(duration * 1000))

        self._emit(
            run,
            AgentEventType.TOOL_COMPLETED,
            display_text=self.i18n.tool_completed_text(tool_name, tool_input.model_dump(mode="json")),
            payload={
                "name": tool_name,
                "args": args,
                "result": output,
                "duration": duration,
            },
        )

        if self.step_delay > 0:
            await asyncio.sleep(self.step_delay)

        return args, output

    def _account_wait(
        self,
        run: _TaskRun,
        tool_name: str,
        tool_input: BaseModel,
        duration: float,
        output: str,
    ) -> str:
        if tool_name != WAIT_TOOL:
            run.wait_time = 0
            return output

        seconds = float(getattr(tool_input, "seconds", 0) or 0)
        run.wait_time += _round_half_up(seconds + duration)
        output += f"\n<sys> You have waited {run.wait_time} seconds accumulatively."
        if run.wait_time >= WAIT_ADVISORY_THRESHOLD:
            output += "\nDo NOT wait any longer unless you have a good reason.\n"
        output += "</sys>"
        return output

    def _tool_context(self, run: _TaskRun) -> ToolContext:
        return ToolContext(
            host=self.host,
            token=run.token,
            i18n=self.i18n,
            task=run.task,
            task_id=run.task_id,
            agent_id=self.id,
        )

    async def _on_done(self, run: _TaskRun, text: str, success: bool) -> None:
        """
        Done notification: fires exactly once per task.

        A superseded run only releases its own token; host UI state and the
        panel events belong to the task that replaced it.
        """
        if run is not self._run:
            self.logger.info("superseded_task_finished", task_id=run.task_id, success=success)
            run.token.cancel("task finished")
            return

        self.host.clean_up_highlights()
        self._emit(
            run,
            AgentEventType.OUTPUT if success else AgentEventType.ERROR,
            display_text=text,
        )
        self._emit(
            run,
            AgentEventType.COMPLETED,
            display_text=self.i18n.t("ui.panel.taskCompleted"),
            payload={"success": success},
        )
        self.host.hide_mask()
        run.token.cancel("task finished")

    def _emit(
        self,
        run: _TaskRun,
        event_type: AgentEventType,
        display_text: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        self.bus.emit(
            AgentEvent(
                type=event_type,
                agent_id=self.id,
                task_id=run.task_id,
                display_text=display_text,
                payload=payload or {},
            )
        )

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    def dispose(self, reason: str | None = None) -> None:
        """
        Tear the agent down for good.

        Cancels the current token with `reason`, clears history and host
        state, and forwards the reason to the on_dispose hook. Further
        execute() calls raise DisposedError.
        """
        if self.disposed:
            return
        self.logger.info("disposing", reason=reason)
        self.disposed = True
        self._token.cancel(reason or "PageAgent disposed")
        self.host.clean_up_highlights()
        self.host.dispose()
        self.history = HistoryLedger()
        if self.hooks.on_dispose is not None:
            self.hooks.on_dispose(self, reason)
