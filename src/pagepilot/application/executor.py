"""
Application Layer - Task Executor Service

Service layer orchestrating page agent task execution for the CLI and other
entrypoints.

The TaskExecutor:
- Creates agents using AgentFactory based on profile
- Translates agent events into ProgressUpdate callbacks
- Logs execution start, completion and failure
- Disposes the agent when the task ends
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from pagepilot.application.factory import AgentFactory
from pagepilot.core.domain.events import AgentEvent
from pagepilot.core.domain.hooks import AgentHooks
from pagepilot.core.domain.models import ExecutionResult
from pagepilot.core.interfaces.host import HostEnvironmentProtocol
from pagepilot.core.interfaces.llm import DecisionClientProtocol
from pagepilot.infrastructure.events.event_bus import EventBus

logger = structlog.get_logger()


@dataclass
class ProgressUpdate:
    """Progress update during execution.

    Attributes:
        timestamp: When this update occurred
        event_type: Agent event type value (thinking, tool_executing, ...)
        message: Human-readable message describing the event
        details: Additional structured data about the event
    """

    timestamp: datetime
    event_type: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: AgentEvent) -> "ProgressUpdate":
        return cls(
            timestamp=event.timestamp,
            event_type=event.type.value,
            message=event.display_text or "",
            details=dict(event.payload),
        )


class TaskExecutor:
    """Runs one task per call on a freshly created agent."""

    def __init__(self, factory: AgentFactory | None = None):
        self.factory = factory or AgentFactory()
        self.logger = logger.bind(component="task_executor")

    async def execute_task(
        self,
        task: str,
        host: HostEnvironmentProtocol,
        profile: str = "dev",
        progress_callback: Callable[[ProgressUpdate], Any] | None = None,
        llm_client: DecisionClientProtocol | None = None,
        hooks: AgentHooks | None = None,
        **overrides: Any,
    ) -> ExecutionResult:
        """Execute a task with progress tracking.

        Args:
            task: The user request
            host: Host environment the agent drives
            profile: Configuration profile name
            progress_callback: Receives a ProgressUpdate for every agent event
            llm_client: Model client override
            hooks: Lifecycle hooks
            **overrides: Settings overriding the profile

        Returns:
            ExecutionResult of the task

        Raises:
            FileNotFoundError: If the profile does not exist
            TaskInputError: If the task is empty
        """
        start_time = datetime.now()
        self.logger.info("task.execution.started", task=task[:100], profile=profile)

        bus = EventBus()
        if progress_callback is not None:
            bus.subscribe(lambda event: progress_callback(ProgressUpdate.from_event(event)))

        agent = None
        try:
            agent = self.factory.create_agent(
                host,
                profile,
                llm_client=llm_client,
                hooks=hooks,
                event_bus=bus,
                **overrides,
            )
            result = await agent.execute(task)

            self.logger.info(
                "task.execution.completed",
                task_id=agent.task_id,
                success=result.success,
                steps=len(result.history),
                duration_seconds=(datetime.now() - start_time).total_seconds(),
            )
            return result

        except Exception as e:
            self.logger.error(
                "task.execution.failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=(datetime.now() - start_time).total_seconds(),
            )
            raise

        finally:
            if agent is not None:
                agent.dispose("task executor finished")
