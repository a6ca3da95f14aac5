"""
In-process event bus.

Fire-and-forget publisher for AgentEvent notifications. emit() never blocks
the caller and never raises: synchronous subscribers are called inline,
coroutine subscribers are scheduled on the running loop, and subscriber
failures are logged and dropped.
"""

import asyncio
import inspect
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from pagepilot.core.domain.events import AgentEvent, AgentEventType

EventHandler = Callable[[AgentEvent], Any]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: list[tuple[EventHandler, frozenset[AgentEventType] | None]] = []
        self._pending: set[asyncio.Task] = set()
        self.logger = structlog.get_logger().bind(component="event_bus")

    def subscribe(
        self,
        handler: EventHandler,
        event_types: Iterable[AgentEventType] | None = None,
    ) -> Callable[[], None]:
        """
        Register a handler, optionally restricted to some event types.

        Returns:
            A callable that unsubscribes the handler.
        """
        entry = (handler, frozenset(event_types) if event_types is not None else None)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def emit(self, event: AgentEvent) -> None:
        for handler, types in list(self._subscribers):
            if types is not None and event.type not in types:
                continue
            try:
                result = handler(event)
            except Exception as e:
                self.logger.warning(
                    "event_handler_failed",
                    event_type=event.type.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            if inspect.isawaitable(result):
                self._schedule(event, result)

    def _schedule(self, event: AgentEvent, awaitable: Any) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self.logger.warning("event_handler_dropped", event_type=event.type.value)
            return

        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._pending.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                self.logger.warning(
                    "event_handler_failed",
                    event_type=event.type.value,
                    error=str(finished.exception()),
                )

        task.add_done_callback(_done)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
