"""
Cancellation & Pause Controller

Cooperative cancellation token and pause flag used by the step loop.

Both are backed by asyncio.Event so that a suspended loop wakes up as soon as
the state changes instead of re-polling on a timer. Cancellation always takes
priority over pause: a paused loop whose token is cancelled unblocks and
raises CancellationError.
"""

import asyncio
import inspect
from collections.abc import Awaitable
from typing import TypeVar

from pagepilot.core.domain.errors import CancellationError

T = TypeVar("T")


class CancellationToken:
    """
    Per-task cancellation handle.

    Cancelling is idempotent and observable by every holder of the token.
    Nothing is interrupted forcibly: operations check the token at their own
    checkpoints, or race their work against it with run().
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> bool:
        """Cancel the token. Returns False if it was already cancelled."""
        if self._event.is_set():
            return False
        self.reason = reason or "cancelled"
        self._event.set()
        return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError(self.reason)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless the token is cancelled first.

        The pending work is cancelled and CancellationError raised as soon as
        the token fires. If the work finishes first its result is returned,
        even when the token is cancelled right after. The work never outlives
        this call: on an already cancelled token a coroutine is closed
        unstarted, and cancelling the caller cancels the work too.
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise CancellationError(self.reason)
        work = asyncio.ensure_future(awaitable)
        watcher = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watcher.cancel()
            finished = work.done()
            if not finished:
                work.cancel()
        if not finished:
            raise CancellationError(self.reason)
        return work.result()


class PauseController:
    """Externally settable pause flag observed at the loop's suspension points."""

    def __init__(self) -> None:
        self._resumed = asyncio.Event()
        self._resumed.set()

    @property
    def paused(self) -> bool:
        return not self._resumed.is_set()

    def pause(self) -> None:
        self._resumed.clear()

    def resume(self) -> None:
        self._resumed.set()

    async def wait_until_resumed(self, token: CancellationToken) -> None:
        """
        Suspend while paused.

        Returns immediately when not paused. Raises CancellationError if the
        token is (or becomes) cancelled, whether paused or not.
        """
        token.raise_if_cancelled()
        while self.paused:
            resumed = asyncio.ensure_future(self._resumed.wait())
            cancelled = asyncio.ensure_future(token.wait())
            try:
                await asyncio.wait({resumed, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                resumed.cancel()
                cancelled.cancel()
            token.raise_if_cancelled()
