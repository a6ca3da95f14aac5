"""
Lifecycle hooks of a PageAgent.

Every hook is optional and may be a plain function or a coroutine function.
Hooks receive the agent as their first argument:

    on_before_task(agent)
    on_after_task(agent, result)
    on_before_step(agent, step)
    on_after_step(agent, step, history)
    on_dispose(agent, reason)        # synchronous only
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class AgentHooks:
    on_before_task: Callable[..., Any] | None = None
    on_after_task: Callable[..., Any] | None = None
    on_before_step: Callable[..., Any] | None = None
    on_after_step: Callable[..., Any] | None = None
    on_dispose: Callable[..., Any] | None = None


async def invoke_hook(hook: Callable[..., Any] | None, *args: Any) -> None:
    """Call a hook if present, awaiting it when it returns an awaitable."""
    if hook is None:
        return
    result = hook(*args)
    if inspect.isawaitable(result):
        await result
