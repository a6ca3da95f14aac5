"""
Tool Registry

Mapping from tool name to Tool. Built at agent construction from the
built-in set plus configured overrides, then frozen for the lifetime of the
agent.
"""

from collections.abc import Iterable, Iterator, Mapping

import structlog

from pagepilot.core.domain.errors import ToolNotFoundError
from pagepilot.core.interfaces.tools import Tool


class ToolRegistry(Mapping[str, Tool]):
    """
    Name -> Tool mapping with override and removal by name.

    Iteration order is registration order; overriding an existing name keeps
    its position.
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        self._frozen = False
        self.logger = structlog.get_logger().bind(component="tool_registry")
        for item in tools:
            self.register(item)

    def register(self, tool: Tool, name: str | None = None) -> None:
        """Insert or replace a tool. `name` defaults to tool.name."""
        self._check_mutable()
        key = name or tool.name
        if not key:
            raise ValueError("Tool name must not be empty")
        if key in self._tools:
            self.logger.debug("tool_overridden", tool=key)
        self._tools[key] = tool

    def remove(self, name: str) -> bool:
        """Remove a tool. Returns False if no tool had that name."""
        self._check_mutable()
        return self._tools.pop(name, None) is not None

    def apply_overrides(self, overrides: Mapping[str, Tool | None]) -> None:
        """
        Apply configuration overrides.

        A None value removes the tool of that name; any other value inserts it
        or replaces the tool already registered under that name.
        """
        for name, item in overrides.items():
            if item is None:
                removed = self.remove(name)
                self.logger.info("tool_removed", tool=name, existed=removed)
            else:
                self.register(item, name=name)

    def get_tool(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("Tool registry is frozen")

    def __getitem__(self, name: str) -> Tool:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry({list(self._tools)})"
