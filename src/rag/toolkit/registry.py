"""ToolRegistry: owns the invocable tools and dispatches calls by name.

``execute()`` raises typed errors; ``dispatch()`` turns a pending tool call
into a structured ``ToolResult`` that is always safe to hand back to the
model, whether the call succeeded or not.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rag.exceptions import (
    DuplicateToolError,
    ToolError,
    ToolExecutionError,
    ToolRegistrationError,
    UnknownToolError,
)
from rag.toolkit.models import ToolResult

if TYPE_CHECKING:
    from rag.toolkit.accumulator import PendingToolCall
    from rag.toolkit.models import Tool, ToolMetaData

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name-keyed collection of tools.

    Usage::

        registry = ToolRegistry()
        registry.register(add)
        registry.execute("Add", {"a": 3, "b": 5})   # -> 8
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool, *, replace: bool = False) -> None:
        """Register a tool under ``tool.metadata().name``.

        Args:
            tool: Object satisfying the Tool protocol.
            replace: Allow overriding an existing tool of the same name.

        Raises:
            ToolRegistrationError: If the name is not a valid identifier.
            DuplicateToolError: If the name is taken and ``replace`` is False.
        """
        name = tool.metadata().name
        if not isinstance(name, str) or not name.isidentifier():
            raise ToolRegistrationError(
                f"Tool name must be a valid identifier, got {name!r}"
            )
        if name in self._tools:
            if not replace:
                raise DuplicateToolError(name)
            logger.debug("Replacing tool %s", name)
        self._tools[name] = tool

    def unregister(self, name: str) -> None:
        """Remove a tool. Unknown names are ignored."""
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def execute(self, name: str, parameters: Any) -> Any:
        """Execute a tool by exact name.

        Raises:
            UnknownToolError: If no tool has this name.
            ToolExecutionError: If the tool fails, including when it raises
                any other ToolError.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        try:
            return tool.execute(parameters)
        except ToolExecutionError:
            raise
        except Exception as exc:
            raise ToolExecutionError(name, f"{type(exc).__name__}: {exc}") from exc

    def dispatch(self, call: PendingToolCall) -> ToolResult:
        """Parse a pending call's arguments, execute it, and wrap the outcome.

        Failures never propagate: argument, lookup and execution errors
        become a failed ToolResult so sibling calls still run.
        """
        try:
            parameters = call.parse_arguments()
            output = self.execute(call.name, parameters)
        except ToolError as exc:
            logger.debug("Tool call %s (%s) failed: %s", call.id, call.name, exc)
            return ToolResult(
                tool_name=call.name,
                tool_call_id=call.id,
                success=False,
                error=str(exc),
            )
        return ToolResult(
            tool_name=call.name,
            tool_call_id=call.id,
            success=True,
            output=output,
        )

    def list_metadata(self) -> list[ToolMetaData]:
        return [tool.metadata() for tool in self._tools.values()]

    def to_catalogue(self) -> list[dict]:
        """Serialize every tool into the OpenAI ``tools`` request field."""
        return [meta.to_openai() for meta in self.list_metadata()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
