"""Tool toolkit: tool contract, registry, function tools, and the
streaming tool-call accumulator.
"""

from rag.toolkit.accumulator import PendingToolCall, ToolCallAccumulator
from rag.toolkit.definitions import (
    FunctionTool,
    add,
    default_registry,
    execute_command,
    function_tool,
)
from rag.toolkit.models import Tool, ToolMetaData, ToolResult
from rag.toolkit.registry import ToolRegistry

__all__ = [
    "Tool",
    "ToolMetaData",
    "ToolResult",
    "ToolRegistry",
    "FunctionTool",
    "function_tool",
    "default_registry",
    "add",
    "execute_command",
    "PendingToolCall",
    "ToolCallAccumulator",
]
