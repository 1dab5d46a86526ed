"""Toolkit data models for rag tool definitions.

Frozen dataclasses for tool metadata and results, plus the Tool protocol
every registered tool satisfies.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class ToolMetaData:
    """Describes a tool to the model.

    Attributes:
        name: Tool name; unique within a registry and a valid identifier.
        description: Human-readable description of when/why to use this tool.
        parameters: JSON Schema object describing the tool parameters.
    """

    name: str
    description: str
    parameters: dict

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format.

        Only ``properties`` and ``required`` of the schema are sent; titles,
        ``$defs`` and other generator output stay local.

        Returns:
            Dict with "type": "function" and nested "function" object.
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": self.parameters.get("properties", {}),
                    "required": self.parameters.get("required", []),
                },
            },
        }


@runtime_checkable
class Tool(Protocol):
    """Capability contract for an invocable tool.

    ``execute`` receives the parsed JSON arguments and returns a
    JSON-serializable value. It raises ToolExecutionError on failure.
    """

    def metadata(self) -> ToolMetaData:
        """Return this tool's metadata."""
        ...

    def execute(self, parameters: Any) -> Any:
        """Run the tool with parsed JSON parameters."""
        ...


@dataclass(frozen=True)
class ToolResult:
    """Structured result from executing a tool call.

    Attributes:
        tool_name: Name of the tool that was requested.
        tool_call_id: Id of the originating tool call.
        success: Whether execution succeeded.
        output: JSON-serializable value on success.
        error: Error message on failure.
    """

    tool_name: str
    tool_call_id: str
    success: bool
    output: Any = None
    error: str = ""

    def to_content(self) -> str:
        """Render as the content of a tool-role message."""
        if not self.success:
            return f"Error: {self.error}"
        if isinstance(self.output, str):
            return self.output
        return json.dumps(self.output, ensure_ascii=False, default=str)
