"""Core data types shared by the conversation, stream and tool layers.

Frozen dataclasses for conversation messages, tool calls, token usage and
streamed deltas.  No I/O in this module -- pure domain types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TypedDict


class Role(str, enum.Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"

    def __str__(self) -> str:
        return self.value


class FinishReason(str, enum.Enum):
    """Why the remote side stopped generating."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    FUNCTION_CALL = "function_call"

    def __str__(self) -> str:
        return self.value


class _ToolCallOpenAIFunction(TypedDict):
    """OpenAI function sub-object."""

    name: str
    arguments: str


class ToolCallOpenAIDict(TypedDict):
    """OpenAI wire format for a single tool call."""

    id: str
    type: str
    function: _ToolCallOpenAIFunction


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation recorded on an assistant message.

    ``arguments`` is kept as the raw JSON text the model produced, so the
    conversation replays exactly what was requested.
    """

    id: str
    name: str
    arguments: str
    type: str = "function"

    def to_openai(self) -> ToolCallOpenAIDict:
        """Serialize to OpenAI wire format."""
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.name,
                "arguments": self.arguments,
            },
        }


@dataclass(frozen=True)
class Message:
    """A single conversation message. Immutable once created."""

    role: Role
    content: str
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()

    def to_dict(self) -> dict:
        """Convert to the dict shape chat-completion endpoints accept."""
        d: dict = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            d["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            d["tool_call_id"] = self.tool_call_id
        return d


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported by an LLM API response."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass(frozen=True)
class ToolCallFragment:
    """A partial tool call carried by one streamed delta.

    Attributes:
        index: Remote-assigned slot, stable within one stream.
        name: Tool name; normally only on the first fragment of a slot.
        arguments_fragment: Next piece of the JSON argument text.
        id: Remote tool-call id, when the provider sends one.
    """

    index: int
    name: str | None = None
    arguments_fragment: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class StreamedDelta:
    """One incremental unit of a streamed chat completion."""

    content: str = ""
    reasoning_content: str | None = None
    tool_call_fragments: tuple[ToolCallFragment, ...] = field(default_factory=tuple)
    finish_reason: FinishReason | None = None
    usage: TokenUsage | None = None
