"""Transport protocol.

Defines the pluggable interface the turn pipeline submits requests through.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ChatTransport(Protocol):
    """Protocol for pluggable streaming chat transports.

    Any object with stream_chat() and close() methods matching this signature
    works. The built-in OpenAIClient implements this protocol.

    ``stream_chat`` returns a lazy, non-restartable iterator of raw chunk
    dicts in OpenAI ``chat.completion.chunk`` shape. Decoding them into
    deltas is the stream reducer's job.
    """

    def stream_chat(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        tools: list[dict] | None = None,
        tool_choice: str = "auto",
        **kwargs: Any,
    ) -> Iterator[dict]:
        """Submit the conversation and yield response chunks."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
