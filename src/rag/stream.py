"""Fold a streamed chat completion into rendered output and a result.

Raw chunk dicts from the transport are validated against pydantic models
of the OpenAI ``chat.completion.chunk`` shape and converted to
:class:`~rag.protocols.StreamedDelta`. The reducer consumes deltas strictly
in arrival order: reasoning and content are written to the console as they
arrive, content is accumulated into the answer, tool-call fragments go to
the accumulator, and the last reported usage is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rag.exceptions import StreamError
from rag.formatting import format_reasoning, write_text
from rag.llm.errors import LLMClientError
from rag.protocols import FinishReason, StreamedDelta, TokenUsage, ToolCallFragment

if TYPE_CHECKING:
    from rich.console import Console

    from rag.toolkit.accumulator import ToolCallAccumulator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class _FunctionDelta(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    arguments: Optional[str] = None


class _ToolCallDelta(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    id: Optional[str] = None
    type: Optional[str] = None
    function: Optional[_FunctionDelta] = None


class _Delta(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: Optional[str] = None
    content: Optional[str] = None
    reasoning_content: Optional[str] = None
    reasoning: Optional[str] = None  # some OpenAI-compatible servers use this name
    tool_calls: Optional[list[_ToolCallDelta]] = None


class _Choice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    delta: _Delta = Field(default_factory=_Delta)
    finish_reason: Optional[str] = None


class _Usage(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionChunk(BaseModel):
    """One ``chat.completion.chunk`` object."""

    model_config = ConfigDict(extra="allow")

    choices: list[_Choice] = Field(default_factory=list)
    usage: Optional[_Usage] = None

    def to_delta(self) -> StreamedDelta:
        """Convert the first choice (and usage) into a StreamedDelta.

        Usage-only chunks (empty ``choices``) become an empty delta that
        carries usage.
        """
        usage = None
        if self.usage is not None:
            usage = TokenUsage(
                prompt_tokens=self.usage.prompt_tokens,
                completion_tokens=self.usage.completion_tokens,
                total_tokens=self.usage.total_tokens,
            )
        if not self.choices:
            return StreamedDelta(usage=usage)

        choice = self.choices[0]
        delta = choice.delta
        fragments = tuple(
            ToolCallFragment(
                index=tc.index,
                id=tc.id,
                name=tc.function.name if tc.function else None,
                arguments_fragment=tc.function.arguments if tc.function else None,
            )
            for tc in delta.tool_calls or ()
        )
        return StreamedDelta(
            content=delta.content or "",
            reasoning_content=delta.reasoning_content or delta.reasoning,
            tool_call_fragments=fragments,
            finish_reason=_parse_finish_reason(choice.finish_reason),
            usage=usage,
        )


def _parse_finish_reason(value: str | None) -> FinishReason | None:
    if value is None:
        return None
    try:
        return FinishReason(value)
    except ValueError:
        logger.debug("Unrecognized finish_reason %r", value)
        return None


def parse_chunk(chunk: object) -> StreamedDelta:
    """Validate a raw chunk and convert it to a StreamedDelta.

    Raises:
        StreamError: If the chunk does not have the expected shape.
    """
    try:
        return ChatCompletionChunk.model_validate(chunk).to_delta()
    except ValidationError as exc:
        raise StreamError(f"Malformed stream chunk: {exc}") from exc


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StreamResult:
    """Outcome of consuming one stream.

    Attributes:
        answer: Concatenated content.
        reasoning: Concatenated reasoning content.
        usage: Last usage reported in the stream, or None.
        finish_reason: Last finish reason reported, or None.
        delta_count: Number of deltas folded.
    """

    answer: str = ""
    reasoning: str = ""
    usage: TokenUsage | None = None
    finish_reason: FinishReason | None = None
    delta_count: int = 0


class StreamReducer:
    """Consume one response stream and render it incrementally.

    Usage::

        reducer = StreamReducer(console, accumulator)
        result = reducer.reduce(client.stream_chat(messages), on_delta=hook)
    """

    def __init__(
        self,
        console: Console,
        accumulator: ToolCallAccumulator | None = None,
    ) -> None:
        self._console = console
        self._accumulator = accumulator

    def reduce(
        self,
        chunks: Iterable[object],
        on_delta: Callable[[StreamedDelta], None] | None = None,
    ) -> StreamResult:
        """Fold every chunk in arrival order.

        Args:
            chunks: Lazy iterator of raw chunk dicts. Closed, when it has a
                ``close`` method, once folding stops for any reason.
            on_delta: Called once per delta after it has been folded.

        Raises:
            StreamError: On a malformed chunk, or when the transport fails
                after output has started. Carries the partial answer.
            LLMClientError, httpx.HTTPError: When the transport fails before
                the first chunk.
        """
        answer: list[str] = []
        reasoning: list[str] = []
        usage: TokenUsage | None = None
        finish_reason: FinishReason | None = None
        count = 0

        iterator = iter(chunks)
        try:
            while True:
                try:
                    chunk = next(iterator)
                except StopIteration:
                    break
                except (LLMClientError, httpx.HTTPError) as exc:
                    if count == 0:
                        raise
                    raise StreamError(
                        f"Stream interrupted: {exc}", partial_answer="".join(answer)
                    ) from exc

                try:
                    delta = parse_chunk(chunk)
                except StreamError as exc:
                    raise StreamError(str(exc), partial_answer="".join(answer)) from exc

                count += 1
                if delta.reasoning_content:
                    reasoning.append(delta.reasoning_content)
                    format_reasoning(delta.reasoning_content, self._console)
                if delta.content:
                    answer.append(delta.content)
                    write_text(self._console, delta.content)
                if self._accumulator is not None and delta.tool_call_fragments:
                    self._accumulator.feed(delta.tool_call_fragments)
                if delta.usage is not None:
                    usage = delta.usage
                if delta.finish_reason is not None:
                    finish_reason = delta.finish_reason
                if on_delta is not None:
                    on_delta(delta)
        finally:
            close = getattr(iterator, "close", None)
            if close is not None:
                close()

        logger.debug("Stream finished after %d deltas (finish_reason=%s)", count, finish_reason)
        return StreamResult(
            answer="".join(answer),
            reasoning="".join(reasoning),
            usage=usage,
            finish_reason=finish_reason,
            delta_count=count,
        )
