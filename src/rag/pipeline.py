"""Turn pipeline: runs one conversational turn through hooks, transport,
stream reduction and tool dispatch.

A turn moves through these states::

    AWAIT_INPUT -> TRANSFORMING -> SUBMITTING -> STREAMING
        -> [TOOL_DISPATCH -> FOLLOWUP_STREAMING]* -> TURN_COMPLETE

Post-call hooks see the deltas of the first stream only. Follow-up rounds
after tool dispatch are hookless, and at most ``max_tool_rounds`` of them
run per turn; tool calls requested beyond that bound are reported and
dropped.

Not thread-safe. One pipeline owns one conversation.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from rag.conversation import ConversationState
from rag.exceptions import HookError, StreamError
from rag.formatting import format_error, format_warning, get_console, get_error_console, write_text
from rag.hooks.builtin import CommandParser, answer_prompt, log_delta, new_line, token_report
from rag.hooks.points import Hook, HookPoint, hook_name
from rag.llm.errors import LLMClientError
from rag.protocols import Role, TokenUsage
from rag.stream import StreamReducer, StreamResult
from rag.toolkit.accumulator import ToolCallAccumulator
from rag.toolkit.definitions import default_registry

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from rag.llm.protocols import ChatTransport
    from rag.models.config import Config
    from rag.protocols import StreamedDelta
    from rag.toolkit.models import ToolResult
    from rag.toolkit.registry import ToolRegistry
    from rag.transforms import TransformChain

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 4


class TurnState(str, enum.Enum):
    """Where the pipeline is within the current turn."""

    AWAIT_INPUT = "await_input"
    TRANSFORMING = "transforming"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    TOOL_DISPATCH = "tool_dispatch"
    FOLLOWUP_STREAMING = "followup_streaming"
    TURN_COMPLETE = "turn_complete"

    def __str__(self) -> str:
        return self.value


class LineSource(Protocol):
    """Anything that yields one line of input per call.

    ``read_line`` blocks until a line is available and raises EOFError at
    end of input.
    """

    def read_line(self) -> str:
        ...


@dataclass
class TurnContext:
    """Mutable state shared by the pipeline and every hook.

    Attributes:
        config: Endpoint configuration (read-only by convention).
        conversation: Bounded message history.
        registry: Tools offered to the model.
        console: Output surface for model text.
        error_console: Surface for warnings and errors.
        state: Current turn state.
        usage: Token usage summed over every stream so far.
        turn_count: Number of turns started.
        last_result: Result of the most recent stream.
    """

    config: Config
    conversation: ConversationState
    registry: ToolRegistry
    console: Console
    error_console: Console
    state: TurnState = TurnState.AWAIT_INPUT
    usage: TokenUsage = field(default_factory=TokenUsage)
    turn_count: int = 0
    last_result: StreamResult | None = None

    @classmethod
    def create(
        cls,
        config: Config,
        *,
        conversation: ConversationState | None = None,
        registry: ToolRegistry | None = None,
        console: Console | None = None,
        error_console: Console | None = None,
    ) -> TurnContext:
        """Build a context, filling unset collaborators with defaults."""
        return cls(
            config=config,
            conversation=conversation if conversation is not None else ConversationState(),
            registry=registry if registry is not None else default_registry(),
            console=console if console is not None else get_console(),
            error_console=error_console if error_console is not None else get_error_console(),
        )


@dataclass(frozen=True)
class TurnResult:
    """Summary of one completed turn.

    Attributes:
        user_input: Input text after pre-call hooks.
        answer: Answer text of the last stream in the turn.
        tool_results: Results of every tool call dispatched in the turn.
        tool_rounds: Number of follow-up rounds issued.
        error: Transport or stream error message, if the turn failed.
    """

    user_input: str
    answer: str
    tool_results: tuple[ToolResult, ...] = ()
    tool_rounds: int = 0
    error: str | None = None


class TurnPipeline:
    """Runs turns and dispatches hooks at the four extension points.

    Usage::

        ctx = TurnContext.create(config)
        with OpenAIClient(**config.client_kwargs()) as client:
            pipeline = TurnPipeline(ctx, client)
            pipeline.add_default_hooks()
            pipeline.run(LineReader())
    """

    def __init__(
        self,
        ctx: TurnContext,
        transport: ChatTransport,
        *,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        if max_tool_rounds < 0:
            raise ValueError(f"max_tool_rounds must be >= 0, got {max_tool_rounds}")
        self.ctx = ctx
        self._transport = transport
        self._max_tool_rounds = max_tool_rounds
        self._hooks: dict[HookPoint, list[Hook]] = {point: [] for point in HookPoint}
        self._accumulator = ToolCallAccumulator()
        self._reducer = StreamReducer(ctx.console, self._accumulator)

    @property
    def max_tool_rounds(self) -> int:
        return self._max_tool_rounds

    @property
    def accumulator(self) -> ToolCallAccumulator:
        return self._accumulator

    # ------------------------------------------------------------------
    # Hook registration and dispatch
    # ------------------------------------------------------------------

    def add_hook(self, point: HookPoint | str, hook: Hook) -> None:
        """Append ``hook`` to the hooks of ``point``."""
        self._hooks[HookPoint(point)].append(hook)

    def hooks(self, point: HookPoint | str) -> list[Hook]:
        return list(self._hooks[HookPoint(point)])

    def add_default_hooks(self, chain: TransformChain | None = None) -> None:
        """Install the standard hooks.

        Args:
            chain: Transform chain for the command parser; defaults to
                :func:`rag.transforms.default_chain` on the context consoles.
        """
        self.add_hook(HookPoint.PRE_CALL, CommandParser(chain))
        self.add_hook(HookPoint.PRE_CALL, answer_prompt)
        self.add_hook(HookPoint.POST_CALL, log_delta)
        self.add_hook(HookPoint.PRE_NEXT_INPUT, token_report)
        self.add_hook(HookPoint.PRE_NEXT_INPUT, new_line)

    def _invoke(self, point: HookPoint, hook: Hook, *args: Any) -> Any:
        try:
            return hook(*args)
        except Exception as exc:
            raise HookError(hook_name(hook), point.value, exc) from exc

    def _fire(self, point: HookPoint, *args: Any) -> None:
        for hook in self._hooks[point]:
            self._invoke(point, hook, self.ctx, *args)

    def _fire_pre_call(self, text: str) -> str:
        for hook in self._hooks[HookPoint.PRE_CALL]:
            replaced = self._invoke(HookPoint.PRE_CALL, hook, self.ctx, text)
            if replaced is not None:
                text = replaced
        return text

    def _fire_post_call(self, delta: StreamedDelta) -> None:
        self._fire(HookPoint.POST_CALL, delta)

    def _set_state(self, state: TurnState) -> None:
        logger.debug("Turn %d: %s -> %s", self.ctx.turn_count, self.ctx.state, state)
        self.ctx.state = state

    # ------------------------------------------------------------------
    # Turn execution
    # ------------------------------------------------------------------

    def run(self, reader: LineSource) -> None:
        """Read and run turns until the reader reaches end of input.

        Blank lines are skipped. Hook failures propagate as HookError.
        """
        while True:
            self._set_state(TurnState.AWAIT_INPUT)
            self._fire(HookPoint.PRE_INPUT)
            try:
                line = reader.read_line()
            except EOFError:
                logger.debug("End of input")
                return
            if not line.strip():
                continue
            self.run_turn(line.strip())

    def run_turn(self, text: str) -> TurnResult:
        """Run one turn for already-read input text."""
        ctx = self.ctx
        ctx.turn_count += 1
        self._accumulator.clear()

        self._set_state(TurnState.TRANSFORMING)
        text = self._fire_pre_call(text)
        ctx.conversation.add(Role.USER, text)

        tool_results: list[ToolResult] = []
        rounds = 0
        answer = ""
        error: str | None = None
        try:
            result = self._submit(TurnState.STREAMING, on_delta=self._fire_post_call)
            while True:
                answer = result.answer
                calls = self._accumulator.drain()
                if not calls:
                    ctx.conversation.add(Role.ASSISTANT, answer)
                    break
                if rounds >= self._max_tool_rounds:
                    format_warning(
                        f"Warning: Dropping {len(calls)} tool call(s): limit of "
                        f"{self._max_tool_rounds} tool round(s) per turn reached",
                        ctx.error_console,
                    )
                    ctx.conversation.add(Role.ASSISTANT, answer)
                    break

                ctx.conversation.add(
                    Role.ASSISTANT,
                    answer,
                    tool_calls=[call.to_tool_call() for call in calls],
                )
                self._set_state(TurnState.TOOL_DISPATCH)
                for call in calls:
                    tool_result = ctx.registry.dispatch(call)
                    tool_results.append(tool_result)
                    if not tool_result.success:
                        format_warning(f"Warning: {tool_result.error}", ctx.error_console)
                    ctx.conversation.add(
                        Role.TOOL,
                        tool_result.to_content(),
                        tool_call_id=tool_result.tool_call_id,
                    )
                rounds += 1
                write_text(ctx.console, "\n")
                result = self._submit(TurnState.FOLLOWUP_STREAMING)
        except StreamError as exc:
            error = str(exc)
            answer = exc.partial_answer
            self._report_failure(error, answer)
        except (LLMClientError, httpx.HTTPError) as exc:
            error = str(exc)
            answer = ""
            self._report_failure(error, answer)

        self._set_state(TurnState.TURN_COMPLETE)
        self._fire(HookPoint.PRE_NEXT_INPUT)
        self._set_state(TurnState.AWAIT_INPUT)
        return TurnResult(
            user_input=text,
            answer=answer,
            tool_results=tuple(tool_results),
            tool_rounds=rounds,
            error=error,
        )

    def _submit(
        self,
        state: TurnState,
        on_delta: Callable[[StreamedDelta], None] | None = None,
    ) -> StreamResult:
        """Send the conversation snapshot and fold the response stream."""
        ctx = self.ctx
        self._set_state(TurnState.SUBMITTING)
        catalogue = ctx.registry.to_catalogue()
        chunks = self._transport.stream_chat(
            ctx.conversation.to_dicts(),
            model=ctx.config.model,
            tools=catalogue or None,
            tool_choice="auto",
        )
        self._set_state(state)
        result = self._reducer.reduce(chunks, on_delta=on_delta)
        ctx.last_result = result
        if result.usage is not None:
            ctx.usage = ctx.usage + result.usage
        return result

    def _report_failure(self, message: str, partial_answer: str) -> None:
        """Show a transport/stream failure and keep the history alternating."""
        logger.debug("Turn %d failed: %s", self.ctx.turn_count, message)
        self._accumulator.clear()
        write_text(self.ctx.console, "\n")
        format_error(message, self.ctx.error_console)
        self.ctx.conversation.add(Role.ASSISTANT, partial_answer)
