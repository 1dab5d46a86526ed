"""Default hooks installed by ``TurnPipeline.add_default_hooks()``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rag.formatting import format_answer_prompt, format_usage, write_text
from rag.transforms import TransformChain, default_chain

if TYPE_CHECKING:
    from rag.pipeline import TurnContext
    from rag.protocols import StreamedDelta

logger = logging.getLogger(__name__)


class CommandParser:
    """PRE_CALL hook running the input transform chain.

    ``@exit`` raises SystemExit from inside the chain, which ends the
    process without running the remaining hooks.
    """

    def __init__(self, chain: TransformChain | None = None) -> None:
        self.chain = chain

    def __call__(self, ctx: TurnContext, text: str) -> str:
        if self.chain is None:
            self.chain = default_chain(ctx.console, ctx.error_console)
        return self.chain.apply(text)


def answer_prompt(ctx: TurnContext, text: str) -> None:
    """PRE_CALL hook printing the ``🤖 <model>:`` preamble."""
    format_answer_prompt(ctx.config.model, ctx.console)


def log_delta(ctx: TurnContext, delta: StreamedDelta) -> None:
    """POST_CALL hook logging each delta at debug level."""
    logger.debug(
        "delta: content=%d chars, reasoning=%d chars, fragments=%d, finish=%s",
        len(delta.content),
        len(delta.reasoning_content or ""),
        len(delta.tool_call_fragments),
        delta.finish_reason,
    )


def token_report(ctx: TurnContext) -> None:
    """PRE_NEXT_INPUT hook printing cumulative token usage."""
    format_usage(ctx.usage.total_tokens, ctx.console)


def new_line(ctx: TurnContext) -> None:
    """PRE_NEXT_INPUT hook separating turns with a blank line."""
    write_text(ctx.console, "\n")
