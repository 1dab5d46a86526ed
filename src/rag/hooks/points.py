"""Hook points of the turn life cycle and the callable shapes they accept.

Each point holds an ordered list of plain callables, invoked in
registration order:

    PRE_INPUT(ctx)                 -- before reading a line; side effects only
    PRE_CALL(ctx, text) -> str?    -- may return replacement input text
    POST_CALL(ctx, delta)          -- once per delta of the first stream
    PRE_NEXT_INPUT(ctx)            -- after the turn completes
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from rag.pipeline import TurnContext
    from rag.protocols import StreamedDelta


class HookPoint(str, enum.Enum):
    """Extension points, in the order they fire during a turn."""

    PRE_INPUT = "pre_input"
    PRE_CALL = "pre_call"
    POST_CALL = "post_call"
    PRE_NEXT_INPUT = "pre_next_input"

    def __str__(self) -> str:
        return self.value


PreInputHook = Callable[["TurnContext"], None]
PreCallHook = Callable[["TurnContext", str], Optional[str]]
PostCallHook = Callable[["TurnContext", "StreamedDelta"], None]
PreNextInputHook = Callable[["TurnContext"], None]

Hook = Union[PreInputHook, PreCallHook, PostCallHook, PreNextInputHook]


def hook_name(hook: object) -> str:
    """Display name of a hook for diagnostics."""
    name = getattr(hook, "__name__", None)
    if name is None:
        name = type(hook).__name__
    return name
