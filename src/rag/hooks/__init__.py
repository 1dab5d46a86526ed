"""Turn life-cycle hooks for rag.

Public API:
    HookPoint        -- the four extension points of a turn
    CommandParser    -- PRE_CALL hook applying the input transform chain
    answer_prompt    -- PRE_CALL hook printing the answer preamble
    log_delta        -- POST_CALL hook logging deltas
    token_report     -- PRE_NEXT_INPUT hook printing token usage
    new_line         -- PRE_NEXT_INPUT hook spacing turns
"""

from rag.hooks.builtin import CommandParser, answer_prompt, log_delta, new_line, token_report
from rag.hooks.points import (
    Hook,
    HookPoint,
    PostCallHook,
    PreCallHook,
    PreInputHook,
    PreNextInputHook,
    hook_name,
)

__all__ = [
    "Hook",
    "HookPoint",
    "PreInputHook",
    "PreCallHook",
    "PostCallHook",
    "PreNextInputHook",
    "hook_name",
    "CommandParser",
    "answer_prompt",
    "log_delta",
    "token_report",
    "new_line",
]
