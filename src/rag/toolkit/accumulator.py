"""Reassemble streamed tool-call fragments into complete invocations.

OpenAI-compatible providers send tool calls as incremental fragments:
each fragment carries the remote ``index`` of its slot, a ``function.name``
(first fragment only) and ``function.arguments`` pieces that must be
concatenated in arrival order.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from rag.exceptions import ArgumentParseError
from rag.protocols import ToolCall, ToolCallFragment

logger = logging.getLogger(__name__)


@dataclass
class PendingToolCall:
    """A tool call being accumulated for one stream.

    Attributes:
        index: Remote-assigned slot.
        name: Tool name from the slot's first named fragment.
        arguments: Argument JSON text accumulated so far.
        id: Remote tool-call id, or ``call_<index>`` when none was sent.
    """

    index: int
    name: str
    arguments: str = ""
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"call_{self.index}"

    def parse_arguments(self) -> Any:
        """Parse the accumulated argument text.

        Blank text parses as an empty object; some providers send no
        argument fragments for parameterless tools.

        Raises:
            ArgumentParseError: If the text is not a complete JSON value.
        """
        if not self.arguments.strip():
            return {}
        try:
            return json.loads(self.arguments)
        except json.JSONDecodeError as exc:
            raise ArgumentParseError(self.name, self.arguments, str(exc)) from exc

    def to_tool_call(self) -> ToolCall:
        """Freeze into the ToolCall recorded on the assistant message."""
        return ToolCall(id=self.id, name=self.name, arguments=self.arguments or "{}")


class ToolCallAccumulator:
    """Index-keyed accumulator for one stream's tool-call fragments.

    Usage::

        acc = ToolCallAccumulator()
        for delta in deltas:
            acc.feed(delta.tool_call_fragments)
        for call in acc.drain():
            registry.dispatch(call)
    """

    def __init__(self) -> None:
        self._calls: dict[int, PendingToolCall] = {}

    def feed(self, fragments: Iterable[ToolCallFragment]) -> None:
        """Fold fragments from one delta, in order."""
        for fragment in fragments:
            self.feed_one(fragment)

    def feed_one(self, fragment: ToolCallFragment) -> None:
        call = self._calls.get(fragment.index)
        if call is None:
            if not fragment.name:
                logger.debug(
                    "Ignoring fragment for unseen tool-call index %d without a name",
                    fragment.index,
                )
                return
            call = PendingToolCall(
                index=fragment.index,
                name=fragment.name,
                id=fragment.id or "",
            )
            self._calls[fragment.index] = call
        if fragment.arguments_fragment:
            call.arguments += fragment.arguments_fragment

    def pending(self) -> list[PendingToolCall]:
        """Accumulated calls ordered by index."""
        return [self._calls[idx] for idx in sorted(self._calls)]

    def drain(self) -> list[PendingToolCall]:
        """Return the accumulated calls and reset for the next stream."""
        calls = self.pending()
        self._calls.clear()
        return calls

    def clear(self) -> None:
        self._calls.clear()

    def __len__(self) -> int:
        return len(self._calls)

    def __bool__(self) -> bool:
        return bool(self._calls)
