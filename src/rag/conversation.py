"""Bounded conversation history.

ConversationState keeps an optional leading system message plus at most
``capacity`` further messages. When full, the oldest exchange is evicted
as a unit so the remaining history always starts at a user message and
never separates a tool-calling assistant message from its tool results.
A turn that alone outgrows ``capacity`` is kept whole until the next user
message evicts it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from rag.protocols import Message, Role, ToolCall

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
DEFAULT_SYSTEM_PROMPT = (
    "You are an expert in the field of the questions I asked and you gave "
    "comprehensive and insightful answers."
)


class ConversationState:
    """Ordered, bounded message history with pair-wise eviction.

    ``capacity`` counts the messages after the leading system message.
    Eviction happens before an append that would exceed it and removes
    the oldest exchange: a user message and every following non-user
    message up to the next user message. For plain chat that is exactly
    one user/assistant pair.

    Not thread-safe; owned by the turn loop.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        system_prompt: str | None = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        if capacity < 2:
            raise ValueError(f"capacity must be at least 2, got {capacity}")
        self._capacity = capacity
        self._messages: list[Message] = []
        if system_prompt is not None:
            self._messages.append(Message(role=Role.SYSTEM, content=system_prompt))

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def system_message(self) -> Message | None:
        if self._has_system():
            return self._messages[0]
        return None

    def _has_system(self) -> bool:
        return bool(self._messages) and self._messages[0].role is Role.SYSTEM

    def _history_start(self) -> int:
        return 1 if self._has_system() else 0

    def history_len(self) -> int:
        """Number of messages subject to eviction."""
        return len(self._messages) - self._history_start()

    def add(
        self,
        role: Role | str,
        content: str,
        *,
        tool_call_id: str | None = None,
        tool_calls: Iterable[ToolCall] = (),
    ) -> Message:
        """Create and append a message. Never fails for valid roles."""
        message = Message(
            role=Role(role),
            content=content,
            tool_call_id=tool_call_id,
            tool_calls=tuple(tool_calls),
        )
        self.append(message)
        return message

    def append(self, message: Message) -> None:
        while self.history_len() >= self._capacity:
            if not self._evict(message):
                break
        self._messages.append(message)

    def _evict(self, incoming: Message) -> bool:
        """Remove the oldest exchange unit.

        Returns False when the only unit left is the turn still being built
        and ``incoming`` continues it. The history then overflows until the
        next user message closes the turn.
        """
        start = self._history_start()
        end = start + 1
        while end < len(self._messages) and self._messages[end].role is not Role.USER:
            end += 1
        if end >= len(self._messages) and incoming.role is not Role.USER:
            logger.debug(
                "Conversation over capacity (%d/%d) until the current turn ends",
                self.history_len() + 1,
                self._capacity,
            )
            return False
        logger.debug("Evicting %d message(s) from conversation", end - start)
        del self._messages[start:end]
        return True

    def snapshot(self) -> tuple[Message, ...]:
        """The full history in insertion order."""
        return tuple(self._messages)

    def to_dicts(self) -> list[dict]:
        """The history as wire dicts for a chat-completion request."""
        return [m.to_dict() for m in self._messages]

    def clear(self) -> None:
        """Drop every message except the leading system message."""
        del self._messages[self._history_start():]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"<ConversationState: {len(self._messages)} messages, capacity {self._capacity}>"
