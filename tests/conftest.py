"""Shared test fixtures for rag.

Provides captured rich consoles, a scripted chat transport, and a line
source that replays canned input.
"""

from __future__ import annotations

import io
from collections.abc import Iterator

import pytest
from rich.console import Console

from rag.models.config import Config
from rag.pipeline import TurnContext
from rag.conversation import ConversationState
from rag.toolkit.definitions import default_registry


def make_console() -> Console:
    """Console writing plain text to an in-memory buffer."""
    return Console(file=io.StringIO(), force_terminal=False, color_system=None, width=200, soft_wrap=True)


def console_text(console: Console) -> str:
    return console.file.getvalue()


def content_chunk(content: str = "", reasoning: str | None = None, finish_reason: str | None = None) -> dict:
    """Build one ``chat.completion.chunk`` carrying content/reasoning."""
    delta: dict = {"content": content}
    if reasoning is not None:
        delta["reasoning_content"] = reasoning
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


def tool_chunk(index: int, name: str | None = None, arguments: str | None = None, call_id: str | None = None) -> dict:
    """Build one chunk carrying a single tool-call fragment."""
    fragment: dict = {"index": index, "function": {}}
    if call_id is not None:
        fragment["id"] = call_id
        fragment["type"] = "function"
    if name is not None:
        fragment["function"]["name"] = name
    if arguments is not None:
        fragment["function"]["arguments"] = arguments
    return {
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": {"tool_calls": [fragment]}, "finish_reason": None}],
    }


def usage_chunk(prompt: int, completion: int) -> dict:
    """Final usage-only chunk (empty choices)."""
    return {
        "object": "chat.completion.chunk",
        "choices": [],
        "usage": {
            "prompt_tokens": prompt,
            "completion_tokens": completion,
            "total_tokens": prompt + completion,
        },
    }


class ScriptedTransport:
    """ChatTransport that replays one scripted chunk list per request.

    A script entry that is an exception instance is raised when the stream
    is consumed, after any preceding chunks in a list entry.
    """

    def __init__(self, *scripts: list | BaseException) -> None:
        self.scripts = list(scripts)
        self.requests: list[dict] = []

    def stream_chat(self, messages, *, model=None, tools=None, tool_choice="auto", **kwargs) -> Iterator[dict]:
        self.requests.append({
            "messages": [dict(m) for m in messages],
            "model": model,
            "tools": tools,
            "tool_choice": tool_choice,
        })
        script = self.scripts.pop(0) if self.scripts else []
        return self._replay(script)

    @staticmethod
    def _replay(script) -> Iterator[dict]:
        if isinstance(script, BaseException):
            raise script
        for item in script:
            if isinstance(item, BaseException):
                raise item
            yield item

    def close(self) -> None:
        pass


class ScriptedReader:
    """Line source replaying canned lines, then EOF."""

    def __init__(self, *lines: str) -> None:
        self.lines = list(lines)

    def read_line(self) -> str:
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


@pytest.fixture
def console() -> Console:
    return make_console()


@pytest.fixture
def error_console() -> Console:
    return make_console()


@pytest.fixture
def config() -> Config:
    return Config(base_url="http://test-api", api_key="test-key", model="test-model")


@pytest.fixture
def turn_ctx(config, console, error_console) -> TurnContext:
    return TurnContext.create(
        config,
        conversation=ConversationState(capacity=10),
        registry=default_registry(),
        console=console,
        error_console=error_console,
    )


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's real config and env overrides."""
    monkeypatch.setenv("RAG_CONFIG", str(tmp_path / "rag.json"))
    for var in ("RAG_API_KEY", "RAG_BASE_URL", "RAG_MODEL"):
        monkeypatch.delenv(var, raising=False)
