"""Interactive line reader backed by prompt_toolkit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import PathCompleter
from prompt_toolkit.history import FileHistory, History, InMemoryHistory

from rag.formatting import INPUT_PROMPT
from rag.models.config import config_dir

if TYPE_CHECKING:
    from prompt_toolkit.input import Input
    from prompt_toolkit.output import Output

logger = logging.getLogger(__name__)

HISTORY_FILE_NAME = "history"


def default_history_path() -> Path:
    return config_dir() / HISTORY_FILE_NAME


class LineReader:
    """Reads one line per call with persistent history and path completion.

    ``read_line`` raises EOFError on ^D and also on ^C, so either ends the
    session cleanly.

    Args:
        history_path: File for persistent history. ``None`` uses the
            default location; ``False`` keeps history in memory only.
        prompt: Prompt text shown before each line.
        input: prompt_toolkit input (tests pass a pipe input).
        output: prompt_toolkit output.
    """

    def __init__(
        self,
        history_path: Path | str | None | bool = None,
        *,
        prompt: str = INPUT_PROMPT,
        input: Input | None = None,
        output: Output | None = None,
    ) -> None:
        self.prompt = prompt
        self._session: PromptSession[str] = PromptSession(
            history=self._open_history(history_path),
            enable_history_search=True,
            completer=PathCompleter(expanduser=True),
            complete_while_typing=False,
            input=input,
            output=output,
        )

    @staticmethod
    def _open_history(history_path: Path | str | None | bool) -> History:
        if history_path is False:
            return InMemoryHistory()
        path = default_history_path() if history_path in (None, True) else Path(history_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Cannot use history file %s: %s", path, exc)
            return InMemoryHistory()
        return FileHistory(str(path))

    def read_line(self) -> str:
        try:
            return self._session.prompt(self.prompt).strip()
        except KeyboardInterrupt:
            raise EOFError from None
