"""Input transforms applied to raw user input before it is sent.

Each transform is regex-driven and can be toggled on or off. A
TransformChain applies its transforms in registration order, each one
receiving the text produced by the previous one.

Built-in transforms:
    ExitTransform   -- ``@exit`` prints a farewell and exits the process
    FileTransform   -- ``@file(path)`` becomes ``path: <file contents>``
    ShellTransform  -- ``@`cmd` `` becomes the command's standard output
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from rag.formatting import format_farewell, format_warning, get_console, get_error_console
from rag.shell import run_command

if TYPE_CHECKING:
    from rich.console import Console

logger = logging.getLogger(__name__)


class Transform:
    """Base class for input transforms.

    Subclasses set ``name`` and ``pattern`` and implement :meth:`rewrite`.
    """

    name: str = ""
    pattern: re.Pattern[str]

    def __init__(self, *, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console if console is not None else get_error_console()

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def apply(self, text: str) -> str:
        """Rewrite ``text`` if this transform is enabled and matches."""
        if not self.enabled or not self.matches(text):
            return text
        return self.rewrite(text)

    def rewrite(self, text: str) -> str:
        raise NotImplementedError

    def warn(self, message: str) -> None:
        logger.debug("%s: %s", self.name, message)
        format_warning(message, self._console)

    def __repr__(self) -> str:
        state = "on" if self.enabled else "off"
        return f"<{type(self).__name__} {self.name} ({state})>"


class ExitTransform(Transform):
    """Terminate the process when input starts with ``@exit``."""

    name = "exit"
    pattern = re.compile(r"^@exit")

    def __init__(self, *, enabled: bool = True, console: Console | None = None) -> None:
        super().__init__(enabled=enabled, console=console if console is not None else get_console())

    def rewrite(self, text: str) -> str:
        format_farewell(self._console)
        raise SystemExit(0)


class FileTransform(Transform):
    """Inline file contents for every ``@file(path)`` token."""

    name = "file"
    pattern = re.compile(r"@file\((?P<path>[^)]+)\)")

    def rewrite(self, text: str) -> str:
        return self.pattern.sub(self._substitute, text)

    def _substitute(self, match: re.Match[str]) -> str:
        path = match.group("path")
        try:
            content = Path(path).read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.warn(f"Warning: Failed to read file {path}: {exc}")
            return match.group(0)
        return f"{path}: {content}"


class ShellTransform(Transform):
    """Substitute the standard output of every ``@`command` `` token."""

    name = "shell"
    pattern = re.compile(r"@`(?P<command>[^`]+)`")

    def __init__(
        self,
        *,
        enabled: bool = True,
        console: Console | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(enabled=enabled, console=console)
        self.timeout = timeout

    def rewrite(self, text: str) -> str:
        return self.pattern.sub(self._substitute, text)

    def _substitute(self, match: re.Match[str]) -> str:
        command = match.group("command")
        try:
            output = run_command(command, timeout=self.timeout)
        except (OSError, ValueError) as exc:
            self.warn(f"Warning: Failed to run command {command}: {exc}")
            return match.group(0)
        if not output.ok:
            self.warn(
                f"Warning: Command failed with exit code {output.returncode}: {output.stderr}"
            )
            return match.group(0)
        return output.stdout


class TransformChain:
    """Ordered transforms applied one after another.

    Usage::

        chain = default_chain()
        text = chain.apply("summarize @file(notes.txt)")
    """

    def __init__(self, transforms: list[Transform] | None = None) -> None:
        self._transforms: list[Transform] = list(transforms or [])

    def register(self, transform: Transform) -> None:
        self._transforms.append(transform)

    def apply(self, text: str) -> str:
        for transform in self._transforms:
            text = transform.apply(text)
        return text

    def get(self, name: str) -> Transform:
        for transform in self._transforms:
            if transform.name == name:
                return transform
        raise KeyError(f"No transform named {name!r}")

    def enable(self, name: str) -> None:
        self.get(name).enabled = True

    def disable(self, name: str) -> None:
        self.get(name).enabled = False

    def names(self) -> list[str]:
        return [t.name for t in self._transforms]

    def __len__(self) -> int:
        return len(self._transforms)


def default_chain(
    console: Console | None = None,
    error_console: Console | None = None,
) -> TransformChain:
    """Exit, file-inclusion and shell-substitution transforms, in that order."""
    return TransformChain([
        ExitTransform(console=console),
        FileTransform(console=error_console),
        ShellTransform(console=error_console),
    ])
