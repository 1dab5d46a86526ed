"""Run a command line and decode its output.

Shared by the shell-substitution input transform and the ExecuteCommand
tool.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Legacy regional encoding tried when output is not UTF-8.
FALLBACK_ENCODING = "gbk"


@dataclass(frozen=True)
class CommandOutput:
    """Captured result of a finished command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def decode_output(data: bytes) -> str:
    """Decode command output as UTF-8, falling back to GBK.

    Never raises: bytes invalid in both encodings are replaced.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode(FALLBACK_ENCODING, errors="replace")


def split_command(command: str) -> list[str]:
    """Split a command line into argv, using ``cmd /C`` on Windows.

    Raises:
        ValueError: If the command is empty or its quoting is unbalanced.
    """
    if sys.platform == "win32":
        return ["cmd", "/C", command]
    argv = shlex.split(command)
    if not argv:
        raise ValueError("empty command")
    return argv


def run_command(command: str, *, timeout: float | None = None) -> CommandOutput:
    """Run ``command`` without a shell and capture its output.

    Raises:
        ValueError: If the command line cannot be parsed.
        OSError: If the program cannot be started.
        subprocess.TimeoutExpired: If ``timeout`` elapses.
    """
    argv = split_command(command)
    logger.debug("Running command: %s", argv)
    completed = subprocess.run(argv, capture_output=True, timeout=timeout, check=False)
    return CommandOutput(
        returncode=completed.returncode,
        stdout=decode_output(completed.stdout),
        stderr=decode_output(completed.stderr),
    )
