"""Rich formatting helpers for rag terminal output.

Provides the consoles and the small set of styled lines the agent prints.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.text import Text

if TYPE_CHECKING:
    from pathlib import Path

    from rag.models.config import Config

REASONING_STYLE = "rgb(128,138,135)"
WARNING_STYLE = "yellow"

INPUT_PROMPT = "🚀 ^D: "


def get_console() -> Console:
    """Create a Rich Console for model output."""
    return Console(stderr=False, soft_wrap=True)


def get_error_console() -> Console:
    """Create a Rich Console writing to stderr for warnings and errors."""
    return Console(stderr=True, soft_wrap=True)


def write_text(console: Console, text: str, style: str | None = None) -> None:
    """Write streamed text verbatim: no markup, highlighting or newline."""
    console.print(Text(text, style=style or ""), end="", soft_wrap=True, highlight=False)


def format_reasoning(text: str, console: Console) -> None:
    """Write a piece of reasoning content in the muted reasoning style."""
    write_text(console, text, REASONING_STYLE)


def format_answer_prompt(model: str, console: Console) -> None:
    """Print the preamble shown before the assistant's answer."""
    write_text(console, f"🤖 {model}: ")


def format_usage(total_tokens: int, console: Console) -> None:
    """Print the cumulative token usage report."""
    write_text(console, f"\ntoken usage: {total_tokens}", REASONING_STYLE)


def format_farewell(console: Console) -> None:
    console.print("bye", style=WARNING_STYLE, highlight=False)


def format_warning(message: str, console: Console) -> None:
    """Display a non-fatal warning."""
    console.print(Text(message, style=WARNING_STYLE), highlight=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def format_missing_config(path: Path, config: Config, console: Console) -> None:
    """Explain that a default config file was created."""
    console.print(
        Text(f"Cannot find config file, using default config and creating: {path}", style="red"),
        highlight=False,
    )
    format_warning(f"    base_url: {config.base_url}", console)
    format_warning(f"    model: {config.model}", console)
    format_warning(f"    api_key: {config.api_key or '<unset>'}", console)
