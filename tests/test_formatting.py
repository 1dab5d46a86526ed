"""Tests for rich output helpers and the default hooks that use them."""

from __future__ import annotations

from rag.formatting import (
    format_answer_prompt,
    format_error,
    format_missing_config,
    format_usage,
    format_warning,
    write_text,
)
from rag.hooks import CommandParser, answer_prompt, new_line, token_report
from rag.models.config import Config
from rag.protocols import TokenUsage
from rag.transforms import FileTransform, TransformChain
from tests.conftest import console_text, make_console


class TestFormatting:
    def test_write_text_is_verbatim(self):
        console = make_console()
        write_text(console, "[bold]not markup[/bold]")
        write_text(console, " and more")
        assert console_text(console) == "[bold]not markup[/bold] and more"

    def test_answer_prompt(self):
        console = make_console()
        format_answer_prompt("deepseek-r1", console)
        assert console_text(console) == "🤖 deepseek-r1: "

    def test_usage(self):
        console = make_console()
        format_usage(42, console)
        assert console_text(console) == "\ntoken usage: 42"

    def test_error_escapes_markup(self):
        console = make_console()
        format_error("bad [value]", console)
        assert console_text(console) == "Error: bad [value]\n"

    def test_warning(self):
        console = make_console()
        format_warning("careful", console)
        assert console_text(console) == "careful\n"

    def test_missing_config(self, tmp_path):
        console = make_console()
        format_missing_config(tmp_path / "rag.json", Config(), console)
        output = console_text(console)
        assert "Cannot find config file" in output
        assert "model: deepseek-r1-250120" in output
        assert "api_key: <unset>" in output


class TestBuiltinHooks:
    def test_answer_prompt_uses_model(self, turn_ctx, console):
        assert answer_prompt(turn_ctx, "q") is None
        assert console_text(console) == "🤖 test-model: "

    def test_token_report_and_new_line(self, turn_ctx, console):
        turn_ctx.usage = TokenUsage(3, 4, 7)
        token_report(turn_ctx)
        new_line(turn_ctx)
        assert console_text(console) == "\ntoken usage: 7\n"

    def test_command_parser_with_custom_chain(self, turn_ctx, tmp_path):
        path = tmp_path / "n.txt"
        path.write_text("data", encoding="utf-8")
        parser = CommandParser(TransformChain([FileTransform(console=make_console())]))
        assert parser(turn_ctx, f"@file({path})") == f"{path}: data"

    def test_command_parser_builds_default_chain(self, turn_ctx):
        parser = CommandParser()
        assert parser(turn_ctx, "plain") == "plain"
        assert parser.chain.names() == ["exit", "file", "shell"]
