"""Tests for input transforms and the transform chain."""

from __future__ import annotations

import sys

import pytest

from rag.transforms import (
    ExitTransform,
    FileTransform,
    ShellTransform,
    TransformChain,
    default_chain,
)
from tests.conftest import console_text, make_console

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX commands")


# ---------------------------------------------------------------------------
# File inclusion
# ---------------------------------------------------------------------------

class TestFileTransform:
    def test_inlines_file_content(self, tmp_path, monkeypatch):
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        result = FileTransform(console=make_console()).apply("What is 2+2? @file(notes.txt)")
        assert result == "What is 2+2? notes.txt: hello"

    def test_multiple_tokens(self, tmp_path):
        a = tmp_path / "a.txt"
        b = tmp_path / "b.txt"
        a.write_text("alpha", encoding="utf-8")
        b.write_text("beta", encoding="utf-8")

        result = FileTransform(console=make_console()).apply(f"@file({a}) and @file({b})")
        assert result == f"{a}: alpha and {b}: beta"

    def test_preserves_exact_content(self, tmp_path):
        body = "line one\n  line two\n\ttabbed ✓\n"
        path = tmp_path / "exact.txt"
        path.write_bytes(body.encode("utf-8"))

        result = FileTransform(console=make_console()).apply(f"@file({path})")
        assert result == f"{path}: {body}"

    def test_idempotent_once_expanded(self, tmp_path):
        path = tmp_path / "n.txt"
        path.write_text("plain text", encoding="utf-8")
        transform = FileTransform(console=make_console())

        once = transform.apply(f"see @file({path})")
        assert transform.apply(once) == once

    def test_missing_file_keeps_token_and_warns(self, tmp_path):
        console = make_console()
        missing = tmp_path / "nope.txt"
        text = f"read @file({missing})"

        assert FileTransform(console=console).apply(text) == text
        assert f"Warning: Failed to read file {missing}" in console_text(console)

    def test_non_utf8_file_keeps_token_and_warns(self, tmp_path):
        console = make_console()
        path = tmp_path / "latin1.txt"
        path.write_bytes(b"\xff\xfe\xfa")
        text = f"@file({path})"

        assert FileTransform(console=console).apply(text) == text
        assert "Failed to read file" in console_text(console)

    def test_disabled_is_identity(self, tmp_path):
        path = tmp_path / "n.txt"
        path.write_text("x", encoding="utf-8")
        text = f"@file({path})"
        assert FileTransform(enabled=False, console=make_console()).apply(text) == text


# ---------------------------------------------------------------------------
# Shell substitution
# ---------------------------------------------------------------------------

@posix_only
class TestShellTransform:
    def test_substitutes_stdout(self):
        result = ShellTransform(console=make_console()).apply("files: @`echo hi`")
        assert result == "files: hi\n"

    def test_each_token_runs_separately(self):
        result = ShellTransform(console=make_console()).apply("@`echo a` @`echo b`")
        assert result == "a\n b\n"

    def test_failing_command_keeps_token_and_warns(self):
        console = make_console()
        text = "status @`sh -c 'echo boom >&2; exit 3'`"

        assert ShellTransform(console=console).apply(text) == text
        output = console_text(console)
        assert "Command failed with exit code 3" in output
        assert "boom" in output

    def test_missing_program_keeps_token_and_warns(self):
        console = make_console()
        text = "@`definitely-not-a-real-program-xyz`"

        assert ShellTransform(console=console).apply(text) == text
        assert "Failed to run command" in console_text(console)

    def test_unbalanced_quotes_keep_token(self):
        console = make_console()
        text = "@`echo 'oops`"
        assert ShellTransform(console=console).apply(text) == text
        assert "Failed to run command" in console_text(console)


# ---------------------------------------------------------------------------
# Exit
# ---------------------------------------------------------------------------

class TestExitTransform:
    def test_exit_says_bye_and_exits(self):
        console = make_console()
        with pytest.raises(SystemExit) as exc_info:
            ExitTransform(console=console).apply("@exit now")
        assert exc_info.value.code == 0
        assert "bye" in console_text(console)

    def test_only_matches_at_start(self):
        transform = ExitTransform(console=make_console())
        assert transform.apply("please @exit") == "please @exit"


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------

class TestTransformChain:
    def test_default_order(self):
        chain = default_chain(make_console(), make_console())
        assert chain.names() == ["exit", "file", "shell"]
        assert len(chain) == 3

    def test_plain_text_unchanged(self):
        chain = default_chain(make_console(), make_console())
        assert chain.apply("just a question") == "just a question"

    def test_transforms_apply_in_sequence(self, tmp_path):
        path = tmp_path / "cmd.txt"
        path.write_text("contents", encoding="utf-8")
        chain = default_chain(make_console(), make_console())
        chain.disable("shell")

        assert chain.apply(f"@file({path})") == f"{path}: contents"

    def test_enable_disable(self, tmp_path):
        path = tmp_path / "n.txt"
        path.write_text("x", encoding="utf-8")
        chain = default_chain(make_console(), make_console())

        chain.disable("file")
        assert chain.apply(f"@file({path})") == f"@file({path})"
        chain.enable("file")
        assert chain.apply(f"@file({path})") == f"{path}: x"

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            TransformChain().get("nope")

    def test_register_appends(self):
        chain = TransformChain()
        chain.register(FileTransform(console=make_console()))
        assert chain.names() == ["file"]
