"""Tests for the prompt_toolkit-backed LineReader."""

from __future__ import annotations

import pytest
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from rag.cli.reader import LineReader


@pytest.fixture
def pipe():
    with create_pipe_input() as inp:
        yield inp


class TestLineReader:
    def test_reads_stripped_lines(self, pipe):
        reader = LineReader(False, input=pipe, output=DummyOutput())
        pipe.send_text("  first line  \r")
        assert reader.read_line() == "first line"
        pipe.send_text("second\r")
        assert reader.read_line() == "second"

    def test_ctrl_d_is_eof(self, pipe):
        reader = LineReader(False, input=pipe, output=DummyOutput())
        pipe.send_text("\x04")
        with pytest.raises(EOFError):
            reader.read_line()

    def test_ctrl_c_is_eof(self, pipe):
        reader = LineReader(False, input=pipe, output=DummyOutput())
        pipe.send_text("\x03")
        with pytest.raises(EOFError):
            reader.read_line()

    def test_history_file_written(self, pipe, tmp_path):
        history = tmp_path / "nested" / "history"
        reader = LineReader(history, input=pipe, output=DummyOutput())
        pipe.send_text("remember me\r")
        reader.read_line()
        assert "remember me" in history.read_text(encoding="utf-8")
