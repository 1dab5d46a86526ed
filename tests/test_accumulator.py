"""Tests for ToolCallAccumulator and PendingToolCall."""

from __future__ import annotations

import pytest

from rag.exceptions import ArgumentParseError
from rag.protocols import ToolCall, ToolCallFragment
from rag.toolkit.accumulator import PendingToolCall, ToolCallAccumulator


class TestAccumulator:
    def test_reassembles_add_call(self):
        acc = ToolCallAccumulator()
        acc.feed([ToolCallFragment(index=0, name="Add", arguments_fragment='{"a":')])
        acc.feed([ToolCallFragment(index=0, arguments_fragment="3,")])
        acc.feed([ToolCallFragment(index=0, arguments_fragment='"b":5}')])

        (call,) = acc.pending()
        assert call.name == "Add"
        assert call.arguments == '{"a":3,"b":5}'
        assert call.parse_arguments() == {"a": 3, "b": 5}
        assert call.id == "call_0"

    def test_interleaved_indices_ordered_by_index(self):
        acc = ToolCallAccumulator()
        acc.feed([
            ToolCallFragment(index=1, name="Second", arguments_fragment="{"),
            ToolCallFragment(index=0, name="First", arguments_fragment="{"),
        ])
        acc.feed([
            ToolCallFragment(index=0, arguments_fragment="}"),
            ToolCallFragment(index=1, arguments_fragment="}"),
        ])
        assert [(c.index, c.name, c.arguments) for c in acc.pending()] == [
            (0, "First", "{}"),
            (1, "Second", "{}"),
        ]

    def test_remote_id_kept(self):
        acc = ToolCallAccumulator()
        acc.feed_one(ToolCallFragment(index=0, name="Add", id="call_abc"))
        acc.feed_one(ToolCallFragment(index=0, arguments_fragment="{}", id=None))
        assert acc.pending()[0].id == "call_abc"

    def test_unnamed_fragment_for_new_index_ignored(self):
        acc = ToolCallAccumulator()
        acc.feed_one(ToolCallFragment(index=2, arguments_fragment='{"x": 1}'))
        assert len(acc) == 0
        assert not acc

    def test_later_name_does_not_rename(self):
        acc = ToolCallAccumulator()
        acc.feed_one(ToolCallFragment(index=0, name="Add"))
        acc.feed_one(ToolCallFragment(index=0, name="Other", arguments_fragment="{}"))
        assert acc.pending()[0].name == "Add"

    def test_drain_resets(self):
        acc = ToolCallAccumulator()
        acc.feed_one(ToolCallFragment(index=0, name="Add"))
        drained = acc.drain()
        assert len(drained) == 1
        assert acc.pending() == []

    def test_clear(self):
        acc = ToolCallAccumulator()
        acc.feed_one(ToolCallFragment(index=0, name="Add"))
        acc.clear()
        assert len(acc) == 0


class TestPendingToolCall:
    def test_blank_arguments_parse_as_empty_object(self):
        assert PendingToolCall(index=0, name="Ping").parse_arguments() == {}
        assert PendingToolCall(index=0, name="Ping", arguments="  ").parse_arguments() == {}

    def test_incomplete_json_raises(self):
        call = PendingToolCall(index=0, name="Add", arguments='{"a": 3')
        with pytest.raises(ArgumentParseError, match="Invalid arguments for tool Add") as exc_info:
            call.parse_arguments()
        assert exc_info.value.arguments == '{"a": 3'

    def test_to_tool_call(self):
        call = PendingToolCall(index=4, name="Add")
        assert call.to_tool_call() == ToolCall(id="call_4", name="Add", arguments="{}")
