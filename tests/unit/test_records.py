"""Tests for the records module."""

import pytest

from cc_history.models import Reasoning, TextUnit, ToolInvocation, ToolResult, UnknownUnit
from cc_history.records import (
    decode_record,
    iter_lines,
    parse_line,
    read_records,
    stream_records,
)


def test_iter_lines_skips_blank_lines(temp_dir):
    """Blank and whitespace-only lines are never yielded."""
    path = temp_dir / "s.jsonl"
    path.write_text('{"type": "user"}\n\n   \n{"type": "assistant"}\n')

    assert list(iter_lines(path)) == ['{"type": "user"}', '{"type": "assistant"}']


def test_iter_lines_missing_file(temp_dir):
    """An unreadable file raises OSError."""
    with pytest.raises(OSError):
        list(iter_lines(temp_dir / "missing.jsonl"))


def test_parse_line_malformed():
    """Invalid JSON and non-object JSON don't produce records."""
    assert parse_line("{not json") is None
    assert parse_line("[1, 2, 3]") is None
    assert parse_line('"just a string"') is None


def test_stream_records_yields_none_for_bad_lines(temp_dir, write_session, record):
    """Each non-blank line yields exactly one item, None if unparsable."""
    path = write_session(temp_dir / "s.jsonl", [record(), "garbage", record("assistant")])

    items = list(stream_records(path))
    assert len(items) == 3
    assert items[1] is None
    assert items[2].type == "assistant"
    assert len(read_records(path)) == 2


def test_decode_bare_string_content(record):
    """A bare string content stays a string and exposes one text unit."""
    rec = decode_record(record("user", "hello"))

    assert rec.content == "hello"
    assert rec.units == (TextUnit("hello"),)
    assert rec.session_id == "test-session-123"
    assert rec.cwd == "/Users/test/Code/project"
    assert rec.role == "user"


def test_decode_content_units(record):
    """Each block type decodes to its own unit; unknown blocks are kept."""
    rec = decode_record(
        record(
            "assistant",
            [
                {"type": "text", "text": "Hi"},
                {"type": "thinking", "thinking": "hmm"},
                {"type": "tool_use", "id": "t1", "name": "Bash", "input": {"command": "ls"}},
                {"type": "tool_result", "tool_use_id": "t1", "content": "file.txt"},
                {"type": "image", "source": {}},
                "bare",
            ],
        )
    )

    assert rec.content == (
        TextUnit("Hi"),
        Reasoning("hmm"),
        ToolInvocation(id="t1", name="Bash", input={"command": "ls"}),
        ToolResult(tool_use_id="t1", content="file.txt"),
        UnknownUnit({"type": "image", "source": {}}),
        TextUnit("bare"),
    )
    assert rec.has_tool_content


def test_decode_malformed_fields():
    """Wrongly typed fields degrade to defaults instead of failing."""
    rec = decode_record(
        {
            "type": "user",
            "sessionId": 42,
            "isMeta": "yes",
            "message": {"content": [{"type": "text", "text": None}], "usage": {"input_tokens": "x"}},
        }
    )

    assert rec.session_id is None
    assert rec.is_meta is False
    assert rec.units == (TextUnit(""),)
    assert rec.usage.input_tokens == 0


def test_decode_meta_and_internal_fields(record):
    rec = decode_record(
        record("user", "hook output", isMeta=True, internalMessageType="hook", gitBranch="main")
    )

    assert rec.is_meta is True
    assert rec.internal_message_type == "hook"
    assert rec.git_branch == "main"


def test_decode_usage(record):
    raw = record("assistant", [])
    raw["message"]["usage"] = {"input_tokens": 10, "output_tokens": 5, "cache_read_input_tokens": 3}

    usage = decode_record(raw).usage
    assert usage.input_tokens == 10
    assert usage.output_tokens == 5
    assert usage.cache_read_input_tokens == 3
    assert usage.cache_creation_input_tokens is None
