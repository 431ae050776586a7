"""Streaming reader and decoder for JSONL session logs."""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from cc_history.models import (
    ContentUnit,
    Reasoning,
    Record,
    TextUnit,
    TokenUsage,
    ToolInvocation,
    ToolResult,
    UnknownUnit,
)

LOG_EXTENSION = ".jsonl"


def iter_lines(path: Path) -> Iterator[str]:
    """Yield the non-blank lines of a log file, one at a time.

    The file is never read fully into memory. Raises OSError if it can't be
    opened or read; bytes that aren't valid UTF-8 are replaced.
    """
    with open(path, encoding="utf-8", errors="replace") as f:
        for line in f:
            line = line.strip()
            if line:
                yield line


def parse_line(line: str) -> Record | None:
    """Parse one line into a Record, or None if it isn't a JSON object."""
    try:
        data = json.loads(line)
    except ValueError:
        # Partial write or corrupted line
        return None
    if not isinstance(data, dict):
        return None
    return decode_record(data)


def stream_records(path: Path) -> Iterator[Record | None]:
    """Yield one item per non-blank line: the Record, or None if unparsable."""
    for line in iter_lines(path):
        yield parse_line(line)


def read_records(path: Path) -> list[Record]:
    """Read every parsable record of a log file, in file order."""
    return [record for record in stream_records(path) if record is not None]


def decode_record(data: dict[str, Any]) -> Record:
    """Decode a raw log object, keeping only the fields we know about."""
    message = data.get("message")
    content = None
    usage = None
    if isinstance(message, dict):
        content = decode_content(message.get("content"))
        usage = decode_usage(message.get("usage"))

    return Record(
        type=_str_or_none(data.get("type")) or "",
        session_id=_str_or_none(data.get("sessionId")),
        timestamp=_str_or_none(data.get("timestamp")),
        cwd=_str_or_none(data.get("cwd")),
        uuid=_str_or_none(data.get("uuid")),
        is_meta=data.get("isMeta") is True,
        internal_message_type=_str_or_none(data.get("internalMessageType")),
        content=content,
        usage=usage,
        git_branch=_str_or_none(data.get("gitBranch")),
        version=_str_or_none(data.get("version")),
        raw=data,
    )


def decode_content(value: Any) -> str | tuple[ContentUnit, ...] | None:
    """Decode `message.content`: a bare string or an array of blocks."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return tuple(decode_unit(item) for item in value)
    return None


def decode_unit(item: Any) -> ContentUnit:
    """Decode a single content block by its `type` field."""
    if isinstance(item, str):
        return TextUnit(item)
    if not isinstance(item, dict):
        return UnknownUnit(item)

    block_type = item.get("type")
    if block_type == "text":
        return TextUnit(_text(item.get("text")))
    if block_type == "tool_use":
        return ToolInvocation(
            id=_str_or_none(item.get("id")),
            name=_text(item.get("name")),
            input=item.get("input"),
        )
    if block_type == "tool_result":
        return ToolResult(
            tool_use_id=_str_or_none(item.get("tool_use_id")),
            content=item.get("content"),
        )
    if block_type == "thinking":
        return Reasoning(_text(item.get("thinking")))
    return UnknownUnit(item)


def decode_usage(value: Any) -> TokenUsage | None:
    if not isinstance(value, dict):
        return None
    return TokenUsage(
        input_tokens=_int(value.get("input_tokens")) or 0,
        output_tokens=_int(value.get("output_tokens")) or 0,
        cache_creation_input_tokens=_int(value.get("cache_creation_input_tokens")),
        cache_read_input_tokens=_int(value.get("cache_read_input_tokens")),
    )


def list_log_files(project_dir: Path) -> list[Path]:
    """Log files of a project directory, sorted by name."""
    return sorted(
        p for p in project_dir.iterdir() if p.is_file() and p.name.endswith(LOG_EXTENSION)
    )


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value
