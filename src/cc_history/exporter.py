"""Export a session transcript as Markdown or JSON."""

import json
import logging
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cc_history.models import ExportOptions, ExportResult, Record, TextUnit, ToolInvocation, ToolResult

logger = logging.getLogger(__name__)

FORMATS = ("markdown", "json")
FORMAT_EXTENSIONS = {"markdown": "md", "json": "json"}
EXPORT_CANCELLED = "Export cancelled"


def format_timestamp(timestamp: str | None) -> str:
    """Format an ISO-8601 timestamp in local time, or return it unchanged."""
    if not timestamp:
        return ""
    try:
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _payload_json(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def flatten_content(record: Record) -> str:
    """Record content as plain text, with tool calls as fenced blocks."""
    if isinstance(record.content, str):
        return record.content

    parts = []
    for unit in record.units:
        if isinstance(unit, TextUnit):
            parts.append(unit.text)
        elif isinstance(unit, ToolInvocation):
            parts.append(f"[Tool Use: {unit.name}]\n```json\n{_payload_json(unit.input)}\n```")
        elif isinstance(unit, ToolResult):
            parts.append(f"[Tool Result]\n```\n{_payload_json(unit.content)}\n```")
    return "\n\n".join(p for p in parts if p)


def include_record(record: Record, options: ExportOptions) -> bool:
    """Whether a record survives the export filter."""
    return options.include_tool_calls or not record.has_tool_content


def render_markdown(
    records: Iterable[Record],
    title: str,
    options: ExportOptions,
    now: datetime | None = None,
) -> str:
    """Render records as a Markdown transcript."""
    now = now or datetime.now(tz=timezone.utc)
    lines = [
        f"# {title}",
        "",
        f"> Exported on {now.astimezone().strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "---",
        "",
    ]

    for record in records:
        if not include_record(record, options):
            continue

        role = record.role.title()
        timestamp = f" ({format_timestamp(record.timestamp)})" if options.include_timestamps else ""
        lines.extend([f"## {role}{timestamp}", ""])

        content = flatten_content(record)
        if content:
            lines.extend([content, ""])

        lines.extend(["---", ""])

    return "\n".join(lines)


def build_json_document(
    records: Iterable[Record],
    title: str,
    options: ExportOptions,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the JSON export document."""
    now = now or datetime.now(tz=timezone.utc)
    kept = [r for r in records if include_record(r, options)]

    messages = []
    for record in kept:
        message: dict[str, Any] = {
            "type": record.type,
            "timestamp": record.timestamp,
            "content": flatten_content(record),
        }
        if options.include_timestamps:
            message["formattedTime"] = format_timestamp(record.timestamp)
        messages.append(message)

    return {
        "title": title,
        "exportedAt": now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        "messageCount": len(kept),
        "messages": messages,
    }


def render_json(
    records: Iterable[Record],
    title: str,
    options: ExportOptions,
    now: datetime | None = None,
) -> str:
    """Render records as an indented JSON document."""
    return json.dumps(build_json_document(records, title, options, now), indent=2, ensure_ascii=False)


def export_transcript(
    records: Iterable[Record],
    title: str,
    options: ExportOptions,
    now: datetime | None = None,
) -> ExportResult:
    """Serialize a transcript. Never raises; failures come back in the result."""
    if options.format not in FORMATS:
        return ExportResult(success=False, error=f"Unsupported export format: {options.format}")

    records = list(records)
    try:
        if options.format == "markdown":
            content = render_markdown(records, title, options, now)
        else:
            content = render_json(records, title, options, now)
    except Exception as e:
        logger.exception("Failed to serialize transcript %r", title)
        return ExportResult(success=False, error=str(e) or "Unknown error")

    message_count = sum(1 for r in records if include_record(r, options))
    return ExportResult(success=True, content=content, message_count=message_count)


def default_export_filename(title: str, export_format: str) -> str:
    """File name for an export: the first 50 chars of the title, made safe."""
    safe = re.sub(r'[/\\?%*:|"<>]', "-", title[:50])
    return f"{safe}.{FORMAT_EXTENSIONS.get(export_format, export_format)}"


def write_export(result: ExportResult, destination: Path | None) -> ExportResult:
    """Write a successful export to `destination`.

    A None destination means the user cancelled the file picker.
    """
    if not result.success:
        return result
    if destination is None:
        return ExportResult(success=False, error=EXPORT_CANCELLED)

    try:
        destination.write_text(result.content or "", encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to write export to %s: %s", destination, e)
        return ExportResult(success=False, error=str(e))

    return ExportResult(
        success=True,
        content=result.content,
        message_count=result.message_count,
        file_path=str(destination),
    )
