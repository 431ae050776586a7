"""Resolve a session's records into render-ready message views.

Tool results usually arrive in the record *after* the assistant's tool call.
The resolver pairs each invocation with its result (from the same record if
possible, otherwise from anywhere in the session) and hides result-only
records whose results are already shown next to their invocation.
"""

import json
import re
from collections.abc import Iterable
from typing import Any

from cc_history.models import (
    MessageTag,
    Reasoning,
    Record,
    ResolvedMessageView,
    TextBlock,
    TextSpan,
    TextUnit,
    ToolBlock,
    ToolInvocation,
    ToolResult,
)
from cc_history.tool_params import extract_key_parameter

ToolCorrelationMap = dict[str, ToolResult]

CODE_FENCE_PATTERN = re.compile(r"```(\w+)?\n([\s\S]*?)```")

# Collapsed by default to keep tool chatter out of the way
BACKGROUND_TAGS = frozenset(
    {
        MessageTag.HOOK,
        MessageTag.TOOL,
        MessageTag.TOOL_RESULT,
        MessageTag.INTERNAL,
        MessageTag.THINKING,
    }
)


def split_code_fences(text: str) -> list[TextSpan]:
    """Split text into plain spans and ```lang fenced code spans.

    Whitespace-only text between fences is dropped.
    """
    spans: list[TextSpan] = []
    last_index = 0

    for match in CODE_FENCE_PATTERN.finditer(text):
        before = text[last_index : match.start()]
        if before.strip():
            spans.append(TextSpan(kind="text", content=before))
        spans.append(TextSpan(kind="code", content=match.group(2), language=match.group(1)))
        last_index = match.end()

    remaining = text[last_index:]
    if remaining.strip():
        spans.append(TextSpan(kind="text", content=remaining))

    return spans


def build_correlation_map(records: Iterable[Record]) -> ToolCorrelationMap:
    """Map tool_use_id -> first result seen for it anywhere in the session."""
    correlation: ToolCorrelationMap = {}
    for record in records:
        for unit in record.units:
            if isinstance(unit, ToolResult) and unit.tool_use_id:
                correlation.setdefault(unit.tool_use_id, unit)
    return correlation


def paired_tool_ids(records: Iterable[Record], correlation: ToolCorrelationMap) -> set[str]:
    """Ids of invocations whose result exists somewhere in the session."""
    return {
        unit.id
        for record in records
        for unit in record.units
        if isinstance(unit, ToolInvocation) and unit.id and unit.id in correlation
    }


def classify(record: Record, content_tag: MessageTag | None) -> MessageTag:
    """Pick the message tag. The first matching rule wins:

    1. meta records are internal
    2. hook output is a hook, any other internal message type is internal
    3. the kind of the last tool call, tool result or thinking block shown
    4. user or assistant, from the record type
    """
    if record.is_meta:
        return MessageTag.INTERNAL
    if record.internal_message_type == "hook":
        return MessageTag.HOOK
    if record.internal_message_type:
        return MessageTag.INTERNAL
    if content_tag is not None:
        return content_tag
    return MessageTag.USER if record.type == "user" else MessageTag.ASSISTANT


def is_background(record: Record, tag: MessageTag, tool_blocks: list[ToolBlock]) -> bool:
    return record.is_meta or bool(tool_blocks) or tag in BACKGROUND_TAGS


def resolve_message(
    record: Record,
    correlation: ToolCorrelationMap | None = None,
    paired_ids: set[str] | None = None,
) -> ResolvedMessageView:
    """Resolve one record's content units into text, tool and thinking blocks.

    Args:
        record: The record to resolve.
        correlation: Results from the whole session, for invocations whose
            result lives in another record.
        paired_ids: Invocation ids that are shown with their result; results
            for these ids are not shown again on their own.
    """
    correlation = correlation or {}
    paired_ids = paired_ids or set()
    units = record.units

    local_invocations = {u.id for u in units if isinstance(u, ToolInvocation) and u.id}
    local_results: ToolCorrelationMap = {}
    for unit in units:
        if isinstance(unit, ToolResult) and unit.tool_use_id:
            local_results.setdefault(unit.tool_use_id, unit)

    text_blocks: list[TextBlock] = []
    tool_blocks: list[ToolBlock] = []
    thinking_blocks: list[str] = []
    tool_names: list[str] = []
    seen_invocations: set[str] = set()
    seen_results: set[str] = set()
    content_tag: MessageTag | None = None

    for unit in units:
        if isinstance(unit, TextUnit):
            text_blocks.append(TextBlock(text=unit.text, spans=split_code_fences(unit.text)))

        elif isinstance(unit, ToolInvocation):
            result = None
            if unit.id:
                if unit.id in seen_invocations:
                    continue
                seen_invocations.add(unit.id)
                result = local_results.get(unit.id) or correlation.get(unit.id)

            tool_blocks.append(
                ToolBlock(
                    invocation=unit,
                    result=result,
                    key_parameter=extract_key_parameter(unit.name, unit.input),
                )
            )
            if unit.name:
                tool_names.append(unit.name)
            content_tag = MessageTag.TOOL

        elif isinstance(unit, ToolResult):
            use_id = unit.tool_use_id
            if use_id:
                # Already shown next to its invocation
                if use_id in paired_ids or use_id in local_invocations:
                    continue
                if use_id in seen_results:
                    continue
                seen_results.add(use_id)
            tool_blocks.append(ToolBlock(invocation=None, result=unit))
            content_tag = MessageTag.TOOL_RESULT

        elif isinstance(unit, Reasoning):
            thinking_blocks.append(unit.text)
            content_tag = MessageTag.THINKING

    tag = classify(record, content_tag)
    return ResolvedMessageView(
        record=record,
        tag=tag,
        expanded=not is_background(record, tag, tool_blocks),
        text_blocks=text_blocks,
        tool_blocks=tool_blocks,
        thinking_blocks=thinking_blocks,
        tool_names=tool_names,
    )


def is_fully_paired(record: Record, paired_ids: set[str]) -> bool:
    """True if the record holds only tool results already shown elsewhere."""
    if not isinstance(record.content, tuple):
        return False

    results = [u for u in record.content if isinstance(u, ToolResult)]
    if not results or len(results) != len(record.content):
        return False
    return all(u.tool_use_id in paired_ids for u in results)


def resolve_session_view(records: Iterable[Record]) -> list[ResolvedMessageView]:
    """Resolve every record of a session, pairing tool calls across records.

    Records that only carry results already paired with an invocation are
    left out entirely.
    """
    records = list(records)
    correlation = build_correlation_map(records)
    paired_ids = paired_tool_ids(records, correlation)

    return [
        resolve_message(record, correlation, paired_ids)
        for record in records
        if not is_fully_paired(record, paired_ids)
    ]


def message_text(record: Record) -> str:
    """Searchable text of a record: text content plus tool names."""
    parts = []
    for unit in record.units:
        if isinstance(unit, TextUnit):
            parts.append(unit.text)
        elif isinstance(unit, ToolInvocation):
            parts.append(unit.name)
    return " ".join(parts)


def search_views(views: list[ResolvedMessageView], term: str | None) -> list[ResolvedMessageView]:
    """Views whose record text contains `term` (case-insensitive)."""
    if not term or not term.strip():
        return views
    needle = term.lower()
    return [v for v in views if needle in message_text(v.record).lower()]


def payload_text(payload: Any) -> str:
    """Readable text of a tool result payload."""
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, list):
        texts = [
            block.get("text", "")
            for block in payload
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        if texts and len(texts) == len(payload):
            return "\n".join(t for t in texts if isinstance(t, str))
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
