"""Short labels previewing a tool call without expanding it."""

import json
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse

BASH_COMMAND_LIMIT = 60
GREP_PATTERN_LIMIT = 40
URL_FALLBACK_LIMIT = 40
QUESTION_LIMIT = 50
GENERIC_LIMIT = 50

# Checked in order for tools we have no dedicated rule for
GENERIC_FIELDS = (
    "file_path",
    "path",
    "url",
    "query",
    "command",
    "name",
    "title",
    "target",
    "message",
    "content",
    "text",
    "description",
    "input",
)
PATH_FIELDS = {"file_path", "path"}


def truncate(text: str, limit: int) -> str:
    """Cut text to `limit` chars, adding an ellipsis if anything was cut."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def last_segment(path: str) -> str:
    """Final component of a slash-separated path."""
    segment = path.rstrip("/").split("/")[-1]
    return segment or path


def hostname(url: str, fallback_limit: int = URL_FALLBACK_LIMIT) -> str:
    """Hostname of a URL, or the start of the raw string if it has none."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    return host or url[:fallback_limit]


def _string(params: dict[str, Any], key: str) -> str | None:
    value = params.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _file_path(params: dict[str, Any]) -> str | None:
    path = _string(params, "file_path")
    return last_segment(path) if path else None


def _bash(params: dict[str, Any]) -> str | None:
    command = _string(params, "command")
    return truncate(command, BASH_COMMAND_LIMIT) if command else None


def _with_location(label: str, params: dict[str, Any]) -> str:
    path = _string(params, "path")
    if path:
        return f"{label} in {last_segment(path)}"
    return label


def _grep(params: dict[str, Any]) -> str | None:
    pattern = _string(params, "pattern")
    if not pattern:
        return None
    return _with_location(f'"{truncate(pattern, GREP_PATTERN_LIMIT)}"', params)


def _glob(params: dict[str, Any]) -> str | None:
    pattern = _string(params, "pattern")
    if not pattern:
        return None
    return _with_location(pattern, params)


def _task(params: dict[str, Any]) -> str | None:
    return _string(params, "description")


def _web_fetch(params: dict[str, Any]) -> str | None:
    url = _string(params, "url")
    return hostname(url) if url else None


def _todo_write(params: dict[str, Any]) -> str | None:
    todos = params.get("todos")
    if not isinstance(todos, list):
        return None
    count = len(todos)
    return f"{count} item" if count == 1 else f"{count} items"


def _ask_user_question(params: dict[str, Any]) -> str | None:
    questions = params.get("questions")
    if not isinstance(questions, list) or not questions or not isinstance(questions[0], dict):
        return None
    question = _string(questions[0], "question")
    return truncate(question, QUESTION_LIMIT) if question else None


def _notebook_edit(params: dict[str, Any]) -> str | None:
    path = _string(params, "notebook_path")
    return last_segment(path) if path else None


TOOL_RULES: dict[str, Callable[[dict[str, Any]], str | None]] = {
    "Read": _file_path,
    "Write": _file_path,
    "Edit": _file_path,
    "Bash": _bash,
    "Grep": _grep,
    "Glob": _glob,
    "Task": _task,
    "WebFetch": _web_fetch,
    "TodoWrite": _todo_write,
    "AskUserQuestion": _ask_user_question,
    "NotebookEdit": _notebook_edit,
}


def _label_value(value: Any) -> str | None:
    """Text form of a field value, or None if it is empty."""
    if isinstance(value, str):
        return value or None
    # Booleans carry no label worth showing
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list)) and value:
        return json.dumps(value, default=str)
    return None


def _generic(params: dict[str, Any]) -> str | None:
    for key in GENERIC_FIELDS:
        value = _label_value(params.get(key))
        if value is None:
            continue
        if isinstance(params[key], str):
            if key in PATH_FIELDS:
                return last_segment(value)
            if key == "url":
                return hostname(value, GENERIC_LIMIT)
        return truncate(value, GENERIC_LIMIT)

    for key, value in params.items():
        if isinstance(key, str) and key.startswith("_"):
            continue
        if isinstance(value, str) and value:
            return truncate(value, GENERIC_LIMIT)
    return None


def extract_key_parameter(tool_name: str, tool_input: Any) -> str | None:
    """Pick the most telling input parameter of a tool call as a short label.

    Known tools have a dedicated rule (tool names are case-sensitive); any
    other tool falls back to a list of common field names, then to the first
    string field. Returns None when nothing usable is found.
    """
    if not isinstance(tool_input, dict):
        return None

    rule = TOOL_RULES.get(tool_name)
    if rule is not None:
        return rule(tool_input)
    return _generic(tool_input)
