"""Pytest fixtures for cc-history tests."""

import json
import tempfile
from pathlib import Path

import pytest


def write_jsonl(path: Path, records: list) -> Path:
    """Write records (dicts, or raw strings for malformed lines) as JSONL."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for record in records:
            line = record if isinstance(record, str) else json.dumps(record)
            f.write(line + "\n")
    return path


def make_record(
    record_type: str = "user",
    content=None,
    session_id: str = "test-session-123",
    timestamp: str = "2024-01-15T10:00:00Z",
    **extra,
) -> dict:
    """Build a raw log record the way Claude Code writes them."""
    record = {
        "type": record_type,
        "uuid": extra.pop("uuid", f"{record_type}-{timestamp}"),
        "sessionId": session_id,
        "timestamp": timestamp,
        "cwd": extra.pop("cwd", "/Users/test/Code/project"),
        "message": {"role": record_type, "content": content if content is not None else ""},
    }
    record.update(extra)
    return record


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def write_session():
    """Helper for writing JSONL session files."""
    return write_jsonl


@pytest.fixture
def record():
    """Factory for raw log records."""
    return make_record


@pytest.fixture
def sessions_root(temp_dir):
    """An empty sessions root (~/.claude/projects equivalent)."""
    root = temp_dir / "projects"
    root.mkdir()
    return root


@pytest.fixture
def sample_records():
    """A short session with a tool call answered in the following record."""
    return [
        make_record("user", "How do I implement authentication?", timestamp="2024-01-15T10:00:00Z"),
        make_record(
            "assistant",
            [
                {"type": "thinking", "thinking": "Let me look at the existing code..."},
                {"type": "text", "text": "Let me check the auth module."},
                {
                    "type": "tool_use",
                    "id": "toolu_01",
                    "name": "Read",
                    "input": {"file_path": "/Users/test/Code/project/auth.py"},
                },
            ],
            timestamp="2024-01-15T10:00:05Z",
        ),
        make_record(
            "user",
            [{"type": "tool_result", "tool_use_id": "toolu_01", "content": "def login(): ..."}],
            timestamp="2024-01-15T10:00:06Z",
        ),
        make_record(
            "assistant",
            [{"type": "text", "text": "Use JWT tokens:\n```python\nimport jwt\n```"}],
            timestamp="2024-01-15T10:00:10Z",
        ),
    ]


@pytest.fixture
def sample_session_jsonl(sessions_root, sample_records):
    """Create a sample JSONL session file inside a project directory."""
    return write_jsonl(
        sessions_root / "-Users-test-Code-project" / "test-session-123.jsonl",
        sample_records,
    )
