"""Integration tests for the CLI."""

import json
import os
import subprocess
import sys


def run_cli(*args, home=None):
    env = dict(os.environ)
    if home is not None:
        env["HOME"] = str(home)
    return subprocess.run(
        [sys.executable, "-m", "cc_history.cli", *args],
        capture_output=True,
        text=True,
        env=env,
    )


def test_cli_help():
    """Test that --help works."""
    result = run_cli("--help")
    assert result.returncode == 0
    assert "projects" in result.stdout
    assert "show" in result.stdout
    assert "export" in result.stdout


def test_cli_version():
    """Test that --version works."""
    result = run_cli("--version")
    assert result.returncode == 0
    assert "cc-history" in result.stdout


def test_projects_missing_root(temp_dir):
    result = run_cli("projects", "--root", str(temp_dir / "missing"))
    assert result.returncode == 0
    assert "No chat history found" in result.stdout


def test_projects_json(sessions_root, sample_session_jsonl):
    result = run_cli("projects", "--root", str(sessions_root), "--json")
    assert result.returncode == 0

    data = json.loads(result.stdout)
    assert len(data["projects"]) == 1
    project = data["projects"][0]
    assert project["path"] == "-Users-test-Code-project"
    assert project["sessions"][0]["session_id"] == "test-session-123"
    assert project["sessions"][0]["message_count"] == 4


def test_show_session(sessions_root, sample_session_jsonl):
    result = run_cli("show", "test-session-123", "--root", str(sessions_root), "--all")
    assert result.returncode == 0
    assert "How do I implement authentication?" in result.stdout
    assert "auth.py" in result.stdout
    assert "3 messages" in result.stdout


def test_show_unknown_session(sessions_root, sample_session_jsonl):
    result = run_cli("show", "nope", "--root", str(sessions_root))
    assert result.returncode == 1
    assert "Session not found" in result.stdout


def test_export_json_to_stdout(sessions_root, sample_session_jsonl):
    result = run_cli(
        "export", "test-session-123", "--root", str(sessions_root), "--format", "json", "--no-tools"
    )
    assert result.returncode == 0

    data = json.loads(result.stdout)
    assert data["title"] == "How do I implement authentication?"
    assert data["messageCount"] == 2


def test_export_markdown_to_directory(sessions_root, sample_session_jsonl, temp_dir):
    out_dir = temp_dir / "exports"
    out_dir.mkdir()

    result = run_cli("export", "test-session", "--root", str(sessions_root), "--output", str(out_dir))
    assert result.returncode == 0

    exported = list(out_dir.glob("*.md"))
    assert len(exported) == 1
    assert exported[0].read_text().startswith("# How do I implement authentication?")


def test_favorite_roundtrip(sessions_root, sample_session_jsonl, temp_dir):
    home = temp_dir / "home"
    home.mkdir()

    result = run_cli("favorite", "test-session-123", "--root", str(sessions_root), home=home)
    assert result.returncode == 0
    assert "Starred" in result.stdout

    result = run_cli("favorites", "--json", home=home)
    assert result.returncode == 0
    favorites = json.loads(result.stdout)["favorites"]
    assert [f["session_id"] for f in favorites] == ["test-session-123"]


def test_show_token_usage(sessions_root, write_session, record):
    answer = record("assistant", [{"type": "text", "text": "Done."}], session_id="usage-session")
    answer["message"]["usage"] = {
        "input_tokens": 1200,
        "output_tokens": 345,
        "cache_creation_input_tokens": 67,
    }
    write_session(
        sessions_root / "proj" / "usage-session.jsonl",
        [record("user", "Summarize the repo", session_id="usage-session"), answer],
    )

    result = run_cli("show", "usage-session", "--root", str(sessions_root))
    assert result.returncode == 0
    assert "Input: 1200 | Output: 345 | Cache Creation: 67" in result.stdout


def test_context_shows_branch_and_version(sessions_root, write_session, record, temp_dir):
    home = temp_dir / "home"
    home.mkdir()
    write_session(
        sessions_root / "proj" / "ctx-session.jsonl",
        [
            record(
                "user",
                "Fix the build",
                session_id="ctx-session",
                cwd=str(temp_dir / "nowhere"),
                gitBranch="feature/login",
                version="1.0.43",
            )
        ],
    )

    result = run_cli("context", "ctx-session", "--root", str(sessions_root), home=home)
    assert result.returncode == 0
    assert "Git Branch: feature/login" in result.stdout
    assert "Claude Code Version: 1.0.43" in result.stdout
    assert "No CLAUDE.md found." in result.stdout
