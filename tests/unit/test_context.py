"""Tests for the session context reader."""

from unittest.mock import patch

from cc_history.context import read_session_context


def test_reads_project_and_global_files(temp_dir):
    project = temp_dir / "project"
    project.mkdir()
    (project / "CLAUDE.md").write_text("Use pytest.")
    global_md = temp_dir / "global-CLAUDE.md"
    global_md.write_text("Be concise.")

    with patch("cc_history.context.GLOBAL_CLAUDE_MD", global_md):
        context = read_session_context(str(project))

    assert context.claude_md == "Use pytest."
    assert context.global_claude_md == "Be concise."


def test_missing_files(temp_dir):
    with patch("cc_history.context.GLOBAL_CLAUDE_MD", temp_dir / "nope.md"):
        context = read_session_context(temp_dir)

    assert context.claude_md is None
    assert context.global_claude_md is None


def test_no_cwd(temp_dir):
    with patch("cc_history.context.GLOBAL_CLAUDE_MD", temp_dir / "nope.md"):
        context = read_session_context(None)

    assert context.claude_md is None


def test_unreadable_file_is_skipped(temp_dir):
    project = temp_dir / "project"
    project.mkdir()
    (project / "CLAUDE.md").write_bytes(b"\xff\xfe\xfa not utf-8")

    with patch("cc_history.context.GLOBAL_CLAUDE_MD", temp_dir / "nope.md"):
        context = read_session_context(project)

    assert context.claude_md is None
