"""CLAUDE.md instructions that were in effect for a session."""

import logging
from pathlib import Path

from cc_history.models import SessionContext

logger = logging.getLogger(__name__)

CONTEXT_FILENAME = "CLAUDE.md"
GLOBAL_CLAUDE_MD = Path.home() / ".claude" / CONTEXT_FILENAME


def read_context_file(path: Path) -> str | None:
    """Read a context file, or None if it is missing or unreadable."""
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read %s: %s", path, e)
        return None


def read_session_context(cwd: str | Path | None) -> SessionContext:
    """Read the project CLAUDE.md in `cwd` and the global ~/.claude/CLAUDE.md."""
    claude_md = read_context_file(Path(cwd) / CONTEXT_FILENAME) if cwd else None
    return SessionContext(claude_md=claude_md, global_claude_md=read_context_file(GLOBAL_CLAUDE_MD))
