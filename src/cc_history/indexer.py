"""JSONL session discovery and indexing."""

import logging
import re
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from functools import reduce
from pathlib import Path

from cc_history.models import ProjectIndexEntry, Record, SessionMetadata, SessionSummary, TextUnit
from cc_history.records import list_log_files, read_records, stream_records

logger = logging.getLogger(__name__)

# Claude Code sessions location
SESSIONS_DIR = Path.home() / ".claude" / "projects"

# Only records among the first N non-blank lines count as the file's header
MAX_HEADER_LINES = 10

PREVIEW_LENGTH = 100
NO_USER_MESSAGE = "No user message found"


def read_session_metadata(path: Path) -> SessionMetadata | None:
    """Read the header records, last record and line count of a session file.

    Streams the file so only the first few records and the latest one are
    held in memory. Returns None for files with no non-blank lines or no
    parsable record among the first MAX_HEADER_LINES lines.
    """
    first_messages: list[Record] = []
    last_message: Record | None = None
    line_count = 0

    for record in stream_records(path):
        # Unparsable lines still count towards the message count
        line_count += 1
        if record is None:
            continue
        if line_count <= MAX_HEADER_LINES:
            first_messages.append(record)
        last_message = record

    if line_count == 0 or not first_messages:
        return None
    return SessionMetadata(first_messages=first_messages, last_message=last_message, line_count=line_count)


def first_user_message_preview(records: Iterable[Record]) -> str:
    """Preview of the first real user prompt (not meta, not hook/terminal output)."""
    first_user = next(
        (r for r in records if r.type == "user" and not r.is_meta and not r.internal_message_type),
        None,
    )
    if first_user is None:
        return NO_USER_MESSAGE

    if isinstance(first_user.content, str):
        text = first_user.content
    else:
        text = "\n".join(u.text for u in first_user.units if isinstance(u, TextUnit) and u.text)
    if not text:
        return NO_USER_MESSAGE

    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def summarize_session(metadata: SessionMetadata, project_path: str) -> SessionSummary | None:
    """Build the index entry for one file, or None if it has no session id."""
    header = metadata.first_messages[0]
    if not header.session_id:
        return None

    last_timestamp = header.timestamp
    if metadata.last_message is not None and metadata.last_message.timestamp:
        last_timestamp = metadata.last_message.timestamp

    return SessionSummary(
        session_id=header.session_id,
        project_path=project_path,
        first_message_timestamp=header.timestamp,
        last_message_timestamp=last_timestamp,
        message_count=metadata.line_count,
        first_user_message=first_user_message_preview(metadata.first_messages),
        cwd=header.cwd,
    )


def summarize_session_file(path: Path, project_path: str) -> SessionSummary | None:
    """Summarize a session file; errors are logged and the file skipped."""
    try:
        metadata = read_session_metadata(path)
    except Exception as e:
        logger.warning("Error processing file %s: %s", path, e)
        return None

    if metadata is None:
        logger.debug("Skipping %s: no usable header", path)
        return None
    return summarize_session(metadata, project_path)


def list_project_dirs(root: Path) -> list[Path]:
    """Immediate subdirectories of the sessions root, sorted by name."""
    if not root.is_dir():
        return []
    try:
        return sorted(p for p in root.iterdir() if p.is_dir())
    except OSError as e:
        logger.warning("Cannot list sessions directory %s: %s", root, e)
        return []


def discover_sessions(root: Path) -> Iterator[SessionSummary]:
    """Yield a summary per usable session file, in enumeration order.

    Order is project directory name, then file name. Duplicate session ids
    are not filtered here.
    """
    for project_dir in list_project_dirs(root):
        try:
            files = list_log_files(project_dir)
        except OSError as e:
            logger.warning("Cannot list project directory %s: %s", project_dir, e)
            continue

        for path in files:
            summary = summarize_session_file(path, project_dir.name)
            if summary is not None:
                yield summary


def dedupe_sessions(summaries: Iterable[SessionSummary]) -> list[SessionSummary]:
    """Keep the first summary seen for each session id.

    Written as a fold over (seen ids, kept summaries) so the result only
    depends on the input order.
    """

    def step(
        state: tuple[set[str], list[SessionSummary]], summary: SessionSummary
    ) -> tuple[set[str], list[SessionSummary]]:
        seen, kept = state
        if summary.session_id in seen:
            logger.debug(
                "Skipping duplicate session %s in project %s",
                summary.session_id,
                summary.project_path,
            )
            return state
        seen.add(summary.session_id)
        kept.append(summary)
        return state

    _, kept = reduce(step, summaries, (set(), []))
    return kept


def timestamp_sort_key(timestamp: str | None) -> float:
    """Epoch seconds for an ISO-8601 timestamp; unparsable ones sort oldest."""
    if not timestamp:
        return float("-inf")
    try:
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return float("-inf")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def group_by_project(summaries: Iterable[SessionSummary]) -> list[ProjectIndexEntry]:
    """Group sessions by project and order both levels most recent first."""
    by_project: dict[str, ProjectIndexEntry] = {}
    for summary in summaries:
        entry = by_project.setdefault(summary.project_path, ProjectIndexEntry(path=summary.project_path))
        entry.sessions.append(summary)

    projects = list(by_project.values())
    for entry in projects:
        entry.sessions.sort(key=lambda s: timestamp_sort_key(s.last_message_timestamp), reverse=True)

    projects.sort(key=lambda p: timestamp_sort_key(p.sessions[0].last_message_timestamp), reverse=True)
    return projects


def build_session_index(root: Path | None = None) -> list[ProjectIndexEntry]:
    """Scan the sessions directory and build the project -> sessions index.

    A missing root yields an empty index. Rebuilt from disk on every call.
    """
    if root is None:
        root = SESSIONS_DIR

    logger.debug("Scanning sessions directory %s", root)
    if not root.exists():
        logger.info("Sessions directory %s does not exist", root)
        return []

    sessions = dedupe_sessions(discover_sessions(root))
    projects = group_by_project(sessions)
    logger.info("Found %d projects, %d sessions", len(projects), len(sessions))
    return projects


def project_display_name(entry: ProjectIndexEntry) -> str:
    """Human-readable project name.

    Uses the working directory of the most recent session, falling back to
    decoding the directory name (-Users-name-Code-project -> Code/project).
    """
    if entry.sessions and entry.sessions[0].cwd:
        return entry.sessions[0].cwd
    return re.sub(r"^-Users-[^-]+-", "", entry.path).replace("-", "/")


def filter_projects(projects: list[ProjectIndexEntry], term: str | None) -> list[ProjectIndexEntry]:
    """Projects whose display name contains `term` (case-insensitive)."""
    if not term or not term.strip():
        return projects
    needle = term.strip().lower()
    return [p for p in projects if needle in project_display_name(p).lower()]


def find_session(projects: list[ProjectIndexEntry], session_id: str) -> SessionSummary | None:
    """Look up a session summary by id (or unique id prefix)."""
    for project in projects:
        for session in project.sessions:
            if session.session_id == session_id:
                return session

    matches = [
        s for p in projects for s in p.sessions if s.session_id.startswith(session_id)
    ]
    return matches[0] if len(matches) == 1 else None


def find_session_file(project_dir: Path, session_id: str) -> Path | None:
    """Find the log file the index lists for `session_id`.

    Files are checked in name order and matched on the same header window
    the index uses, so a file the index skipped is never picked.
    """
    if not project_dir.is_dir():
        return None

    for path in list_log_files(project_dir):
        try:
            metadata = read_session_metadata(path)
        except OSError as e:
            logger.warning("Skipping unreadable session file %s: %s", path, e)
            continue
        if metadata is not None and metadata.first_messages[0].session_id == session_id:
            return path
    return None


def load_session_records(root: Path, project_path: str, session_id: str) -> list[Record]:
    """Load all records of one session, or [] if it can't be found."""
    path = find_session_file(root / project_path, session_id)
    if path is None:
        logger.debug("Session %s not found in %s", session_id, project_path)
        return []
    return read_records(path)
