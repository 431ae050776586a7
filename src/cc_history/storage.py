"""SQLite store for favorite sessions and dismissed notifications."""

import sqlite3
from pathlib import Path

from cc_history.models import FavoriteSession

# Store location
STORE_DIR = Path.home() / ".local" / "share" / "cc-history"
STORE_PATH = STORE_DIR / "history.db"


def get_connection() -> sqlite3.Connection:
    """Get a connection to the store database."""
    STORE_DIR.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(STORE_PATH))
    conn.row_factory = sqlite3.Row
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Initialize the database schema."""
    conn.executescript("""
        -- Notifications the user chose not to see again
        CREATE TABLE IF NOT EXISTS dismissed_notifications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            content_code TEXT NOT NULL UNIQUE,
            dismissed_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        );

        -- Starred sessions
        CREATE TABLE IF NOT EXISTS favorites (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id TEXT NOT NULL UNIQUE,
            project_path TEXT NOT NULL,
            starred_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        );
    """)
    conn.commit()


def ensure_store_exists() -> sqlite3.Connection:
    """Ensure the store database exists and is initialized."""
    conn = get_connection()
    init_schema(conn)
    return conn


def store_exists() -> bool:
    """Check if the store database exists."""
    return STORE_PATH.exists()


def is_dismissed(conn: sqlite3.Connection, content_code: str) -> bool:
    """Check whether a notification has been dismissed."""
    row = conn.execute(
        "SELECT 1 FROM dismissed_notifications WHERE content_code = ?", (content_code,)
    ).fetchone()
    return row is not None


def dismiss_notification(conn: sqlite3.Connection, content_code: str) -> None:
    """Mark a notification as dismissed (idempotent)."""
    conn.execute(
        "INSERT OR IGNORE INTO dismissed_notifications (content_code) VALUES (?)",
        (content_code,),
    )
    conn.commit()


def get_favorites(conn: sqlite3.Connection) -> list[FavoriteSession]:
    """Get all favorite sessions, most recently starred first."""
    rows = conn.execute(
        "SELECT session_id, project_path, starred_at FROM favorites ORDER BY starred_at DESC, id DESC"
    ).fetchall()
    return [
        FavoriteSession(
            session_id=row["session_id"],
            project_path=row["project_path"],
            starred_at=row["starred_at"],
        )
        for row in rows
    ]


def is_favorite(conn: sqlite3.Connection, session_id: str) -> bool:
    """Check whether a session is starred."""
    row = conn.execute("SELECT 1 FROM favorites WHERE session_id = ?", (session_id,)).fetchone()
    return row is not None


def add_favorite(conn: sqlite3.Connection, session_id: str, project_path: str) -> None:
    """Star a session."""
    conn.execute(
        "INSERT OR IGNORE INTO favorites (session_id, project_path) VALUES (?, ?)",
        (session_id, project_path),
    )
    conn.commit()


def remove_favorite(conn: sqlite3.Connection, session_id: str) -> None:
    """Unstar a session."""
    conn.execute("DELETE FROM favorites WHERE session_id = ?", (session_id,))
    conn.commit()


def toggle_favorite(conn: sqlite3.Connection, session_id: str, project_path: str) -> bool:
    """Flip a session's favorite flag. Returns True if it is now a favorite."""
    if is_favorite(conn, session_id):
        remove_favorite(conn, session_id)
        return False
    add_favorite(conn, session_id, project_path)
    return True
