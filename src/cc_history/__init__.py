"""Browse, resolve and export Claude Code session history."""

__version__ = "0.1.0"
