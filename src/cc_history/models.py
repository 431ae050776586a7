"""Data models for cc-history."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


@dataclass(frozen=True)
class TextUnit:
    """Plain text content (also used for bare strings inside a content array)."""

    text: str


@dataclass(frozen=True)
class ToolInvocation:
    """A `tool_use` block emitted by the assistant."""

    id: str | None
    name: str
    input: Any


@dataclass(frozen=True)
class ToolResult:
    """A `tool_result` block, usually sent back in a later user record."""

    tool_use_id: str | None
    content: Any


@dataclass(frozen=True)
class Reasoning:
    """A `thinking` block."""

    text: str


@dataclass(frozen=True)
class UnknownUnit:
    """Any block type we don't know about yet (images, new block kinds)."""

    raw: Any


ContentUnit = Union[TextUnit, ToolInvocation, ToolResult, Reasoning, UnknownUnit]


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None


@dataclass(frozen=True)
class Record:
    """One parsed line of a session log."""

    type: str  # "user" | "assistant" | "system"
    session_id: str | None = None
    timestamp: str | None = None
    cwd: str | None = None
    uuid: str | None = None
    is_meta: bool = False
    internal_message_type: str | None = None  # "terminal_control" | "hook"
    content: str | tuple[ContentUnit, ...] | None = None
    usage: TokenUsage | None = None
    git_branch: str | None = None
    version: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def role(self) -> str:
        return "user" if self.type == "user" else "assistant"

    @property
    def units(self) -> tuple[ContentUnit, ...]:
        """Content as a sequence of units, wrapping a bare string."""
        if isinstance(self.content, str):
            return (TextUnit(self.content),)
        return self.content or ()

    @property
    def has_tool_content(self) -> bool:
        """True if the content array holds a tool invocation or result."""
        if not isinstance(self.content, tuple):
            return False
        return any(isinstance(u, (ToolInvocation, ToolResult)) for u in self.content)


@dataclass
class SessionMetadata:
    """Header and tail of a session file, read without loading it fully."""

    first_messages: list[Record]
    last_message: Record | None
    line_count: int


@dataclass
class SessionSummary:
    """A session as listed in the index."""

    session_id: str
    project_path: str
    first_message_timestamp: str | None
    last_message_timestamp: str | None
    message_count: int
    first_user_message: str
    cwd: str | None = None


@dataclass
class ProjectIndexEntry:
    """A project directory and its sessions, most recent first."""

    path: str
    sessions: list[SessionSummary] = field(default_factory=list)


class MessageTag(str, Enum):
    """Classification used for message badges and default visibility."""

    USER = "user"
    ASSISTANT = "assistant"
    INTERNAL = "internal"
    HOOK = "hook"
    TOOL = "tool"
    TOOL_RESULT = "tool-result"
    THINKING = "thinking"


@dataclass
class TextSpan:
    kind: str  # "text" | "code"
    content: str
    language: str | None = None


@dataclass
class TextBlock:
    text: str
    spans: list[TextSpan] = field(default_factory=list)


@dataclass
class ToolBlock:
    """A tool invocation with its result, or a result with no invocation."""

    invocation: ToolInvocation | None
    result: ToolResult | None = None
    key_parameter: str | None = None

    @property
    def name(self) -> str | None:
        return self.invocation.name if self.invocation else None

    @property
    def paired(self) -> bool:
        return self.invocation is not None and self.result is not None


@dataclass
class ResolvedMessageView:
    """Render model for one record."""

    record: Record
    tag: MessageTag
    expanded: bool
    text_blocks: list[TextBlock] = field(default_factory=list)
    tool_blocks: list[ToolBlock] = field(default_factory=list)
    thinking_blocks: list[str] = field(default_factory=list)
    tool_names: list[str] = field(default_factory=list)


@dataclass
class ExportOptions:
    format: str = "markdown"  # "markdown" | "json"
    include_tool_calls: bool = True
    include_timestamps: bool = True


@dataclass
class ExportResult:
    success: bool
    content: str | None = None
    message_count: int = 0
    file_path: str | None = None
    error: str | None = None


@dataclass
class FavoriteSession:
    session_id: str
    project_path: str
    starred_at: str


@dataclass
class SessionContext:
    """CLAUDE.md instructions in effect for a session."""

    claude_md: str | None = None
    global_claude_md: str | None = None
