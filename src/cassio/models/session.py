"""Normalized session models shared by every parser."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Tool(StrEnum):
    """AI coding tool that produced a session log."""

    CLAUDE = "claude"
    CLAUDE_DESKTOP = "claude_desktop"
    CODEX = "codex"
    OPENCODE = "opencode"

    @property
    def display_name(self) -> str:
        """Name shown to users; both Claude variants read as "claude"."""
        if self is Tool.CLAUDE_DESKTOP:
            return Tool.CLAUDE.value
        return self.value


class Role(StrEnum):
    """Speaker of a message. SYSTEM marks synthetic events."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TokenUsage(_Frozen):
    """Token counts for one API call or a running total."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_read_tokens: int = Field(default=0, ge=0)
    cache_creation_tokens: int = Field(default=0, ge=0)

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_read_tokens=self.cache_read_tokens + other.cache_read_tokens,
            cache_creation_tokens=self.cache_creation_tokens + other.cache_creation_tokens,
        )


class TextBlock(_Frozen):
    type: Literal["text"] = "text"
    text: str


class ThinkingBlock(_Frozen):
    """Extended reasoning text; kept in the model but hidden by most renderers."""

    type: Literal["thinking"] = "thinking"
    text: str


class ToolUseBlock(_Frozen):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any = Field(default_factory=dict)


class ToolResultBlock(_Frozen):
    """Outcome of a tool call with a short human-readable summary of the call."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    name: str
    success: bool
    summary: str


class ModelChangeBlock(_Frozen):
    type: Literal["model_change"] = "model_change"
    model: str


class QueueOperationBlock(_Frozen):
    type: Literal["queue_operation"] = "queue_operation"
    summary: str


ContentBlock = Annotated[
    TextBlock
    | ThinkingBlock
    | ToolUseBlock
    | ToolResultBlock
    | ModelChangeBlock
    | QueueOperationBlock,
    Field(discriminator="type"),
]


class Message(_Frozen):
    """One conversational turn."""

    role: Role
    timestamp: datetime | None = None
    model: str | None = None
    content: tuple[ContentBlock, ...] = Field(min_length=1)
    usage: TokenUsage | None = None


class SessionMetadata(_Frozen):
    """Session identity and header fields."""

    session_id: str
    tool: Tool
    project_path: str = ""
    started_at: datetime
    version: str | None = None
    git_branch: str | None = None
    model: str | None = None
    title: str | None = None


class SessionStats(_Frozen):
    """Aggregate counters collected while the messages were built."""

    user_messages: int = 0
    assistant_messages: int = 0
    tool_calls: int = 0
    tool_errors: int = 0
    total_tokens: TokenUsage = Field(default_factory=TokenUsage)
    files_read: frozenset[str] = frozenset()
    files_written: frozenset[str] = frozenset()
    files_edited: frozenset[str] = frozenset()
    duration_seconds: int | None = None
    cost: float | None = None

    @property
    def has_conversation(self) -> bool:
        return self.user_messages > 0 or self.assistant_messages > 0


class Session(_Frozen):
    """A complete normalized coding session."""

    metadata: SessionMetadata
    messages: tuple[Message, ...] = ()
    stats: SessionStats = Field(default_factory=SessionStats)

    def blocks(self) -> list[ContentBlock]:
        """All content blocks in message order."""
        return [block for message in self.messages for block in message.content]
