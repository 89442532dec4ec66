"""Per-parse mutable state and the shared session finalization step."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from cassio.models.session import (
    ContentBlock,
    Message,
    Role,
    Session,
    SessionMetadata,
    SessionStats,
    TokenUsage,
)

_ONE_SECOND = timedelta(seconds=1)


@dataclass
class SessionAccumulator:
    """Everything a parser mutates while walking one session.

    An instance belongs to exactly one parse call and is discarded once
    :meth:`finish` has produced the frozen :class:`Session`.
    """

    messages: list[Message] = field(default_factory=list)
    user_messages: int = 0
    assistant_messages: int = 0
    tool_calls: int = 0
    tool_errors: int = 0
    total_tokens: TokenUsage = field(default_factory=TokenUsage)
    files_read: set[str] = field(default_factory=set)
    files_written: set[str] = field(default_factory=set)
    files_edited: set[str] = field(default_factory=set)
    total_cost: float = 0.0
    current_model: str | None = None
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None

    def observe_timestamp(self, ts: datetime | None) -> None:
        if ts is None:
            return
        if self.first_timestamp is None:
            self.first_timestamp = ts
        self.last_timestamp = ts

    def switch_model(self, model: str | None) -> bool:
        """Track ``model``; True when it differs from the current one."""
        if not model or model == self.current_model:
            return False
        self.current_model = model
        return True

    def add_usage(self, usage: TokenUsage) -> None:
        self.total_tokens = self.total_tokens + usage

    def record_tool_result(self, success: bool) -> None:
        self.tool_calls += 1
        if not success:
            self.tool_errors += 1

    def append(
        self,
        role: Role,
        content: list[ContentBlock],
        *,
        timestamp: datetime | None = None,
        model: str | None = None,
        usage: TokenUsage | None = None,
    ) -> bool:
        """Append a message unless ``content`` is empty."""
        if not content:
            return False
        self.messages.append(
            Message(
                role=role,
                timestamp=timestamp,
                model=model,
                content=tuple(content),
                usage=usage,
            )
        )
        return True

    def duration_seconds(self) -> int | None:
        if self.first_timestamp is None or self.last_timestamp is None:
            return None
        delta = self.last_timestamp - self.first_timestamp
        if delta < timedelta(0):
            return None
        return delta // _ONE_SECOND

    def finish(self, metadata: SessionMetadata) -> Session:
        """Backfill the final model, compute duration and cost, and freeze."""
        stats = SessionStats(
            user_messages=self.user_messages,
            assistant_messages=self.assistant_messages,
            tool_calls=self.tool_calls,
            tool_errors=self.tool_errors,
            total_tokens=self.total_tokens,
            files_read=frozenset(self.files_read),
            files_written=frozenset(self.files_written),
            files_edited=frozenset(self.files_edited),
            duration_seconds=self.duration_seconds(),
            cost=self.total_cost if self.total_cost > 0 else None,
        )
        return Session(
            metadata=metadata.model_copy(update={"model": self.current_model}),
            messages=tuple(self.messages),
            stats=stats,
        )
