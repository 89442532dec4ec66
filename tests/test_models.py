"""Tests for the normalized session models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from cassio.models import (
    FailureKind,
    Message,
    ModelChangeBlock,
    ParseFailure,
    QueueOperationBlock,
    Role,
    Session,
    SessionMetadata,
    SessionStats,
    TextBlock,
    ThinkingBlock,
    TokenUsage,
    Tool,
    ToolResultBlock,
    ToolUseBlock,
)


def _session() -> Session:
    return Session(
        metadata=SessionMetadata(
            session_id="s1",
            tool=Tool.CLAUDE,
            project_path="/proj",
            started_at=datetime(2025, 1, 15, 10, 0, tzinfo=UTC),
        ),
        messages=(
            Message(role=Role.SYSTEM, content=(ModelChangeBlock(model="m1"),)),
            Message(
                role=Role.ASSISTANT,
                content=(
                    ThinkingBlock(text="hmm"),
                    TextBlock(text="hi"),
                    ToolUseBlock(id="t1", name="Read", input={"file_path": "/a.rs"}),
                ),
                usage=TokenUsage(input_tokens=3),
            ),
            Message(
                role=Role.USER,
                content=(
                    ToolResultBlock(tool_use_id="t1", name="Read", success=True, summary="x"),
                ),
            ),
            Message(role=Role.SYSTEM, content=(QueueOperationBlock(summary="task"),)),
        ),
        stats=SessionStats(files_read=frozenset({"/a.rs"})),
    )


class TestTool:
    def test_values(self) -> None:
        assert [tool.value for tool in Tool] == ["claude", "claude_desktop", "codex", "opencode"]

    def test_display_name_folds_desktop_into_claude(self) -> None:
        assert Tool.CLAUDE_DESKTOP.display_name == "claude"
        assert Tool.CODEX.display_name == "codex"
        assert Tool.OPENCODE.display_name == "opencode"


class TestTokenUsage:
    def test_defaults_to_zero(self) -> None:
        usage = TokenUsage()
        assert usage.input_tokens == 0
        assert usage.output_tokens == 0
        assert usage.cache_read_tokens == 0
        assert usage.cache_creation_tokens == 0

    def test_addition(self) -> None:
        total = TokenUsage(input_tokens=1, output_tokens=2) + TokenUsage(
            input_tokens=10, cache_read_tokens=5, cache_creation_tokens=7
        )
        assert total == TokenUsage(
            input_tokens=11, output_tokens=2, cache_read_tokens=5, cache_creation_tokens=7
        )

    def test_rejects_negative_counts(self) -> None:
        with pytest.raises(ValidationError):
            TokenUsage(input_tokens=-1)


class TestSessionStats:
    def test_defaults(self) -> None:
        stats = SessionStats()
        assert stats.user_messages == 0
        assert stats.tool_errors == 0
        assert stats.files_read == frozenset()
        assert stats.duration_seconds is None
        assert stats.cost is None
        assert not stats.has_conversation

    def test_has_conversation(self) -> None:
        assert SessionStats(assistant_messages=1).has_conversation


class TestMessage:
    def test_empty_content_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Message(role=Role.USER, content=())

    def test_frozen(self) -> None:
        message = Message(role=Role.USER, content=(TextBlock(text="hi"),))
        with pytest.raises(ValidationError):
            message.role = Role.ASSISTANT  # type: ignore[misc]


class TestSession:
    def test_blocks_in_message_order(self) -> None:
        types = [block.type for block in _session().blocks()]
        assert types == [
            "model_change",
            "thinking",
            "text",
            "tool_use",
            "tool_result",
            "queue_operation",
        ]

    def test_json_round_trip_keeps_block_variants(self) -> None:
        session = _session()
        restored = Session.model_validate_json(session.model_dump_json())
        assert restored == session
        assert isinstance(restored.messages[1].content[2], ToolUseBlock)
        assert restored.stats.files_read == frozenset({"/a.rs"})

    def test_tool_serializes_as_value(self) -> None:
        dumped = _session().model_dump(mode="json")
        assert dumped["metadata"]["tool"] == "claude"
        assert dumped["messages"][0]["role"] == "system"
        assert dumped["messages"][1]["content"][2]["type"] == "tool_use"


class TestParseFailure:
    def test_str_includes_source(self) -> None:
        failure = ParseFailure(kind=FailureKind.UNKNOWN_FORMAT, source="/x.txt", message="Unknown")
        assert str(failure) == "Unknown: /x.txt"

    def test_str_without_message(self) -> None:
        assert str(ParseFailure(kind=FailureKind.EMPTY_SESSION)) == "empty session"
