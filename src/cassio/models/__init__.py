"""Pydantic models for cassio."""

from cassio.models.failures import FailureKind, ParseFailure
from cassio.models.session import (
    ContentBlock,
    Message,
    ModelChangeBlock,
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

__all__ = [
    "ContentBlock",
    "FailureKind",
    "Message",
    "ModelChangeBlock",
    "ParseFailure",
    "QueueOperationBlock",
    "Role",
    "Session",
    "SessionMetadata",
    "SessionStats",
    "TextBlock",
    "ThinkingBlock",
    "TokenUsage",
    "Tool",
    "ToolResultBlock",
    "ToolUseBlock",
]
