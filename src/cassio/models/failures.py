"""Typed failure values returned by detection and parsing."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class FailureKind(StrEnum):
    """Why a parse or detection produced no session."""

    EMPTY_SESSION = "empty_session"
    SESSION_NOT_FOUND = "session_not_found"
    UNKNOWN_FORMAT = "unknown_format"
    UNREADABLE = "unreadable"


class ParseFailure(BaseModel):
    """A failure for one input. Batch callers classify on ``kind``."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    source: str = ""
    message: str = ""

    def __str__(self) -> str:
        detail = self.message or self.kind.value.replace("_", " ")
        if self.source:
            return f"{detail}: {self.source}"
        return detail


def empty_session(source: str = "", message: str = "No session records found") -> ParseFailure:
    return ParseFailure(kind=FailureKind.EMPTY_SESSION, source=source, message=message)


def session_not_found(source: str) -> ParseFailure:
    return ParseFailure(
        kind=FailureKind.SESSION_NOT_FOUND,
        source=source,
        message="Cannot find OpenCode session data",
    )


def unknown_format(source: str, message: str = "Unknown format") -> ParseFailure:
    return ParseFailure(kind=FailureKind.UNKNOWN_FORMAT, source=source, message=message)


def unreadable(source: str, exc: OSError) -> ParseFailure:
    return ParseFailure(
        kind=FailureKind.UNREADABLE,
        source=source,
        message=f"Cannot read input ({exc.strerror or exc.__class__.__name__})",
    )
