"""Protocol definitions for session parsers."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from result import Result

from cassio.models.failures import ParseFailure
from cassio.models.session import Session


class SessionFileParser(Protocol):
    """Parses one session from a path on disk."""

    def __call__(self, path: Path) -> Result[Session, ParseFailure]: ...


class SessionLineParser(Protocol):
    """Parses one session from an ordered sequence of raw lines."""

    def __call__(
        self, lines: Iterable[str], *, source: str = ""
    ) -> Result[Session, ParseFailure]: ...
