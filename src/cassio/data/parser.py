"""Tool-aware entry points that turn a session source into a ``Session``."""

from __future__ import annotations

from collections.abc import Iterable
from functools import partial
from pathlib import Path

from result import Err, Result

from cassio.data import claude, codex, opencode
from cassio.data.detection import detect_tool, detect_tool_from_content, first_content_line
from cassio.data.protocols import SessionFileParser, SessionLineParser
from cassio.models.failures import ParseFailure, empty_session, unknown_format
from cassio.models.session import Session, Tool


def file_parser(tool: Tool) -> SessionFileParser:
    """Return the path parser for ``tool``."""
    match tool:
        case Tool.CODEX:
            return codex.parse_file
        case Tool.OPENCODE:
            return opencode.parse_path
        case Tool.CLAUDE | Tool.CLAUDE_DESKTOP:
            return partial(claude.parse_file, tool=tool)


def line_parser(tool: Tool) -> SessionLineParser | None:
    """Return the stream parser for ``tool``, or None for directory-based formats."""
    match tool:
        case Tool.CODEX:
            return codex.parse_lines
        case Tool.OPENCODE:
            return None
        case Tool.CLAUDE | Tool.CLAUDE_DESKTOP:
            return partial(claude.parse_lines, tool=tool)


def parse_session_file(path: Path, *, tool: Tool | None = None) -> Result[Session, ParseFailure]:
    """Parse the session at ``path``, detecting the tool unless one is given.

    ``path`` is a JSONL file for Claude/Codex and a ``message/ses_*`` directory
    or storage root for OpenCode.
    """
    if tool is None:
        detected = detect_tool(path)
        if isinstance(detected, Err):
            return detected
        tool = detected.ok_value
    return file_parser(tool)(path)


def parse_session_lines(
    lines: Iterable[str],
    *,
    tool: Tool | None = None,
    source: str = "<stdin>",
) -> Result[Session, ParseFailure]:
    """Parse a path-less line stream such as stdin.

    Lines are buffered so the first record can be inspected for detection.
    """
    buffered = list(lines)
    if not buffered:
        return Err(empty_session(source, "No input"))
    if tool is None:
        tool = detect_tool_from_content(first_content_line(buffered))

    parse = line_parser(tool)
    if parse is None:
        return Err(unknown_format(source, "OpenCode sessions cannot be read from a stream"))
    return parse(buffered, source=source)
