"""Pick the parser for a session source from its path or first line."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from result import Err, Ok, Result

from cassio.models.failures import ParseFailure, unknown_format, unreadable
from cassio.models.session import Tool

logger = logging.getLogger(__name__)

JSONL_SUFFIX = ".jsonl"

# Checked in order; the first substring found in the path wins.
_PATH_HINTS: tuple[tuple[str, Tool], ...] = (
    (".codex", Tool.CODEX),
    ("rollout-", Tool.CODEX),
    ("local-agent-mode-sessions", Tool.CLAUDE_DESKTOP),
    ("opencode", Tool.OPENCODE),
)
_CLAUDE_MARKERS = ('"sessionId"',)
_CODEX_MARKERS = ('"session_meta"', '"response_item"')


def detect_tool(path: Path) -> Result[Tool, ParseFailure]:
    """Choose a tool for ``path``.

    Path hints are tried first, then the first non-blank line of a ``.jsonl``
    file. Any ``.jsonl`` file resolves to some tool (Claude by default);
    only other paths without a hint fail with ``unknown_format``.
    """
    path_str = str(path)
    for hint, tool in _PATH_HINTS:
        if hint in path_str:
            return Ok(tool)

    if path.suffix != JSONL_SUFFIX:
        return Err(unknown_format(path_str, "Unknown format for file"))

    try:
        with open(path, encoding="utf-8", errors="replace") as file:
            first_line = first_content_line(file)
    except OSError as exc:
        return Err(unreadable(path_str, exc))

    tool = detect_tool_from_content(first_line)
    logger.debug("Detected %s from content of %s", tool, path)
    return Ok(tool)


def detect_tool_from_content(first_line: str) -> Tool:
    """Choose Claude or Codex from a raw record; defaults to Claude."""
    if any(marker in first_line for marker in _CLAUDE_MARKERS):
        return Tool.CLAUDE
    if any(marker in first_line for marker in _CODEX_MARKERS):
        return Tool.CODEX
    return Tool.CLAUDE


def first_content_line(lines: Iterable[str]) -> str:
    """Return the first non-blank line, stripped, reading no further."""
    for line in lines:
        stripped = line.strip()
        if stripped:
            return stripped
    return ""
