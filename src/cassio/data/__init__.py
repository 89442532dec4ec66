"""Session detection and parsing for Claude, Codex and OpenCode logs."""

from cassio.data.detection import detect_tool, detect_tool_from_content
from cassio.data.parser import parse_session_file, parse_session_lines
from cassio.data.text import truncate_bytes

__all__ = [
    "detect_tool",
    "detect_tool_from_content",
    "parse_session_file",
    "parse_session_lines",
    "truncate_bytes",
]
