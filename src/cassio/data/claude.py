"""Parser for Claude Code / Claude Desktop JSONL session logs.

Each line is one record sharing the envelope ``{type, sessionId, timestamp,
cwd, message, ...}``. Tool calls span two records: an assistant ``tool_use``
part and a later user ``tool_result`` part carrying the same id.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from result import Err, Ok, Result

from cassio.data._helpers import (
    as_count,
    as_dict,
    as_list,
    as_optional_str,
    as_str,
    compact_json,
    parse_timestamp,
)
from cassio.data.accumulator import SessionAccumulator
from cassio.data.text import ellipsize, truncate_bytes
from cassio.models.failures import ParseFailure, empty_session, unreadable
from cassio.models.session import (
    ContentBlock,
    ModelChangeBlock,
    QueueOperationBlock,
    Role,
    Session,
    SessionMetadata,
    TextBlock,
    ThinkingBlock,
    TokenUsage,
    Tool,
    ToolResultBlock,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)

SYNTHETIC_MODEL = "<synthetic>"
_QUEUE_SUMMARY_RE = re.compile(r"<summary>(.*?)</summary>", re.DOTALL)
_QUEUE_FALLBACK_BYTES = 100

_FILE_TOOLS = {
    "Read": "read",
    "Write": "written",
    "Edit": "edited",
    "MultiEdit": "edited",
}


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    session_id: str = Field(alias="sessionId")
    timestamp: str
    cwd: str | None = None
    version: str | None = None
    git_branch: str | None = Field(default=None, alias="gitBranch")
    is_meta: bool | None = Field(default=None, alias="isMeta")
    message: Any = None
    content: Any = None


def parse_file(path: Path, *, tool: Tool = Tool.CLAUDE) -> Result[Session, ParseFailure]:
    """Parse a Claude JSONL file."""
    try:
        with open(path, encoding="utf-8", errors="replace") as file:
            return parse_lines(file, tool=tool, source=str(path))
    except OSError as exc:
        return Err(unreadable(str(path), exc))


def parse_lines(
    lines: Iterable[str],
    *,
    tool: Tool = Tool.CLAUDE,
    source: str = "",
) -> Result[Session, ParseFailure]:
    """Parse Claude records from any line source (file, stdin, list)."""
    metadata: SessionMetadata | None = None
    acc = SessionAccumulator()
    pending: dict[str, tuple[str, Any]] = {}

    for line_num, line in enumerate(lines, 1):
        line = line.strip()
        if not line:
            continue
        try:
            record = _Record.model_validate_json(line)
        except ValidationError:
            logger.debug("Skipping unparseable record at %s:%d", source or "<lines>", line_num)
            continue

        ts = parse_timestamp(record.timestamp)
        acc.observe_timestamp(ts)

        if metadata is None:
            metadata = SessionMetadata(
                session_id=record.session_id,
                tool=tool,
                project_path=record.cwd or "",
                started_at=ts or datetime.now(UTC),
                version=record.version,
                git_branch=record.git_branch,
            )
        else:
            metadata = _backfill_header(metadata, record)

        match record.type:
            case "user":
                if record.is_meta:
                    continue
                _parse_user(as_dict(record.message), ts, acc, pending)
            case "assistant":
                _parse_assistant(as_dict(record.message), ts, acc, pending)
            case "queue-operation":
                summary = extract_queue_summary(as_str(record.content))
                if summary:
                    acc.append(Role.SYSTEM, [QueueOperationBlock(summary=summary)], timestamp=ts)
            case _:
                continue

    if metadata is None:
        return Err(empty_session(source))
    return Ok(acc.finish(metadata))


def _backfill_header(metadata: SessionMetadata, record: _Record) -> SessionMetadata:
    update: dict[str, str] = {}
    if not metadata.project_path and record.cwd:
        update["project_path"] = record.cwd
    if metadata.version is None and record.version:
        update["version"] = record.version
    if metadata.git_branch is None and record.git_branch:
        update["git_branch"] = record.git_branch
    return metadata.model_copy(update=update) if update else metadata


def _parse_user(
    message: dict[str, object],
    ts: datetime | None,
    acc: SessionAccumulator,
    pending: dict[str, tuple[str, Any]],
) -> None:
    if as_str(message.get("role")) != "user":
        return

    content = message.get("content")
    blocks: list[ContentBlock] = []
    has_text = False

    if isinstance(content, str):
        # Tool-injected wrappers (<command-name>, <system-reminder>, ...) are not user text.
        if _is_markup(content):
            return
        text = content.strip()
        if text:
            blocks.append(TextBlock(text=text))
            has_text = True
    else:
        for part in as_list(content):
            part = as_dict(part)
            match as_str(part.get("type")):
                case "text":
                    raw_text = as_str(part.get("text"))
                    if _is_markup(raw_text):
                        continue
                    text = raw_text.strip()
                    if text:
                        blocks.append(TextBlock(text=text))
                        has_text = True
                case "tool_result":
                    block = _pair_tool_result(part, acc, pending)
                    if block is not None:
                        blocks.append(block)
                case _:
                    continue

    if has_text:
        acc.user_messages += 1
    acc.append(Role.USER, blocks, timestamp=ts)


def _pair_tool_result(
    part: dict[str, object],
    acc: SessionAccumulator,
    pending: dict[str, tuple[str, Any]],
) -> ToolResultBlock | None:
    tool_use_id = as_str(part.get("tool_use_id"))
    invocation = pending.pop(tool_use_id, None)
    if invocation is None:
        return None
    name, tool_input = invocation
    success = part.get("is_error") is not True
    acc.record_tool_result(success)

    file_path = as_optional_str(as_dict(tool_input).get("file_path"))
    if success and file_path:
        match _FILE_TOOLS.get(name):
            case "read":
                acc.files_read.add(file_path)
            case "written":
                acc.files_written.add(file_path)
            case "edited":
                acc.files_edited.add(file_path)
            case _:
                pass

    return ToolResultBlock(
        tool_use_id=tool_use_id,
        name=name,
        success=success,
        summary=format_tool_input(name, tool_input),
    )


def _parse_assistant(
    message: dict[str, object],
    ts: datetime | None,
    acc: SessionAccumulator,
    pending: dict[str, tuple[str, Any]],
) -> None:
    if as_str(message.get("role")) != "assistant":
        return

    blocks: list[ContentBlock] = []
    has_text = False

    model = as_optional_str(message.get("model"))
    if model and model != SYNTHETIC_MODEL and acc.switch_model(model):
        blocks.append(ModelChangeBlock(model=model))

    usage: TokenUsage | None = None
    raw_usage = message.get("usage")
    if isinstance(raw_usage, dict):
        usage = TokenUsage(
            input_tokens=as_count(raw_usage.get("input_tokens")),
            output_tokens=as_count(raw_usage.get("output_tokens")),
            cache_read_tokens=as_count(raw_usage.get("cache_read_input_tokens")),
            cache_creation_tokens=as_count(raw_usage.get("cache_creation_input_tokens")),
        )
        acc.add_usage(usage)

    for part in as_list(message.get("content")):
        part = as_dict(part)
        match as_str(part.get("type")):
            case "text":
                text = as_str(part.get("text")).strip()
                if text:
                    blocks.append(TextBlock(text=text))
                    has_text = True
            case "thinking":
                thinking = as_str(part.get("thinking"))
                if thinking:
                    blocks.append(ThinkingBlock(text=thinking))
            case "tool_use":
                tool_id = as_str(part.get("id"))
                name = as_str(part.get("name"))
                tool_input = part.get("input")
                if tool_input is None:
                    tool_input = {}
                pending[tool_id] = (name, tool_input)
                blocks.append(ToolUseBlock(id=tool_id, name=name, input=tool_input))
            case _:
                continue

    if has_text:
        acc.assistant_messages += 1
    acc.append(Role.ASSISTANT, blocks, timestamp=ts, model=model, usage=usage)


def _is_markup(text: str) -> bool:
    return text.lstrip().startswith("<")


def extract_queue_summary(content: str) -> str:
    """Pull the ``<summary>`` span out of a queued task, else a short prefix."""
    match = _QUEUE_SUMMARY_RE.search(content)
    if match:
        return match.group(1).strip()
    return truncate_bytes(content, _QUEUE_FALLBACK_BYTES).strip()


def format_tool_input(tool_name: str, tool_input: Any) -> str:
    """Render a one-line summary of a Claude tool call."""
    args = as_dict(tool_input)
    match tool_name:
        case "Bash":
            command = ellipsize(as_str(args.get("command")), 200)
            return command.replace("\n", " ↵ ")
        case "Read" | "Write" | "Edit" | "MultiEdit":
            return f'file="{as_str(args.get("file_path"))}"'
        case "Glob" | "Grep":
            pattern = as_str(args.get("pattern"))
            path = as_optional_str(args.get("path"))
            if path is not None:
                return f'pattern="{pattern}" path="{path}"'
            return f'pattern="{pattern}"'
        case "Task":
            subagent = as_str(args.get("subagent_type"))
            description = as_str(args.get("description"))
            return f'{subagent}: "{description}"'
        case "WebFetch":
            return f'url="{as_str(args.get("url"))}"'
        case "WebSearch":
            return f'query="{as_str(args.get("query"))}"'
        case "TodoWrite" if isinstance(args.get("todos"), list):
            items = []
            for todo in as_list(args.get("todos")):
                todo = as_dict(todo)
                content = todo.get("content")
                status = todo.get("status")
                if isinstance(content, str) and isinstance(status, str):
                    items.append(f"{status}: {content}")
            return ellipsize("; ".join(items), 150)
        case _:
            return ellipsize(compact_json(tool_input), 150)
