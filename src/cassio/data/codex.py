"""Parser for OpenAI Codex ``rollout-*.jsonl`` session logs.

Every line uses the envelope ``{timestamp, type, payload}``:

- ``session_meta``: one-time header (id, cwd, cli_version, git)
- ``turn_context``: model for the upcoming turn
- ``event_msg``: user input and token counters
- ``response_item``: assistant output, reasoning, function calls and outputs

Function calls span two ``response_item`` records joined by ``call_id``.
User-role ``response_item`` messages repeat the ``event_msg`` input and are
ignored.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError
from result import Err, Ok, Result

from cassio.data._helpers import (
    as_count,
    as_dict,
    as_list,
    as_optional_str,
    as_str,
    compact_json,
    load_json_object,
    parse_timestamp,
)
from cassio.data.accumulator import SessionAccumulator
from cassio.data.text import ellipsize
from cassio.models.failures import ParseFailure, empty_session, unreadable
from cassio.models.session import (
    ContentBlock,
    ModelChangeBlock,
    Role,
    Session,
    SessionMetadata,
    TextBlock,
    ThinkingBlock,
    TokenUsage,
    Tool,
    ToolResultBlock,
)

logger = logging.getLogger(__name__)

_CONTEXT_BLOCK_RE = re.compile(r'<context ref=".*?</context>', re.DOTALL)
_FILE_REF_RE = re.compile(r"\[@[^\]]*\]\([^)]*\)\s*")
_READ_COMMANDS = ("cat ", "less ", "head ", "tail ", "bat ")
_PATH_TERMINATORS = re.compile(r"[\s'\"|>]")
_PATCH_FILE_RE = re.compile(r"^\*\*\* (Add|Update|Delete) File: (.+)$", re.MULTILINE)


class _Record(BaseModel):
    timestamp: str
    type: str
    payload: Any = None


def parse_file(path: Path) -> Result[Session, ParseFailure]:
    """Parse a Codex rollout file."""
    try:
        with open(path, encoding="utf-8", errors="replace") as file:
            return parse_lines(file, source=str(path))
    except OSError as exc:
        return Err(unreadable(str(path), exc))


def parse_lines(lines: Iterable[str], *, source: str = "") -> Result[Session, ParseFailure]:
    """Parse Codex records from any line source."""
    metadata: SessionMetadata | None = None
    acc = SessionAccumulator()
    # call_id -> (function name, raw arguments)
    pending: dict[str, tuple[str, str]] = {}

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
        payload = as_dict(record.payload)

        match record.type:
            case "session_meta":
                if metadata is None:
                    metadata = _metadata_from(payload, ts)
            case "turn_context":
                model = as_optional_str(payload.get("model"))
                if acc.switch_model(model):
                    acc.append(
                        Role.SYSTEM,
                        [ModelChangeBlock(model=model)],
                        timestamp=ts,
                        model=model,
                    )
            case "event_msg":
                _parse_event(payload, ts, acc)
            case "response_item":
                _parse_response_item(payload, ts, acc, pending)
            case _:
                continue

    if metadata is None:
        return Err(empty_session(source, "No session_meta record found"))
    return Ok(acc.finish(metadata))


def _metadata_from(payload: dict[str, object], ts: datetime | None) -> SessionMetadata:
    started_at = parse_timestamp(payload.get("timestamp")) or ts or datetime.now(UTC)
    return SessionMetadata(
        session_id=as_str(payload.get("id")),
        tool=Tool.CODEX,
        project_path=as_str(payload.get("cwd")),
        started_at=started_at,
        version=as_optional_str(payload.get("cli_version")),
        git_branch=as_optional_str(as_dict(payload.get("git")).get("branch")),
    )


def _parse_event(payload: dict[str, object], ts: datetime | None, acc: SessionAccumulator) -> None:
    match as_str(payload.get("type")):
        case "user_message":
            text = clean_user_message(as_str(payload.get("message")))
            # Injected instructions (<user_instructions>, <environment_context>, ...)
            if text and not text.startswith("<"):
                acc.user_messages += 1
                acc.append(Role.USER, [TextBlock(text=text)], timestamp=ts)
        case "token_count":
            last = as_dict(as_dict(payload.get("info")).get("last_token_usage"))
            if last:
                acc.add_usage(
                    TokenUsage(
                        input_tokens=as_count(last.get("input_tokens")),
                        output_tokens=as_count(last.get("output_tokens")),
                        cache_read_tokens=as_count(last.get("cached_input_tokens")),
                    )
                )
        case _:
            return


def _parse_response_item(
    payload: dict[str, object],
    ts: datetime | None,
    acc: SessionAccumulator,
    pending: dict[str, tuple[str, str]],
) -> None:
    match as_str(payload.get("type")):
        case "message":
            if as_str(payload.get("role")) != "assistant":
                return
            blocks: list[ContentBlock] = []
            for part in as_list(payload.get("content")):
                part = as_dict(part)
                if as_str(part.get("type")) != "output_text":
                    continue
                text = as_str(part.get("text")).strip()
                if text:
                    blocks.append(TextBlock(text=text))
            if blocks:
                acc.assistant_messages += 1
            acc.append(Role.ASSISTANT, blocks, timestamp=ts, model=acc.current_model)
        case "reasoning":
            thinking = _reasoning_summary(payload)
            if thinking:
                acc.append(
                    Role.ASSISTANT,
                    [ThinkingBlock(text=thinking)],
                    timestamp=ts,
                    model=acc.current_model,
                )
        case "function_call":
            call_id = as_str(payload.get("call_id"))
            if call_id:
                arguments = payload.get("arguments")
                if not isinstance(arguments, str):
                    arguments = compact_json(arguments) if arguments is not None else "{}"
                pending[call_id] = (as_str(payload.get("name")), arguments)
        case "custom_tool_call":
            call_id = as_str(payload.get("call_id"))
            if call_id:
                pending[call_id] = (as_str(payload.get("name")), as_str(payload.get("input")))
        case "function_call_output" | "custom_tool_call_output":
            call_id = as_str(payload.get("call_id"))
            invocation = pending.pop(call_id, None)
            if invocation is None:
                return
            name, arguments = invocation
            success = not _output_failed(payload.get("output"))
            acc.record_tool_result(success)
            if success:
                _track_files(name, arguments, acc)
            acc.append(
                Role.ASSISTANT,
                [
                    ToolResultBlock(
                        tool_use_id=call_id,
                        name=name,
                        success=success,
                        summary=format_codex_function(name, arguments),
                    )
                ],
                timestamp=ts,
                model=acc.current_model,
            )
        case _:
            return


def _reasoning_summary(payload: dict[str, object]) -> str:
    parts = []
    for item in as_list(payload.get("summary")):
        text = as_str(as_dict(item).get("text")).strip()
        if text:
            parts.append(text)
    return "\n".join(parts)


def _output_failed(output: object) -> bool:
    """True when the JSON-encoded output reports a non-zero exit code."""
    if isinstance(output, dict):
        data = output
    else:
        data = load_json_object(as_str(output)) or {}
    exit_code = data.get("exit_code")
    if exit_code is None:
        exit_code = as_dict(data.get("metadata")).get("exit_code")
    return isinstance(exit_code, int) and not isinstance(exit_code, bool) and exit_code != 0


def _shell_command(arguments: str) -> str:
    command = (load_json_object(arguments) or {}).get("command")
    if isinstance(command, list):
        return " ".join(item for item in command if isinstance(item, str))
    return as_str(command)


def _track_files(name: str, arguments: str, acc: SessionAccumulator) -> None:
    match name:
        case "shell":
            acc.files_read.update(read_paths_from_command(_shell_command(arguments)))
        case "apply_patch":
            for action, path in _patch_targets(arguments):
                if action == "Add":
                    acc.files_written.add(path)
                elif action == "Update":
                    acc.files_edited.add(path)
        case "read_file":
            path = as_optional_str((load_json_object(arguments) or {}).get("path"))
            if path:
                acc.files_read.add(path)
        case "write_file":
            path = as_optional_str((load_json_object(arguments) or {}).get("path"))
            if path:
                acc.files_written.add(path)
        case _:
            return


def read_paths_from_command(command: str) -> list[str]:
    """Best-effort file paths read by ``cat``/``less``/``head``/``tail``/``bat``.

    Only the first argument after each command word is taken; reads through
    pipes or aliases are missed.
    """
    paths = []
    for word in _READ_COMMANDS:
        idx = command.find(word)
        if idx < 0:
            continue
        rest = command[idx + len(word) :].lstrip("'\"")
        terminator = _PATH_TERMINATORS.search(rest)
        path = rest[: terminator.start()] if terminator else rest
        if path:
            paths.append(path)
    return paths


def _patch_targets(arguments: str) -> list[tuple[str, str]]:
    patch = arguments
    decoded = load_json_object(arguments)
    if decoded is not None:
        patch = as_str(decoded.get("input")) or as_str(decoded.get("patch"))
    return [(action, path.strip()) for action, path in _PATCH_FILE_RE.findall(patch)]


def clean_user_message(message: str) -> str:
    """Drop inline ``<context ref=...>`` blocks and ``[@file](url)`` references."""
    text = _CONTEXT_BLOCK_RE.sub("", message)
    text = _FILE_REF_RE.sub("", text)
    return text.strip()


def format_codex_function(name: str, arguments: str) -> str:
    """Render a one-line summary of a Codex function call."""
    match name:
        case "shell":
            return ellipsize(_shell_command(arguments), 200).replace("\n", " ")
        case "apply_patch":
            targets = _patch_targets(arguments)
            if targets:
                rendered = ", ".join(f"{action.lower()} {path}" for action, path in targets)
                return ellipsize(rendered, 150)
            return ellipsize(arguments.replace("\n", " "), 150)
        case "read_file" | "write_file":
            path = as_str((load_json_object(arguments) or {}).get("path"))
            return f'file="{path}"'

    args: dict[str, object] = load_json_object(arguments) or {}
    if name == "update_plan" and isinstance(args.get("plan"), list):
        steps = []
        for item in as_list(args.get("plan")):
            item = as_dict(item)
            step = item.get("step")
            status = item.get("status")
            if isinstance(step, str) and isinstance(status, str):
                steps.append(f"{status}: {step}")
        return ellipsize("; ".join(steps), 150)
    return ellipsize(compact_json(args), 150)
