"""Parser for OpenCode's fragmented JSON storage.

One session is spread over three trees under the storage root::

    session/<project_id>/<session_id>.json    session metadata
    message/<session_id>/<message_id>.json    one file per message
    part/<message_id>/<part_id>.json          one file per content part

Message ids carry no ordering, so messages are sorted by ``time.created``
after loading. A tool part records its invocation and its outcome together,
so no id pairing is needed here.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from result import Err, Ok, Result

from cassio.data._helpers import as_count, as_dict, as_optional_str, timestamp_from_millis
from cassio.data.accumulator import SessionAccumulator
from cassio.data.text import ellipsize
from cassio.models.failures import ParseFailure, session_not_found, unreadable
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

SESSION_PREFIX = "ses_"
_INJECTED_PREFIXES = ("<file>", "Called the")
_SUMMARY_BYTES = 100


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _OCTime(_Model):
    created: float | None = None
    updated: float | None = None
    completed: float | None = None


class _OCSession(_Model):
    id: str
    directory: str | None = None
    title: str | None = None
    version: str | None = None
    time: _OCTime | None = None


class _OCCache(_Model):
    read: float | None = None
    write: float | None = None


class _OCTokens(_Model):
    input: float | None = None
    output: float | None = None
    cache: _OCCache | None = None

    def usage(self) -> TokenUsage:
        cache = self.cache or _OCCache()
        return TokenUsage(
            input_tokens=as_count(self.input),
            output_tokens=as_count(self.output),
            cache_read_tokens=as_count(cache.read),
            cache_creation_tokens=as_count(cache.write),
        )


class _OCMessage(_Model):
    id: str
    role: str | None = None
    time: _OCTime | None = None
    model_id: str | None = Field(default=None, alias="modelID")
    cost: float | None = None
    tokens: _OCTokens | None = None

    @property
    def created(self) -> float:
        if self.time is None or self.time.created is None:
            return 0.0
        return self.time.created


class _OCPartMeta(_Model):
    exit: int | None = None
    description: str | None = None


class _OCPartState(_Model):
    status: str | None = None
    input: Any = None
    title: str | None = None
    metadata: _OCPartMeta | None = None


class _OCPart(_Model):
    type: str | None = None
    text: str | None = None
    synthetic: bool | None = None
    tool: str | None = None
    call_id: str | None = Field(default=None, alias="callID")
    state: _OCPartState | None = None


_FILE_TOOLS = {"read": "read", "write": "written", "edit": "edited"}


def parse_path(path: Path) -> Result[Session, ParseFailure]:
    """Parse a session from ``<storage>/message/ses_*`` or a storage root.

    Given a storage root, the first session in name order is parsed.
    """
    if path.name.startswith(SESSION_PREFIX) and path.parent.name == "message":
        return parse_storage_session(path.parent.parent, path.name)

    try:
        session_ids = list_session_ids(path)
    except OSError as exc:
        return Err(unreadable(str(path), exc))
    if not session_ids:
        return Err(session_not_found(str(path)))
    return parse_storage_session(path, session_ids[0])


def list_session_ids(storage_dir: Path) -> list[str]:
    """Session ids that have a message directory under ``storage_dir``."""
    message_dir = storage_dir / "message"
    if not message_dir.is_dir():
        return []
    return sorted(
        entry.name
        for entry in message_dir.iterdir()
        if entry.is_dir() and entry.name.startswith(SESSION_PREFIX)
    )


def parse_storage_session(storage_dir: Path, session_id: str) -> Result[Session, ParseFailure]:
    """Assemble one session from the three storage trees."""
    try:
        session_data = find_session_file(storage_dir, session_id)
        oc_messages = _load_all(storage_dir / "message" / session_id, _OCMessage)
        if session_data is None and not oc_messages:
            return Err(session_not_found(str(storage_dir / "message" / session_id)))
        oc_messages.sort(key=lambda msg: msg.created)
        parts_by_message = {
            msg.id: _load_all(storage_dir / "part" / msg.id, _OCPart) for msg in oc_messages
        }
    except OSError as exc:
        return Err(unreadable(str(storage_dir), exc))

    if session_data is None:
        # Metadata is optional; keep going with just the id.
        session_data = _OCSession(id=session_id)

    return Ok(_build_session(session_data, oc_messages, parts_by_message))


def find_session_file(storage_dir: Path, session_id: str) -> _OCSession | None:
    """Search every ``session/<project_id>/`` directory for the session file.

    The project id is not derivable from the session id, so this is a
    linear scan of the project layer.
    """
    session_root = storage_dir / "session"
    if not session_root.is_dir():
        return None
    for project_dir in sorted(session_root.iterdir()):
        candidate = project_dir / f"{session_id}.json"
        if not project_dir.is_dir() or not candidate.is_file():
            continue
        try:
            return _OCSession.model_validate_json(candidate.read_bytes())
        except ValidationError:
            logger.debug("Ignoring undecodable session file %s", candidate)
            return None
    return None


M = TypeVar("M", bound=BaseModel)


def _load_all(directory: Path, model: type[M]) -> list[M]:
    """Load every ``*.json`` file in ``directory``, skipping undecodable ones."""
    if not directory.is_dir():
        return []
    items: list[M] = []
    for path in sorted(directory.glob("*.json")):
        try:
            items.append(model.model_validate_json(path.read_bytes()))
        except ValidationError:
            logger.debug("Skipping undecodable %s file %s", model.__name__, path)
    return items


def _build_session(
    session_data: _OCSession,
    oc_messages: list[_OCMessage],
    parts_by_message: dict[str, list[_OCPart]],
) -> Session:
    acc = SessionAccumulator()

    session_created = (
        timestamp_from_millis(session_data.time.created) if session_data.time else None
    )
    # Start of the duration only; the end comes from message timestamps.
    acc.first_timestamp = session_created

    for oc_msg in oc_messages:
        time = oc_msg.time or _OCTime()
        created = timestamp_from_millis(time.created)
        if acc.first_timestamp is None:
            acc.observe_timestamp(created)
        msg_ts = timestamp_from_millis(time.completed) or created
        acc.observe_timestamp(msg_ts)

        usage = oc_msg.tokens.usage() if oc_msg.tokens else None
        if usage is not None:
            acc.add_usage(usage)
        if oc_msg.cost is not None:
            acc.total_cost += oc_msg.cost

        if acc.switch_model(oc_msg.model_id):
            acc.append(
                Role.SYSTEM,
                [ModelChangeBlock(model=oc_msg.model_id)],
                timestamp=msg_ts,
                model=oc_msg.model_id,
            )

        parts = parts_by_message.get(oc_msg.id, [])
        match oc_msg.role:
            case "user":
                _add_user(parts, msg_ts, acc)
            case "assistant":
                _add_assistant(parts, msg_ts, usage, acc)
            case _:
                continue

    started_at = session_created or acc.first_timestamp or datetime.now(UTC)
    metadata = SessionMetadata(
        session_id=session_data.id,
        tool=Tool.OPENCODE,
        project_path=session_data.directory or "",
        started_at=started_at,
        version=session_data.version,
        title=session_data.title,
    )
    return acc.finish(metadata)


def _add_user(parts: list[_OCPart], ts: datetime | None, acc: SessionAccumulator) -> None:
    blocks: list[ContentBlock] = []
    for part in parts:
        if part.type != "text" or part.synthetic or part.text is None:
            continue
        if part.text.startswith(_INJECTED_PREFIXES) or part.text.lstrip().startswith("<"):
            continue
        text = part.text.strip()
        if text:
            blocks.append(TextBlock(text=text))
    if blocks:
        acc.user_messages += 1
    acc.append(Role.USER, blocks, timestamp=ts)


def _add_assistant(
    parts: list[_OCPart],
    ts: datetime | None,
    usage: TokenUsage | None,
    acc: SessionAccumulator,
) -> None:
    blocks: list[ContentBlock] = []
    has_text = False
    for part in parts:
        match part.type:
            case "text":
                text = (part.text or "").strip()
                if text:
                    blocks.append(TextBlock(text=text))
                    has_text = True
            case "reasoning":
                if part.text and part.text.strip():
                    blocks.append(ThinkingBlock(text=part.text))
            case "tool" if part.state is not None:
                blocks.append(_tool_result(part, part.state, acc))
            case _:
                continue

    if acc.append(Role.ASSISTANT, blocks, timestamp=ts, model=acc.current_model, usage=usage):
        if has_text:
            acc.assistant_messages += 1


def _tool_result(part: _OCPart, state: _OCPartState, acc: SessionAccumulator) -> ToolResultBlock:
    exit_code = state.metadata.exit if state.metadata else None
    success = not ((exit_code is not None and exit_code != 0) or state.status == "error")
    acc.record_tool_result(success)

    tool_name = part.tool or "unknown"
    file_path = as_optional_str(as_dict(state.input).get("filePath"))
    if success and file_path:
        match _FILE_TOOLS.get(tool_name):
            case "read":
                acc.files_read.add(file_path)
            case "written":
                acc.files_written.add(file_path)
            case "edited":
                acc.files_edited.add(file_path)
            case _:
                pass

    description = state.title or (state.metadata.description if state.metadata else None) or ""
    return ToolResultBlock(
        tool_use_id=part.call_id or "",
        name=tool_name,
        success=success,
        summary=ellipsize(description, _SUMMARY_BYTES),
    )
