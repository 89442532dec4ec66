"""Record and storage builders shared by the cassio tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

SESSION_ID = "11111111-2222-3333-4444-555555555555"


def claude_record(record_type: str, timestamp: str, message: Any = None, **extra: Any) -> str:
    """One Claude JSONL line with the common envelope fields filled in."""
    record: dict[str, Any] = {
        "type": record_type,
        "sessionId": SESSION_ID,
        "timestamp": timestamp,
        "cwd": "/home/dev/project",
        "version": "2.0.14",
        "gitBranch": "main",
    }
    if message is not None:
        record["message"] = message
    record.update(extra)
    return json.dumps(record)


def user_text(text: str | list[Any]) -> dict[str, Any]:
    return {"role": "user", "content": text}


def assistant_parts(*parts: dict[str, Any], model: str | None = "claude-sonnet-4-5", usage=None):
    message: dict[str, Any] = {"role": "assistant", "content": list(parts)}
    if model is not None:
        message["model"] = model
    if usage is not None:
        message["usage"] = usage
    return message


def codex_record(record_type: str, timestamp: str, payload: dict[str, Any]) -> str:
    return json.dumps({"timestamp": timestamp, "type": record_type, "payload": payload})


def codex_meta(session_id: str = "s1", cwd: str = "/proj") -> dict[str, Any]:
    return {
        "id": session_id,
        "cwd": cwd,
        "cli_version": "0.46.0",
        "git": {"branch": "main"},
    }


class OpenCodeStorage:
    """Builder for an on-disk OpenCode storage tree."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _write(self, path: Path, data: dict[str, Any] | str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return path

    def session(self, session_id: str, project_id: str = "proj_abc", **fields: Any) -> Path:
        data = {"id": session_id, **fields}
        return self._write(self.root / "session" / project_id / f"{session_id}.json", data)

    def message(self, session_id: str, message_id: str, **fields: Any) -> Path:
        data = {"id": message_id, "sessionID": session_id, **fields}
        return self._write(self.root / "message" / session_id / f"{message_id}.json", data)

    def part(self, message_id: str, part_id: str, **fields: Any) -> Path:
        data = {"id": part_id, "messageID": message_id, **fields}
        return self._write(self.root / "part" / message_id / f"{part_id}.json", data)

    def raw_message(self, session_id: str, name: str, text: str) -> Path:
        return self._write(self.root / "message" / session_id / name, text)

    def message_dir(self, session_id: str) -> Path:
        return self.root / "message" / session_id

