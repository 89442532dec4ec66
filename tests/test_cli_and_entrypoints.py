"""CLI and entrypoint tests."""

from __future__ import annotations

import json
import runpy
from pathlib import Path

from helpers import claude_record, codex_meta, codex_record, user_text
from typer.testing import CliRunner

from cassio.cli import app

runner = CliRunner()

CLAUDE_LINES = [claude_record("user", "2025-01-15T10:00:00Z", user_text("hello"))]


def test_parse_file_prints_session_json(write_jsonl) -> None:
    path = write_jsonl("session.jsonl", CLAUDE_LINES)
    result = runner.invoke(app, ["parse", str(path)])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["metadata"]["tool"] == "claude"
    assert data["stats"]["user_messages"] == 1
    assert data["messages"][0]["content"][0] == {"type": "text", "text": "hello"}


def test_parse_indent_zero_is_one_line(write_jsonl) -> None:
    path = write_jsonl("session.jsonl", CLAUDE_LINES)
    result = runner.invoke(app, ["parse", str(path), "--indent", "0", "--verbose"])
    assert result.exit_code == 0
    assert len(result.stdout.strip().splitlines()) == 1


def test_parse_reads_stdin() -> None:
    lines = [
        codex_record("session_meta", "2025-01-15T10:00:00Z", codex_meta("s7")),
        codex_record("event_msg", "2025-01-15T10:00:01Z", {"type": "user_message", "message": "x"}),
    ]
    result = runner.invoke(app, ["parse"], input="\n".join(lines) + "\n")
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["metadata"]["tool"] == "codex"
    assert data["metadata"]["session_id"] == "s7"


def test_parse_with_explicit_tool() -> None:
    result = runner.invoke(
        app, ["parse", "--tool", "claude_desktop"], input="\n".join(CLAUDE_LINES)
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["metadata"]["tool"] == "claude_desktop"


def test_parse_empty_stdin_fails() -> None:
    result = runner.invoke(app, ["parse"], input="")
    assert result.exit_code == 1
    assert "No input: <stdin>" in result.output


def test_parse_unknown_file_fails(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    result = runner.invoke(app, ["parse", str(path)])
    assert result.exit_code == 1
    assert "Unknown format" in result.output


def test_detect_prints_tool(write_jsonl) -> None:
    path = write_jsonl("rollout-2025-01-15.jsonl", [])
    result = runner.invoke(app, ["detect", str(path)])
    assert result.exit_code == 0
    assert result.stdout.strip() == "codex"


def test_detect_failure(tmp_path: Path) -> None:
    result = runner.invoke(app, ["detect", str(tmp_path / "missing.jsonl")])
    assert result.exit_code == 1
    assert "Cannot read input" in result.output


def test_sources_lists_existing_directories(tmp_path: Path) -> None:
    (tmp_path / ".codex" / "sessions").mkdir(parents=True)
    (tmp_path / ".claude" / "projects").mkdir(parents=True)
    result = runner.invoke(app, ["sources", "--home", str(tmp_path)])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        f"claude\t{tmp_path / '.claude' / 'projects'}",
        f"codex\t{tmp_path / '.codex' / 'sessions'}",
    ]


def test_sources_when_nothing_exists(tmp_path: Path) -> None:
    result = runner.invoke(app, ["sources", "--home", str(tmp_path)])
    assert result.exit_code == 0
    assert "No session sources found." in result.stdout


def test_python_module_entrypoint_invokes_cli_app(monkeypatch) -> None:
    called = {"count": 0}

    def fake_app() -> None:
        called["count"] += 1

    monkeypatch.setattr("cassio.cli.app", fake_app)
    runpy.run_module("cassio.__main__", run_name="__main__")
    assert called["count"] == 1
