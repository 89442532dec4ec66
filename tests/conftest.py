"""Shared fixtures for cassio tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from helpers import OpenCodeStorage


@pytest.fixture
def opencode_storage(tmp_path: Path) -> OpenCodeStorage:
    """Empty OpenCode storage root under a path containing 'opencode'."""
    root = tmp_path / "opencode" / "storage"
    root.mkdir(parents=True)
    return OpenCodeStorage(root)


@pytest.fixture
def write_jsonl(tmp_path: Path) -> Callable[[str, list[str]], Path]:
    """Write lines to a JSONL file under tmp_path and return its path."""

    def _write(name: str, lines: list[str]) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
