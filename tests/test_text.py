"""Tests for byte-safe truncation."""

from __future__ import annotations

import pytest

from cassio.data.text import ellipsize, truncate_bytes

SAMPLES = ["", "hello", "héllo wörld", "日本語のテキスト", "emoji 🎉🎉 done", "ábc"]


def test_short_text_is_unchanged() -> None:
    assert truncate_bytes("hello", 10) == "hello"
    assert truncate_bytes("hello", 5) == "hello"


def test_ascii_cut() -> None:
    assert truncate_bytes("hello world", 5) == "hello"


def test_does_not_split_multibyte_character() -> None:
    # "é" is two bytes; a 2-byte bound cannot hold "hé".
    assert truncate_bytes("hé", 2) == "h"
    assert truncate_bytes("日本", 4) == "日"
    assert truncate_bytes("🎉", 3) == ""


def test_zero_and_negative_bounds() -> None:
    assert truncate_bytes("abc", 0) == ""
    assert truncate_bytes("abc", -1) == ""


@pytest.mark.parametrize("text", SAMPLES)
@pytest.mark.parametrize("limit", [0, 1, 2, 3, 5, 8, 13])
def test_idempotent_and_within_bound(text: str, limit: int) -> None:
    once = truncate_bytes(text, limit)
    assert truncate_bytes(once, limit) == once
    assert len(once.encode("utf-8")) <= limit
    assert text.startswith(once)


def test_longest_prefix() -> None:
    text = "aé日🎉"
    # byte lengths: 1, 2, 3, 4
    assert truncate_bytes(text, 6) == "aé日"
    assert truncate_bytes(text, 9) == "aé日"
    assert truncate_bytes(text, 10) == text


def test_lone_surrogate_does_not_raise() -> None:
    assert truncate_bytes("ab\ud800cd", 3) == "ab"


def test_ellipsize() -> None:
    assert ellipsize("short", 10) == "short"
    assert ellipsize("abcdefghij", 4) == "abcd..."
    assert ellipsize("日本語", 5) == "日..."
