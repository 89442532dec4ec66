"""Byte-bounded text helpers used for tool-call summaries."""

from __future__ import annotations


def _utf8_len(char: str) -> int:
    # Lone surrogates can come out of json.loads; count them as three bytes.
    return len(char.encode("utf-8", "surrogatepass"))


def truncate_bytes(text: str, max_bytes: int) -> str:
    """Return the longest prefix of ``text`` whose UTF-8 form fits ``max_bytes``.

    Cuts only between characters, so a multi-byte character is never split.
    """
    if len(text) * 4 <= max_bytes:
        return text
    size = 0
    for index, char in enumerate(text):
        size += _utf8_len(char)
        if size > max_bytes:
            return text[:index]
    return text


def ellipsize(text: str, max_bytes: int) -> str:
    """Truncate to ``max_bytes`` and append ``...`` when anything was cut."""
    truncated = truncate_bytes(text, max_bytes)
    if truncated == text:
        return text
    return f"{truncated}..."
