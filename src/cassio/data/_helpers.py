"""Lenient coercion helpers for loosely-typed JSON records."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def as_optional_str(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def as_dict(value: object) -> dict[str, object]:
    return value if isinstance(value, dict) else {}


def as_list(value: object) -> list[object]:
    return value if isinstance(value, list) else []


def as_count(val: object) -> int:
    """Coerce a token counter; anything unusable or negative becomes 0."""
    if isinstance(val, bool):
        return 0
    if isinstance(val, int):
        return max(val, 0)
    if isinstance(val, float) and val == val and val not in (float("inf"), float("-inf")):
        return max(int(val), 0)
    return 0


def as_number(val: object) -> float | None:
    if isinstance(val, bool):
        return None
    if isinstance(val, int | float):
        return float(val)
    return None


def load_json_object(text: str) -> dict[str, object] | None:
    """Decode ``text`` as a JSON object, or return None."""
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def compact_json(value: object) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return ""


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def timestamp_from_millis(value: object) -> datetime | None:
    """Convert Unix milliseconds to UTC.

    Floor division keeps pre-epoch values correct; values outside the
    ``datetime`` range give None.
    """
    millis = as_number(value)
    if millis is None:
        return None
    try:
        secs, rem = divmod(int(millis), 1000)
        return _EPOCH + timedelta(seconds=secs, milliseconds=rem)
    except (OverflowError, ValueError):
        return None
