"""Shared utilities used across the booking engine."""

import re
from typing import Iterable, Optional, Union

TagSource = Union[str, Iterable[str], None]

MINUTES_PER_DAY = 24 * 60
_HHMM = re.compile(r"^\d{2}:\d{2}$")


def is_hhmm(value: str) -> bool:
    """Check that a string looks like ``HH:MM`` and is a real clock time."""
    if not isinstance(value, str) or not _HHMM.match(value):
        return False
    hours, minutes = (int(part) for part in value.split(":"))
    return hours < 24 and minutes < 60


def to_minutes(value: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight.

    Examples:
        >>> to_minutes("00:00")
        0
        >>> to_minutes("21:30")
        1290
    """
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def window_minutes(start_time: str, end_time: str, crosses_midnight: bool) -> int:
    """Length of a window in minutes, wrapping past midnight when flagged."""
    start, end = to_minutes(start_time), to_minutes(end_time)
    if crosses_midnight:
        return (MINUTES_PER_DAY - start) + end
    return end - start


def _to_list(source: TagSource) -> list[str]:
    if not source:
        return []
    if isinstance(source, str):
        source = source.split(",")
    return [item.strip() for item in source if item and item.strip()]


def merge_tags(*sources: TagSource) -> list[str]:
    """Merge tag inputs into one canonical list.

    Each source may be a list or a comma-separated string. Entries are
    trimmed and deduplicated case-insensitively, keeping the first spelling.

    Examples:
        >>> merge_tags(["Rock", "jazz"], "rock, Blues")
        ['Rock', 'jazz', 'Blues']
    """
    seen: set[str] = set()
    merged: list[str] = []
    for source in sources:
        for value in _to_list(source):
            key = value.lower()
            if key not in seen:
                seen.add(key)
                merged.append(value)
    return merged


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace and collapse empty strings to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
