# src/cleanup/age_filter.py — v2
"""``--older-than`` parsing: ``<int><unit>`` with unit d, h or m."""

from __future__ import annotations

import re
from datetime import datetime, timedelta

_OLDER_THAN_RE = re.compile(r"^(\d+)([dhm])$")

_UNITS = {
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
}


def parse_older_than(value: str | None) -> timedelta | None:
    """Convert "7d" / "12h" / "30m" to a timedelta. Empty means no filter.

    Raises:
        ValueError: Malformed value, or an age timedelta cannot represent.
    """
    if not value:
        return None
    match = _OLDER_THAN_RE.match(value.strip())
    if match is None:
        raise ValueError(
            f"Invalid older-than value {value!r}: expected <number><d|h|m>, e.g. 7d"
        )
    amount, unit = match.groups()
    try:
        return int(amount) * _UNITS[unit]
    except OverflowError as exc:
        raise ValueError(f"older-than value {value!r} is out of range") from exc


def cutoff_for(value: str | None, now: datetime) -> datetime | None:
    """Instant before which entries qualify, or None for no restriction.

    Raises:
        ValueError: See ``parse_older_than``; also raised when the age
            reaches back past the earliest representable date.
    """
    age = parse_older_than(value)
    if age is None:
        return None
    try:
        return now - age
    except OverflowError as exc:
        raise ValueError(f"older-than value {value!r} is out of range") from exc


def qualifies(timestamp: datetime, cutoff: datetime | None) -> bool:
    """True when the entry is not newer than the cutoff."""
    return cutoff is None or timestamp <= cutoff
