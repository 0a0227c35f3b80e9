# src/cache/fingerprint.py — v3
"""Reminder fingerprinting for submission deduplication.

A fingerprint is the SHA-256 of ``title|date|time|list``. Date and time are
opaque strings: "09:30" and "9:30" are different reminders.
"""

from __future__ import annotations

import hashlib
from typing import Protocol

FIELD_SEPARATOR = "|"


class ReminderLike(Protocol):
    """Anything exposing the four dedup-relevant reminder fields."""

    title: str
    date: str
    time: str
    list: str


def compute_fingerprint(reminder: ReminderLike) -> str:
    """Return the hex SHA-256 fingerprint of a reminder.

    Stable across processes: depends only on the four field values.
    """
    data = FIELD_SEPARATOR.join(
        (reminder.title, reminder.date, reminder.time, reminder.list)
    )
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def short_hash(fingerprint: str, length: int = 8) -> str:
    """Abbreviated fingerprint for log lines."""
    return fingerprint[:length]
