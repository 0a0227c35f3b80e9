# src/cache/models.py — v2
"""Dedup cache domain models: ParsedReminder, CacheRecord, TaskCacheStats, DedupResult.

CacheRecord field aliases match the persisted ``submitted_tasks.json`` layout
(``task_hash``, ``microsoft_id``); Python code uses the attribute names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class ParsedReminder(BaseModel):
    """Reminder as handed over by the parsing collaborator.

    Only title/date/time/list feed the fingerprint. Everything else, including
    unknown extra fields, is carried along untouched.
    """

    model_config = ConfigDict(extra="allow")

    description: str = ""
    priority: str = "medium"
    title: str
    date: str = ""
    time: str = ""
    list: str = ""


class CacheRecord(BaseModel):
    """One successfully submitted reminder, keyed by its fingerprint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    fingerprint: str = Field(alias="task_hash")
    title: str
    date: str
    time: str
    list: str
    created_at: datetime
    external_id: str | None = Field(default=None, alias="microsoft_id")

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:  # noqa: N805
        """Older files may carry naive timestamps; treat them as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


# Whole-file (de)serializer for the persisted record array.
RECORD_LIST_ADAPTER: TypeAdapter[list[CacheRecord]] = TypeAdapter(list[CacheRecord])


class TaskCacheStats(BaseModel):
    """Snapshot statistics of the dedup cache."""

    total_records: int
    per_list_counts: dict[str, int] = Field(default_factory=dict)
    recent_count: int = 0
    cache_file: str
    ttl_days: float


class DedupResult(BaseModel):
    """Outcome of a duplicate check before submission."""

    is_duplicate: bool
    duplicate_type: Literal["cache", "none"] = "none"
    cache_hit: bool = False
    skip_reason: str | None = None
    suggested_action: Literal["skip", "create"] = "create"
    matched_record: CacheRecord | None = None
