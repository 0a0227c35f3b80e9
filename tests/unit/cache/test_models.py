# tests/unit/cache/test_models.py — v2
"""Tests for cache/models.py — reminder, record and dedup models."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from reminder_cache.cache.models import (
    RECORD_LIST_ADAPTER,
    CacheRecord,
    DedupResult,
    ParsedReminder,
)


class TestParsedReminder:
    def test_defaults(self):
        r = ParsedReminder(title="Buy milk")
        assert r.date == ""
        assert r.list == ""
        assert r.priority == "medium"

    def test_extra_fields_kept(self):
        r = ParsedReminder(title="x", location="Room 4")
        assert r.model_extra == {"location": "Room 4"}

    def test_title_required(self):
        with pytest.raises(ValidationError):
            ParsedReminder()


class TestCacheRecord:
    def _record(self, **kw):
        data = {
            "fingerprint": "ab" * 32,
            "title": "Standup",
            "date": "2024-12-25",
            "time": "09:30",
            "list": "Work",
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        }
        data.update(kw)
        return CacheRecord(**data)

    def test_serializes_with_file_aliases(self):
        dumped = json.loads(self._record(external_id="ext-1").model_dump_json(by_alias=True))
        assert dumped["task_hash"] == "ab" * 32
        assert dumped["microsoft_id"] == "ext-1"
        assert "fingerprint" not in dumped

    def test_parses_from_file_aliases(self):
        rec = CacheRecord.model_validate({
            "task_hash": "cd" * 32,
            "title": "t", "date": "", "time": "", "list": "",
            "created_at": "2025-01-01T08:00:00Z",
            "microsoft_id": "m-1",
        })
        assert rec.fingerprint == "cd" * 32
        assert rec.external_id == "m-1"

    def test_naive_timestamp_is_utc(self):
        rec = self._record(created_at=datetime(2025, 1, 1, 8, 0))
        assert rec.created_at.tzinfo is timezone.utc

    def test_frozen(self):
        rec = self._record()
        with pytest.raises(ValidationError):
            rec.title = "changed"

    def test_list_adapter_round_trip(self):
        records = [self._record(), self._record(fingerprint="ef" * 32)]
        raw = RECORD_LIST_ADAPTER.dump_json(records, by_alias=True)
        assert RECORD_LIST_ADAPTER.validate_json(raw) == records


class TestDedupResult:
    def test_defaults_mean_create(self):
        r = DedupResult(is_duplicate=False)
        assert r.suggested_action == "create"
        assert r.duplicate_type == "none"
        assert r.matched_record is None

    def test_invalid_action(self):
        with pytest.raises(ValidationError):
            DedupResult(is_duplicate=True, suggested_action="delete")
