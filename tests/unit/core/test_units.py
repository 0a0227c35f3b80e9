# tests/unit/core/test_units.py — v1
"""Tests for core/units.py — byte size parsing and formatting."""

from __future__ import annotations

import pytest

from reminder_cache.core.units import format_bytes, parse_size


class TestParseSize:
    def test_mb(self):
        assert parse_size("10MB") == 10 * 1024 * 1024

    def test_kb(self):
        assert parse_size("512KB") == 512 * 1024

    def test_gb(self):
        assert parse_size("1GB") == 1024 * 1024 * 1024

    def test_bytes(self):
        assert parse_size("100B") == 100

    def test_case_insensitive(self):
        assert parse_size("10mb") == 10 * 1024 * 1024

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="Invalid size"):
            parse_size("10bytes")

    def test_empty_string(self):
        with pytest.raises(ValueError):
            parse_size("")


class TestFormatBytes:
    def test_small(self):
        assert format_bytes(512) == "512 B"

    def test_kb(self):
        assert format_bytes(1536) == "1.5 KB"

    def test_mb(self):
        assert format_bytes(10 * 1024 * 1024) == "10.0 MB"
