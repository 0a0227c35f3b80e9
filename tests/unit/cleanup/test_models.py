# tests/unit/cleanup/test_models.py — v1
"""Tests for cleanup/models.py — options and summaries."""

from __future__ import annotations

from reminder_cache.cleanup.models import CleanOptions, CleanResult, CleanSummary, CleanTarget


class TestCleanOptions:
    def test_nothing_selected_means_all(self):
        assert CleanOptions().selected_targets() == list(CleanTarget)

    def test_all_includes_image_hashes(self):
        assert CleanTarget.IMAGE_HASHES in CleanOptions(all=True).selected_targets()

    def test_explicit_selection_keeps_order(self):
        opts = CleanOptions(temp=True, tasks=True)
        assert opts.selected_targets() == [CleanTarget.TASKS, CleanTarget.TEMP]

    def test_force_does_not_imply_clear_all(self):
        assert CleanOptions(force=True).clear_all is False


class TestCleanSummary:
    def test_totals(self):
        summary = CleanSummary(results=[
            CleanResult(category="tasks", files_count=2, size_bytes=100),
            CleanResult(category="temp", files_count=3, size_bytes=50, error="boom"),
        ])
        assert summary.total_files == 5
        assert summary.total_bytes == 150
        assert [r.category for r in summary.errors] == ["temp"]
