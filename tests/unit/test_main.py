# tests/unit/test_main.py — v2
"""Tests for main.py — CLI entry point."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from reminder_cache.main import _build_parser, main


@pytest.fixture
def cli_env(tmp_path, monkeypatch) -> Path:
    """Point every configurable path at tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TO_ICALENDAR_CACHE_DIR", str(tmp_path / "cache_root"))
    monkeypatch.setenv("TO_ICALENDAR_TEMP_DIR", str(tmp_path / "temp"))
    monkeypatch.setenv("TO_ICALENDAR_LEGACY_ROOT", str(tmp_path / "app"))
    monkeypatch.setenv("TO_ICALENDAR_GENERATED_DIR", str(tmp_path / "work"))
    (tmp_path / "app").mkdir()
    (tmp_path / "work").mkdir()
    return tmp_path


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_version_flag(self):
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_clean_flags(self):
        args = _build_parser().parse_args(
            ["clean", "--images", "--image-hashes", "--older-than", "7d", "--dry-run"]
        )
        assert args.command == "clean"
        assert args.images is True
        assert args.image_hashes is True
        assert args.older_than == "7d"
        assert args.clear_all is False

    def test_migrate_flags(self):
        args = _build_parser().parse_args(
            ["migrate", "--skip-existing", "--force-overwrite", "--legacy-root", "/old"]
        )
        assert args.skip_existing is True
        assert args.force_overwrite is True
        assert args.legacy_root == Path("/old")

    def test_global_cache_dir(self):
        args = _build_parser().parse_args(["--cache-dir", "/c", "stats"])
        assert args.cache_dir == Path("/c")


# ---------------------------------------------------------------------------
# Command tests
# ---------------------------------------------------------------------------

class TestMain:
    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_stats(self, cli_env, capsys):
        assert main(["stats"]) == 0
        out = capsys.readouterr().out
        assert "Records:      0" in out
        assert "images" in out

    def test_stats_reports_dedup_disabled(self, cli_env, monkeypatch, capsys):
        monkeypatch.setenv("TO_ICALENDAR_DEDUP_ENABLED", "false")
        assert main(["stats"]) == 0
        assert "Dedup:        disabled" in capsys.readouterr().out

    def test_clean_dry_run_keeps_files(self, cli_env, capsys):
        temp_file = cli_env / "temp" / "a.tmp"
        temp_file.parent.mkdir()
        temp_file.write_text("x")
        assert main(["clean", "--temp", "--dry-run"]) == 0
        assert temp_file.exists()
        assert "Cleanup preview" in capsys.readouterr().out

    def test_clean_force(self, cli_env):
        temp_file = cli_env / "temp" / "a.tmp"
        temp_file.parent.mkdir()
        temp_file.write_text("x")
        assert main(["clean", "--temp", "--force"]) == 0
        assert not temp_file.exists()

    def test_clean_confirmation_declined(self, cli_env, monkeypatch, capsys):
        temp_file = cli_env / "temp" / "a.tmp"
        temp_file.parent.mkdir()
        temp_file.write_text("x")
        monkeypatch.setattr("builtins.input", lambda prompt: "n")
        assert main(["clean", "--temp"]) == 0
        assert temp_file.exists()
        assert "Cancelled." in capsys.readouterr().out

    def test_clean_confirmation_accepted(self, cli_env, monkeypatch):
        temp_file = cli_env / "temp" / "a.tmp"
        temp_file.parent.mkdir()
        temp_file.write_text("x")
        monkeypatch.setattr("builtins.input", lambda prompt: "y")
        assert main(["clean", "--temp"]) == 0
        assert not temp_file.exists()

    def test_clean_invalid_older_than(self, cli_env):
        assert main(["clean", "--older-than", "soon", "--force"]) == 1

    def test_clean_interrupted(self, cli_env, monkeypatch):
        temp_file = cli_env / "temp" / "a.tmp"
        temp_file.parent.mkdir()
        temp_file.write_text("x")

        def interrupt(prompt):
            raise KeyboardInterrupt

        monkeypatch.setattr("builtins.input", interrupt)
        assert main(["clean", "--temp"]) == 130
        assert temp_file.exists()

    def test_migrate_nothing(self, cli_env, capsys):
        assert main(["migrate"]) == 0
        assert "No legacy cache data found." in capsys.readouterr().out

    def test_migrate_moves_legacy_file(self, cli_env):
        legacy = cli_env / "app" / "cache" / "submitted_tasks.json"
        legacy.parent.mkdir()
        legacy.write_text("[]")
        assert main(["migrate", "--delete-source"]) == 0
        assert (cli_env / "cache_root" / "tasks" / "submitted_tasks.json").read_text() == "[]"
        assert not legacy.exists()

    def test_purge(self, cli_env, capsys):
        tasks = cli_env / "cache_root" / "tasks"
        tasks.mkdir(parents=True)
        (tasks / "submitted_tasks.json").write_text(json.dumps([{
            "task_hash": "ab" * 32, "title": "ancient", "date": "", "time": "",
            "list": "", "created_at": "2000-01-01T00:00:00Z",
        }]))
        assert main(["purge"]) == 0
        assert "Purged 0 expired records." in capsys.readouterr().out

    def test_corrupt_cache_is_error(self, cli_env):
        tasks = cli_env / "cache_root" / "tasks"
        tasks.mkdir(parents=True)
        (tasks / "submitted_tasks.json").write_text("{broken")
        assert main(["stats"]) == 1

    def test_cache_dir_flag(self, cli_env):
        custom = cli_env / "custom"
        assert main(["--cache-dir", os.fspath(custom), "stats"]) == 0
        assert (custom / "tasks").is_dir()
