"""Tests for skill_manager.io module."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from skill_manager.io import (
    atomic_write,
    atomic_write_json,
    ensure_parent_dir,
    read_file,
    read_json,
    safe_unlink,
)


class TestEnsureParentDir:
    """Tests for ensure_parent_dir function."""

    def test_creates_nested_directories(self, tmp_path: Path) -> None:
        """Should create all parent directories."""
        target = tmp_path / "a" / "b" / "c" / "file.txt"
        result = ensure_parent_dir(target)

        assert result == target
        assert target.parent.is_dir()

    def test_accepts_string_path(self, tmp_path: Path) -> None:
        """Should accept string paths."""
        result = ensure_parent_dir(str(tmp_path / "nested" / "file.txt"))
        assert isinstance(result, Path)
        assert result.parent.exists()


class TestReadHelpers:
    """Tests for read_file and read_json."""

    def test_reads_existing_file(self, tmp_path: Path) -> None:
        """Should read contents of existing file."""
        file = tmp_path / "test.txt"
        file.write_text("hello world", encoding="utf-8")

        assert read_file(file) == "hello world"

    def test_returns_default_for_missing_file(self, tmp_path: Path) -> None:
        """Should return default when file doesn't exist."""
        file = tmp_path / "nonexistent.txt"

        assert read_file(file) is None
        assert read_file(file, default="fallback") == "fallback"

    def test_read_json_default_for_invalid_json(self, tmp_path: Path) -> None:
        """Should return default when JSON is invalid."""
        file = tmp_path / "bad.json"
        file.write_text("not valid json {", encoding="utf-8")

        assert read_json(file) is None
        assert read_json(file, default={"fallback": True}) == {"fallback": True}


class TestAtomicWrite:
    """Tests for atomic_write and atomic_write_json."""

    def test_writes_content(self, tmp_path: Path) -> None:
        """Should write content and create parent directories."""
        file = tmp_path / "nested" / "output.txt"

        atomic_write(file, "content")

        assert file.read_text(encoding="utf-8") == "content"

    def test_no_temp_file_left_behind(self, tmp_path: Path) -> None:
        """Should not leave temp files after a successful write."""
        atomic_write(tmp_path / "clean.txt", "content")

        assert list(tmp_path.glob("*.tmp")) == []

    def test_failed_rename_keeps_original_and_cleans_temp(self, tmp_path: Path) -> None:
        """A failure before rename leaves the destination intact and removes the temp file."""
        file = tmp_path / "state.json"
        file.write_text("original", encoding="utf-8")

        with patch("skill_manager.io.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(file, "new content")

        assert file.read_text(encoding="utf-8") == "original"
        assert list(tmp_path.glob("*.tmp")) == []

    def test_raises_for_unwritable_directory(self, tmp_path: Path) -> None:
        """Should propagate permission errors."""
        if os.geteuid() == 0:
            pytest.skip("root ignores directory permissions")
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            with pytest.raises(PermissionError):
                atomic_write(locked / "file.txt", "x")
        finally:
            locked.chmod(0o700)

    def test_atomic_write_json(self, tmp_path: Path) -> None:
        """Should write JSON with a trailing newline."""
        file = tmp_path / "data.json"

        atomic_write_json(file, {"key": "value"})

        content = file.read_text(encoding="utf-8")
        assert json.loads(content) == {"key": "value"}
        assert content.endswith("\n")

    def test_atomic_write_json_unserializable(self, tmp_path: Path) -> None:
        """Should raise before touching the file for non-serializable data."""
        file = tmp_path / "bad.json"

        with pytest.raises(TypeError):
            atomic_write_json(file, {"items": {1, 2, 3}})

        assert not file.exists()


class TestSafeUnlink:
    """Tests for safe_unlink function."""

    def test_removes_file(self, tmp_path: Path) -> None:
        """Should remove an existing file."""
        file = tmp_path / "file.txt"
        file.write_text("x", encoding="utf-8")

        assert safe_unlink(file) is True
        assert not file.exists()

    def test_missing_file_is_ok(self, tmp_path: Path) -> None:
        """Should succeed when the file does not exist."""
        assert safe_unlink(tmp_path / "missing.txt") is True
