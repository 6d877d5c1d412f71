"""Tests for skill_manager.lock module."""

from __future__ import annotations

import os
import shutil
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from skill_manager.lock import (
    acquire_lock,
    get_lock_dir,
    hold_lock,
    read_lock_owner,
    release_lock,
)


class TestAcquireRelease:
    """Tests for acquire_lock and release_lock."""

    def test_acquire_creates_directory_with_pid(self, tmp_path: Path) -> None:
        """Should create the lock directory and record our pid."""
        assert acquire_lock(tmp_path) is True
        try:
            assert get_lock_dir(tmp_path).is_dir()
            assert read_lock_owner(tmp_path) == os.getpid()
        finally:
            release_lock(tmp_path)

    def test_second_acquire_fails(self, tmp_path: Path) -> None:
        """Should refuse while the lock is held."""
        assert acquire_lock(tmp_path) is True
        try:
            assert acquire_lock(tmp_path) is False
        finally:
            release_lock(tmp_path)

    def test_release_allows_reacquire(self, tmp_path: Path) -> None:
        """Should be acquirable again after release."""
        assert acquire_lock(tmp_path) is True
        release_lock(tmp_path)

        assert not get_lock_dir(tmp_path).exists()
        assert acquire_lock(tmp_path) is True
        release_lock(tmp_path)

    def test_release_when_not_held(self, tmp_path: Path) -> None:
        """Should not raise when there is nothing to release."""
        release_lock(tmp_path)
        assert read_lock_owner(tmp_path) is None

    def test_release_failure_propagates(self, tmp_path: Path) -> None:
        """A lock that cannot be removed is reported, not silently left behind."""
        assert acquire_lock(tmp_path) is True
        try:
            with patch("skill_manager.lock.shutil.rmtree", side_effect=PermissionError("busy")):
                with pytest.raises(PermissionError):
                    release_lock(tmp_path)
            assert get_lock_dir(tmp_path).is_dir()
        finally:
            shutil.rmtree(get_lock_dir(tmp_path))

    def test_missing_state_dir_raises(self, tmp_path: Path) -> None:
        """Errors other than contention should propagate."""
        with pytest.raises(FileNotFoundError):
            acquire_lock(tmp_path / "missing")

    def test_concurrent_acquire_has_one_winner(self, tmp_path: Path) -> None:
        """Exactly one of many simultaneous attempts should succeed."""
        barrier = threading.Barrier(8)
        results: list[bool] = []
        results_lock = threading.Lock()

        def attempt() -> None:
            barrier.wait()
            acquired = acquire_lock(tmp_path)
            with results_lock:
                results.append(acquired)

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        release_lock(tmp_path)


class TestHoldLock:
    """Tests for the hold_lock context manager."""

    def test_releases_on_exit(self, tmp_path: Path) -> None:
        """Should release after the block."""
        with hold_lock(tmp_path) as acquired:
            assert acquired is True
            assert get_lock_dir(tmp_path).exists()

        assert not get_lock_dir(tmp_path).exists()

    def test_releases_on_exception(self, tmp_path: Path) -> None:
        """Should release when the block raises."""
        with pytest.raises(RuntimeError):
            with hold_lock(tmp_path):
                raise RuntimeError("boom")

        assert not get_lock_dir(tmp_path).exists()

    def test_does_not_release_foreign_lock(self, tmp_path: Path) -> None:
        """A block that did not acquire must leave the holder's lock alone."""
        assert acquire_lock(tmp_path) is True
        try:
            with hold_lock(tmp_path) as acquired:
                assert acquired is False
            assert get_lock_dir(tmp_path).exists()
        finally:
            release_lock(tmp_path)
