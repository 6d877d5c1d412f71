"""Directory-based process lock.

``os.mkdir`` either creates the lock directory or fails because it already
exists, which makes acquisition atomic on every platform without relying
on fcntl. The pid file inside is diagnostic only.

There is no staleness check: if a worker dies while holding the lock, the
directory has to be removed by hand.
"""

from __future__ import annotations

import contextlib
import os
import shutil
from collections.abc import Iterator
from pathlib import Path

from skill_manager.config import LOCK_DIR_NAME


def get_lock_dir(state_dir: Path | str) -> Path:
    """Get the lock directory for a state directory."""
    return Path(state_dir) / LOCK_DIR_NAME


def acquire_lock(state_dir: Path | str) -> bool:
    """Try to take the lock.

    Returns:
        True if acquired, False if another process holds it.

    Raises:
        OSError: For failures other than the lock already existing.
    """
    lock_dir = get_lock_dir(state_dir)
    try:
        os.mkdir(lock_dir)
    except FileExistsError:
        return False
    try:
        (lock_dir / "pid").write_text(str(os.getpid()), encoding="utf-8")
    except OSError:
        release_lock(state_dir)
        raise
    return True


def release_lock(state_dir: Path | str) -> None:
    """Remove the lock directory. Safe to call when it is already gone.

    Raises:
        OSError: If the directory exists but cannot be removed.
    """
    with contextlib.suppress(FileNotFoundError):
        shutil.rmtree(get_lock_dir(state_dir))


def read_lock_owner(state_dir: Path | str) -> int | None:
    """Return the pid recorded by the current holder, if any."""
    try:
        return int((get_lock_dir(state_dir) / "pid").read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return None


@contextlib.contextmanager
def hold_lock(state_dir: Path | str) -> Iterator[bool]:
    """Acquire the lock for the duration of a with-block.

    Yields whether the lock was acquired. The lock is released on every
    exit path, but only if this block took it.
    """
    acquired = acquire_lock(state_dir)
    try:
        yield acquired
    finally:
        if acquired:
            release_lock(state_dir)
