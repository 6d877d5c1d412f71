"""File I/O helpers for skill-manager.

Two flavors live here. ``atomic_write`` and ``atomic_write_json`` raise on
failure and are used for state that must never be half-written. The
tolerant readers (``read_file``, ``read_json``) return defaults instead
of raising and are used where a missing file is an ordinary case.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any


def ensure_parent_dir(path: Path | str) -> Path:
    """Ensure the parent directory of a path exists.

    Args:
        path: File path whose parent directory should be created.

    Returns:
        The path as a Path object.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def read_file(path: Path | str, default: str | None = None) -> str | None:
    """Read a file's contents, returning default if missing or unreadable."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (FileNotFoundError, PermissionError, UnicodeDecodeError, OSError):
        return default


def read_json(path: Path | str, default: Any = None) -> Any:
    """Read and parse a JSON file, returning default on any error."""
    content = read_file(path)
    if content is None:
        return default
    try:
        return json.loads(content)
    except (json.JSONDecodeError, ValueError):
        return default


def atomic_write(path: Path | str, content: str) -> None:
    """Write content to a file atomically.

    The content goes to a temp file in the destination directory which is
    then renamed over ``path``. The rename is the only step that touches
    the destination, so readers see either the old or the new content.

    Raises:
        OSError: If any step fails. The temp file is removed first.
    """
    path = ensure_parent_dir(path)
    fd, tmp_path = tempfile.mkstemp(
        suffix=".tmp",
        prefix=path.name + ".",
        dir=path.parent,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def atomic_write_json(path: Path | str, data: Any, indent: int | None = 2) -> None:
    """Serialize data as JSON and write it atomically.

    Raises:
        TypeError: If data is not JSON serializable (nothing is written).
        OSError: If the write fails.
    """
    content = json.dumps(data, indent=indent, ensure_ascii=False)
    if not content.endswith("\n"):
        content += "\n"
    atomic_write(path, content)


def safe_unlink(path: Path | str) -> bool:
    """Delete a file if it exists.

    Returns True if the file was removed or did not exist, False on failure.
    """
    try:
        Path(path).unlink(missing_ok=True)
        return True
    except (OSError, ValueError):
        return False
