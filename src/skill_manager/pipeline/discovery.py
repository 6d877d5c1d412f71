"""Discover recent transcripts under the transcript root."""

from __future__ import annotations

import time
from pathlib import Path

from skill_manager.logging import get_logger

_logger = get_logger("pipeline.discovery")

TRANSCRIPT_SUFFIX = ".jsonl"
SECONDS_PER_DAY = 24 * 60 * 60


def get_mtime(path: Path | str) -> int | None:
    """Get a file's modification time in whole seconds.

    Returns:
        The mtime, or None if the file does not exist.
    """
    try:
        return int(Path(path).stat().st_mtime)
    except FileNotFoundError:
        return None


def discover_transcripts(
    root: Path | str,
    *,
    lookback_days: int = 7,
    discovery_limit: int = 50,
    min_file_size: int = 0,
) -> list[str]:
    """Find recently modified transcripts, newest first.

    Args:
        root: Directory to scan recursively for ``*.jsonl`` files.
        lookback_days: Keep only files modified within this many days.
        discovery_limit: Maximum number of paths to return.
        min_file_size: Skip files smaller than this many bytes.

    Returns:
        Transcript paths sorted by modification time descending. A missing
        root gives an empty list.
    """
    root = Path(root)
    if not root.is_dir():
        _logger.debug("Transcript root does not exist: %s", root)
        return []

    cutoff = time.time() - lookback_days * SECONDS_PER_DAY
    found: list[tuple[float, str]] = []

    for path in root.rglob(f"*{TRANSCRIPT_SUFFIX}"):
        try:
            st = path.stat()
        except OSError:
            # Deleted between listing and stat
            continue
        if not path.is_file():
            continue
        if st.st_mtime < cutoff or st.st_size < min_file_size:
            continue
        found.append((st.st_mtime, str(path)))

    found.sort(key=lambda item: item[0], reverse=True)
    _logger.debug("Discovered %d recent transcripts under %s", len(found), root)
    return [p for _, p in found[:discovery_limit]]
