"""State store for transcript processing status.

The state file (analyzed.json) maps each transcript path to a record:

    {"version": 1, "transcripts": {"/path/t.jsonl": {"status": "completed", ...}}}

Snapshots are treated as immutable values. The ``mark_*`` transitions
return a new snapshot and ``write_state`` commits it with an atomic
replace, so a crash at any point leaves either the old or the new file.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from skill_manager.io import atomic_write_json
from skill_manager.jsonschema import validate
from skill_manager.logging import get_logger

_logger = get_logger("state")

STATE_VERSION = 1

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

# Fields owned by each status; everything else is stripped on transition.
_IN_PROGRESS_FIELDS = ("started_at",)
_COMPLETED_FIELDS = ("analyzed_at",)
_FAILED_FIELDS = ("failed_at", "exit_code")

# Top level only. Readers tolerate records of any shape.
STATE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["version", "transcripts"],
    "properties": {
        "version": {"type": "integer"},
        "transcripts": {"type": "object"},
    },
}


def create_empty_state() -> dict[str, Any]:
    """Create the empty default snapshot."""
    return {"version": STATE_VERSION, "transcripts": {}}


def _now() -> str:
    return datetime.now(UTC).isoformat()


def read_state(path: Path | str) -> dict[str, Any] | None:
    """Read and parse the state file.

    Returns:
        The parsed snapshot, or None if the file does not exist.

    Raises:
        json.JSONDecodeError: If the file content is not valid JSON.
        OSError: For any other read failure (permissions and the like).
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return json.loads(content)


def validate_state(data: Any) -> bool:
    """Check that data has the snapshot structure."""
    is_valid, _ = validate(data, STATE_SCHEMA)
    return is_valid


def write_state(path: Path | str, state: dict[str, Any]) -> None:
    """Commit a snapshot with write-to-temp + rename.

    Raises:
        OSError: On any I/O failure. The canonical file is untouched.
    """
    atomic_write_json(path, state, indent=None)


def init_state(path: Path | str) -> bool:
    """Write the empty snapshot if the state file is missing or corrupt.

    Valid existing content is left untouched.

    Returns:
        True if the file was (re)initialized.
    """
    path = Path(path)
    try:
        data = read_state(path)
    except (json.JSONDecodeError, UnicodeDecodeError):
        _logger.warning("State file corrupted, reinitializing: %s", path)
        write_state(path, create_empty_state())
        return True

    if data is None:
        _logger.info("Initialized state file: %s", path)
        write_state(path, create_empty_state())
        return True

    if not validate_state(data):
        _logger.warning("State file has unexpected structure, reinitializing: %s", path)
        write_state(path, create_empty_state())
        return True

    return False


def _with_record(state: dict[str, Any], key: str, record: dict[str, Any]) -> dict[str, Any]:
    transcripts = dict(state.get("transcripts") or {})
    transcripts[key] = record
    return {**state, "transcripts": transcripts}


def _strip_status_fields(record: dict[str, Any]) -> dict[str, Any]:
    owned = _IN_PROGRESS_FIELDS + _COMPLETED_FIELDS + _FAILED_FIELDS
    return {k: v for k, v in record.items() if k not in owned and k != "status"}


def mark_in_progress(state: dict[str, Any], transcript: str) -> dict[str, Any]:
    """Return a new snapshot with ``transcript`` marked in_progress."""
    return _with_record(state, transcript, {"status": STATUS_IN_PROGRESS, "started_at": _now()})


def mark_completed(state: dict[str, Any], transcript: str) -> dict[str, Any]:
    """Return a new snapshot with ``transcript`` marked completed.

    In-progress fields are dropped and ``analyzed_at`` is set.
    """
    existing = (state.get("transcripts") or {}).get(transcript)
    if not isinstance(existing, dict):
        existing = {}
    record = {
        **_strip_status_fields(existing),
        "status": STATUS_COMPLETED,
        "analyzed_at": _now(),
    }
    return _with_record(state, transcript, record)


def mark_failed(state: dict[str, Any], transcript: str, exit_code: int) -> dict[str, Any]:
    """Return a new snapshot with ``transcript`` marked failed.

    In-progress fields are dropped, ``failed_at`` and ``exit_code`` are set.
    """
    existing = (state.get("transcripts") or {}).get(transcript)
    if not isinstance(existing, dict):
        existing = {}
    record = {
        **_strip_status_fields(existing),
        "status": STATUS_FAILED,
        "failed_at": _now(),
        "exit_code": exit_code,
    }
    return _with_record(state, transcript, record)


def summarize_state(state: dict[str, Any]) -> dict[str, int]:
    """Count records per status."""
    counts = {STATUS_IN_PROGRESS: 0, STATUS_COMPLETED: 0, STATUS_FAILED: 0}
    for record in (state.get("transcripts") or {}).values():
        status = record.get("status") if isinstance(record, dict) else None
        if status in counts:
            counts[status] += 1
    return counts
