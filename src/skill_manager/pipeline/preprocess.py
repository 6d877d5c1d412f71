"""Shrink a transcript before handing it to the analyzer.

Transcripts carry a lot of weight the analyzer does not need: snapshot
and queue bookkeeping records, fields that repeat on every line of the
session, and tool results that dump whole files or logs. This module
drops the first two and clips the third, line by line, without ever
failing the whole file because one record is malformed.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from skill_manager.logging import get_logger

_logger = get_logger("pipeline.preprocess")

DEFAULT_TRUNCATE_LINES = 30
DEFAULT_CHAR_THRESHOLD = 50_000

DROPPED_TYPES = frozenset({"file-history-snapshot", "queue-operation"})
# Constant for a whole session, so they carry no per-record information.
REDUNDANT_FIELDS = ("userType", "isSidechain", "cwd", "version", "gitBranch")

TEMP_PREFIX = "preprocessed-transcript-"


@dataclass(frozen=True)
class PreprocessResult:
    """Outcome of preprocessing one transcript.

    Attributes:
        path: Temp file holding the preprocessed JSONL. The caller deletes it.
        input_bytes: Size of the original transcript.
        output_bytes: Size of the preprocessed file.
        records: Records written.
        skipped_lines: Non-blank lines dropped because they did not parse.
    """

    path: Path
    input_bytes: int
    output_bytes: int
    records: int
    skipped_lines: int

    @property
    def reduction_percent(self) -> int:
        if self.input_bytes <= 0:
            return 0
        return round(100 - self.output_bytes * 100 / self.input_bytes)


def truncate_text(
    text: str,
    truncate_lines: int = DEFAULT_TRUNCATE_LINES,
    char_threshold: int = DEFAULT_CHAR_THRESHOLD,
) -> str:
    """Clip an oversized tool result.

    More than ``2 * truncate_lines`` lines keeps the first and last
    ``truncate_lines`` lines around a marker line. Otherwise, text longer
    than ``char_threshold`` characters (minified code, one-line JSON blobs)
    keeps the first and last ``char_threshold // 2`` characters.
    """
    lines = text.split("\n")
    max_lines = truncate_lines * 2
    if len(lines) > max_lines:
        elided = len(lines) - max_lines
        marker = f"... [truncated {elided} lines] ..."
        return "\n".join([*lines[:truncate_lines], "", marker, "", *lines[-truncate_lines:]])

    if len(text) > char_threshold:
        half = char_threshold // 2
        elided = len(text) - half * 2
        marker = f"... [truncated {elided} characters] ..."
        return f"{text[:half]}\n\n{marker}\n\n{text[-half:]}"

    return text


def _process_content_item(item: Any, truncate_lines: int, char_threshold: int) -> Any:
    if not isinstance(item, dict) or item.get("type") != "tool_result":
        return item

    content = item.get("content")
    if isinstance(content, str):
        return {**item, "content": truncate_text(content, truncate_lines, char_threshold)}

    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str):
                part = {**part, "text": truncate_text(part["text"], truncate_lines, char_threshold)}
            parts.append(part)
        return {**item, "content": parts}

    return item


def process_record(
    record: dict[str, Any],
    truncate_lines: int = DEFAULT_TRUNCATE_LINES,
    char_threshold: int = DEFAULT_CHAR_THRESHOLD,
) -> dict[str, Any] | None:
    """Preprocess one transcript record.

    Returns:
        The slimmed record, or None if the record should be dropped.
    """
    if record.get("type") in DROPPED_TYPES:
        return None

    result = {k: v for k, v in record.items() if k not in REDUNDANT_FIELDS}

    message = result.get("message")
    if isinstance(message, dict):
        message = {k: v for k, v in message.items() if k != "role"}
        content = message.get("content")
        if isinstance(content, list):
            message["content"] = [
                _process_content_item(item, truncate_lines, char_threshold) for item in content
            ]
        result["message"] = message

    return result


def preprocess_lines(
    lines: Iterable[str],
    truncate_lines: int = DEFAULT_TRUNCATE_LINES,
    char_threshold: int = DEFAULT_CHAR_THRESHOLD,
    *,
    stats: dict[str, int] | None = None,
) -> Iterator[dict[str, Any]]:
    """Yield preprocessed records from raw JSONL lines.

    Blank lines are ignored. Lines that are not valid JSON objects are
    skipped; when ``stats`` is given their count goes in ``stats["skipped"]``.
    """
    for line in lines:
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except (json.JSONDecodeError, ValueError):
            record = None
        if not isinstance(record, dict):
            if stats is not None:
                stats["skipped"] = stats.get("skipped", 0) + 1
            continue

        processed = process_record(record, truncate_lines, char_threshold)
        if processed is not None:
            yield processed


def make_temp_path() -> Path:
    """Create an empty, uniquely named temp file for preprocessed output.

    The name combines a nanosecond timestamp, the pid, and mkstemp's random
    suffix, so concurrent callers never collide.
    """
    fd, name = tempfile.mkstemp(
        prefix=f"{TEMP_PREFIX}{time.time_ns()}-{os.getpid()}-",
        suffix=".jsonl",
    )
    os.close(fd)
    return Path(name)


def preprocess_transcript(
    path: Path | str,
    truncate_lines: int = DEFAULT_TRUNCATE_LINES,
    char_threshold: int = DEFAULT_CHAR_THRESHOLD,
) -> PreprocessResult:
    """Preprocess a transcript file into a new temp file.

    Args:
        path: Transcript JSONL to read.
        truncate_lines: Lines kept at each end of a long tool result.
        char_threshold: Character limit for tool results that line
            truncation cannot shrink.

    Returns:
        PreprocessResult describing the temp file. The caller must delete
        ``result.path`` on every exit path.

    Raises:
        OSError: If the transcript cannot be read or the output written.
    """
    path = Path(path)
    input_bytes = path.stat().st_size
    stats: dict[str, int] = {}
    out_path = make_temp_path()
    records = 0

    try:
        with (
            path.open(encoding="utf-8", errors="replace") as src,
            out_path.open("w", encoding="utf-8") as dst,
        ):
            for record in preprocess_lines(src, truncate_lines, char_threshold, stats=stats):
                if records:
                    dst.write("\n")
                dst.write(json.dumps(record, ensure_ascii=False, separators=(",", ":")))
                records += 1
    except BaseException:
        out_path.unlink(missing_ok=True)
        raise

    skipped = stats.get("skipped", 0)
    if skipped:
        _logger.info("Skipped %d malformed line(s) in %s", skipped, path)

    return PreprocessResult(
        path=out_path,
        input_bytes=input_bytes,
        output_bytes=out_path.stat().st_size,
        records=records,
        skipped_lines=skipped,
    )
