"""Select transcripts worth analyzing.

A candidate must be new to the state store, must not be one of our own
analyzer sessions, must not be a sub-agent transcript (unless allowed),
and must have enough content to be worth the analyzer's time.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

HEAD_BYTES = 2048
SUBAGENT_PREFIX = "agent-"

# Text that only shows up in sessions started by the analyzer itself.
SELF_SESSION_MARKERS = (
    "Extract skills from transcript at:",
    "skill-manager.md",
)
SELF_SESSION_MARKER_PAIR = ("Skill Manager", "analyzing a Claude Code conversation transcript")


def is_skill_manager_session(path: Path | str) -> bool:
    """Check the head of a transcript for analyzer-session markers.

    Unreadable files are not treated as analyzer sessions; later stages
    report the read error.
    """
    try:
        with open(path, "rb") as f:
            head = f.read(HEAD_BYTES).decode("utf-8", errors="ignore")
    except OSError:
        return False

    if any(marker in head for marker in SELF_SESSION_MARKERS):
        return True
    return all(marker in head for marker in SELF_SESSION_MARKER_PAIR)


def is_subagent_session(path: Path | str) -> bool:
    """Sub-agent transcripts are named ``agent-*.jsonl``."""
    return Path(path).name.startswith(SUBAGENT_PREFIX)


def count_lines(path: Path | str) -> int:
    """Count non-blank lines in a file.

    Raises:
        OSError: If the file cannot be read.
    """
    count = 0
    with open(path, encoding="utf-8", errors="replace") as f:
        for line in f:
            if line.strip():
                count += 1
    return count


def is_minimal_transcript(path: Path | str, min_lines: int = 10) -> bool:
    """Check whether a transcript has fewer than ``min_lines`` non-blank lines."""
    try:
        return count_lines(path) < min_lines
    except OSError:
        return False


def filter_unanalyzed(
    transcripts: list[str],
    state: dict[str, Any],
    limit: int,
    *,
    min_lines: int = 10,
    skip_subagents: bool = True,
) -> list[str]:
    """Pick up to ``limit`` transcripts that still need analysis.

    Any existing state record counts as seen, whatever its status; failed
    transcripts are never retried automatically.

    Args:
        transcripts: Candidate paths, newest first.
        state: Current state snapshot.
        limit: Maximum number of transcripts to return.
        min_lines: Minimum non-blank line count.
        skip_subagents: Exclude sub-agent transcripts.

    Returns:
        Selected paths in input order.
    """
    seen = state.get("transcripts") or {}
    selected: list[str] = []

    for transcript in transcripts:
        if len(selected) >= limit:
            break
        if transcript in seen:
            continue
        if is_skill_manager_session(transcript):
            continue
        if skip_subagents and is_subagent_session(transcript):
            continue
        if is_minimal_transcript(transcript, min_lines):
            continue
        selected.append(transcript)

    return selected
