"""SessionEnd hook support.

The hook must return quickly so the ending session is not held up. It
reads (and thereby drains) the hook input, logs the trigger, and starts
the batch worker as a detached background process.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from dataclasses import dataclass

from skill_manager.analyzer import RECURSION_GUARD_VAR


@dataclass(frozen=True)
class HookInput:
    """Fields of interest from the SessionEnd hook payload."""

    transcript_path: str | None = None
    session_id: str | None = None
    reason: str | None = None
    cwd: str | None = None


def parse_hook_input(raw: str) -> HookInput | None:
    """Parse hook JSON. Empty, invalid, or non-object input gives None."""
    if not raw or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    def _str(key: str) -> str | None:
        value = data.get(key)
        return value if isinstance(value, str) and value else None

    return HookInput(
        transcript_path=_str("transcript_path"),
        session_id=_str("session_id"),
        reason=_str("reason"),
        cwd=_str("cwd"),
    )


def worker_command() -> list[str]:
    """Command line that runs one batch in the foreground."""
    return [sys.executable, "-m", "skill_manager", "run"]


def spawn_background_worker() -> int:
    """Start the batch worker detached from this process.

    The worker inherits no stdio and survives the hook's exit.

    Returns:
        The worker's pid.
    """
    env = dict(os.environ)
    env.pop(RECURSION_GUARD_VAR, None)
    kwargs: dict = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "env": env,
        "close_fds": True,
    }
    if os.name == "nt":
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    process = subprocess.Popen(worker_command(), **kwargs)
    return process.pid
