"""Hook handler commands for Claude Code integration.

    skill-manager hook session-end   # SessionEnd hook
"""

from __future__ import annotations

import json
import sys

import typer

from skill_manager.analyzer import is_internal_call
from skill_manager.config import ensure_state_dirs
from skill_manager.hooks import parse_hook_input, spawn_background_worker
from skill_manager.logging import configure_file_logging, get_log_file_path, get_logger, remove_file_logging

_logger = get_logger("hook")

app = typer.Typer(
    name="hook",
    help="Claude Code hook handlers",
    no_args_is_help=True,
)


@app.command("session-end")
def session_end() -> None:
    """Handle SessionEnd hook - starts background transcript processing.

    Reads and discards the hook input JSON from stdin, then launches the
    batch worker detached so the session can exit immediately.
    """
    # Recursion guard
    if is_internal_call():
        typer.echo(json.dumps({}))
        raise typer.Exit(0)

    try:
        hook_input = parse_hook_input(sys.stdin.read())
    except (OSError, UnicodeDecodeError):
        hook_input = None

    handler = None
    try:
        handler = configure_file_logging(get_log_file_path(ensure_state_dirs()))
        _logger.info("=== SessionEnd triggered ===")
        if hook_input and hook_input.session_id:
            _logger.info("Session: %s", hook_input.session_id)
        pid = spawn_background_worker()
        _logger.info("Background processing started (pid %d)", pid)
    except Exception as e:
        print(f"session-end error: {e}", file=sys.stderr)
    finally:
        if handler is not None:
            remove_file_logging(handler)

    # Always return success to not block the hook
    typer.echo(json.dumps({}))
