"""State file inspection commands."""

import json
from typing import Annotated

import typer

from skill_manager.config import get_state_file_path
from skill_manager.state import read_state, summarize_state

app = typer.Typer(
    name="state",
    help="Transcript processing state",
    no_args_is_help=True,
)


@app.command("show")
def show(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the raw state file"),
    ] = False,
) -> None:
    """Show how many transcripts are in each status."""
    path = get_state_file_path()
    try:
        state = read_state(path)
    except json.JSONDecodeError as e:
        typer.echo(f"State file is corrupted: {e}", err=True)
        raise typer.Exit(1) from None

    if state is None:
        typer.echo(f"No state file at {path}")
        return

    if json_output:
        typer.echo(json.dumps(state, indent=2))
        return

    typer.echo(f"State file: {path}")
    for status, count in summarize_state(state).items():
        typer.echo(f"  {status}: {count}")

    failed = [
        (key, record.get("exit_code"))
        for key, record in (state.get("transcripts") or {}).items()
        if isinstance(record, dict) and record.get("status") == "failed"
    ]
    for key, exit_code in failed:
        typer.echo(f"  failed (exit {exit_code}): {key}")
