"""Skill similarity, usage and retirement commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from skill_manager.config import ensure_state_dirs, get_skills_dir, load_settings
from skill_manager.lock import hold_lock
from skill_manager.skills.retirement import retire_unused_skills
from skill_manager.skills.similarity import find_similar_strict, find_similar_wide
from skill_manager.skills.store import get_active_skill_names
from skill_manager.skills.usage import track_usage

app = typer.Typer(
    name="skill",
    help="Skill similarity, usage and retirement",
    no_args_is_help=True,
)


@app.command("similar")
def similar(
    name: Annotated[
        str,
        typer.Argument(help="Proposed or existing skill name"),
    ],
    mode: Annotated[
        str,
        typer.Option("--mode", "-m", help="Matching mode: wide or strict"),
    ] = "wide",
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
) -> None:
    """Find active skills whose names resemble NAME."""
    if mode not in ("wide", "strict"):
        typer.echo("Error: --mode must be 'wide' or 'strict'", err=True)
        raise typer.Exit(1)

    finder = find_similar_strict if mode == "strict" else find_similar_wide
    candidates = [n for n in get_active_skill_names() if n != name]
    matches = finder(name, candidates)

    if json_output:
        output = {
            "proposedName": name,
            "mode": mode,
            "matches": [{"name": m.name, "jaccard": m.jaccard, "prefix": m.prefix} for m in matches],
        }
        typer.echo(json.dumps(output, indent=2))
        return

    if not matches:
        typer.echo(f'No similar skills for "{name}"')
        return

    typer.echo(f'\nSkills similar to "{name}" ({mode}):\n')
    for i, m in enumerate(matches, 1):
        typer.echo(f"{i}. {m.name} (jaccard: {m.jaccard:.2f}, prefix: {m.prefix})")


@app.command("retire")
def retire(
    threshold: Annotated[
        int | None,
        typer.Option("--threshold", "-t", help="Sessions without use before retirement"),
    ] = None,
) -> None:
    """Retire skills unused for more than the threshold, consolidating first."""
    if threshold is None:
        threshold = load_settings().retirement_sessions

    with hold_lock(ensure_state_dirs()) as acquired:
        if not acquired:
            typer.echo("Another instance is running (lock held); skipping.", err=True)
            return
        report = retire_unused_skills(threshold, get_skills_dir())

    for source, target in report.consolidated:
        typer.echo(f"Consolidated {source} into {target}")
    for name in report.retired:
        typer.echo(f"Retired {name}")
    for name in report.failed:
        typer.echo(f"Failed to retire {name}", err=True)
    if not (report.retired or report.failed):
        typer.echo("No skills to retire")


@app.command("track")
def track(
    transcript: Annotated[
        Path,
        typer.Argument(help="Transcript JSONL to scan for skill mentions"),
    ],
) -> None:
    """Update skill usage counters from one transcript."""
    report = track_usage(transcript, get_skills_dir())
    if report.found:
        typer.echo(f"Used: {', '.join(report.found)}")
    typer.echo(f"Updated {report.updated} skill(s)")
