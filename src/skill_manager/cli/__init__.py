"""Unified CLI for skill-manager.

    skill-manager run                      # Process one batch in the foreground
    skill-manager hook session-end         # Claude Code SessionEnd hook
    skill-manager state show               # Summarize the state file
    skill-manager skill similar NAME       # Find similarly named skills
    skill-manager skill retire             # Retire unused skills
    skill-manager skill track TRANSCRIPT   # Update usage from a transcript
"""

import typer

from skill_manager.cli import hook, skill, state
from skill_manager.pipeline.runner import main as run_main

app = typer.Typer(
    name="skill-manager",
    help="Skill Manager: turn session transcripts into reusable skills",
    no_args_is_help=True,
)

app.add_typer(hook.app)
app.add_typer(skill.app)
app.add_typer(state.app)


@app.command("run")
def run() -> None:
    """Discover, filter and analyze one batch of transcripts."""
    raise typer.Exit(run_main())


def main() -> None:
    """Main entry point for the skill-manager CLI."""
    app()


if __name__ == "__main__":
    main()
