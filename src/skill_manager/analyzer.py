"""Invoke the external skill-extraction agent on a preprocessed transcript.

Two backends are available:

- ``cli`` runs the ``claude`` executable as a child process and returns
  its exit code.
- ``sdk`` runs the same prompt in-process through claude_agent_sdk and
  maps an error result (or a raised exception) to exit code 1.

Either way the agent may write only under the skills root; it can read
and search anywhere. There is no timeout and no retry.

Usage:
    from skill_manager.analyzer import run_analysis

    result = run_analysis(preprocessed_path, skills_dir=skills_dir)
    if result.exit_code != 0:
        ...
"""

from __future__ import annotations

import contextlib
import os
import subprocess
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import anyio
from claude_agent_sdk import ClaudeAgentOptions, query
from claude_agent_sdk.types import AssistantMessage, ResultMessage, TextBlock

from skill_manager.config import get_instructions_path, get_skills_dir
from skill_manager.io import read_file
from skill_manager.logging import get_logger

_logger = get_logger("analyzer")

# Environment variable for recursion guard
RECURSION_GUARD_VAR = "SKILL_MANAGER_INTERNAL"

PROMPT_PREFIX = "Extract skills from transcript at:"
DEFAULT_MODEL = "sonnet"
# Conventional shell codes for "command not found" and "not executable"
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


@dataclass
class AnalysisResult:
    """Result of one analyzer run.

    Attributes:
        exit_code: 0 on success, anything else is a failure.
        output_file: Saved combined output, when output saving is on.
    """

    exit_code: int
    output_file: Path | None = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def is_internal_call() -> bool:
    """Check if we're running inside an analyzer session (recursion guard is set)."""
    return os.environ.get(RECURSION_GUARD_VAR) == "1"


@contextlib.contextmanager
def _recursion_guard() -> Iterator[None]:
    env_backup = os.environ.get(RECURSION_GUARD_VAR)
    os.environ[RECURSION_GUARD_VAR] = "1"
    try:
        yield
    finally:
        if env_backup is None:
            os.environ.pop(RECURSION_GUARD_VAR, None)
        else:
            os.environ[RECURSION_GUARD_VAR] = env_backup


def build_prompt(transcript_path: Path | str) -> str:
    """Build the one-line prompt pointing the agent at a transcript."""
    return f"{PROMPT_PREFIX} {transcript_path}"


def build_allowed_tools(skills_dir: Path | str) -> list[str]:
    """Read and search anywhere, write only under the skills root."""
    return ["Read", f"Write({skills_dir}/**)", "Glob", "Grep"]


def build_command(
    transcript_path: Path | str,
    *,
    instructions_path: Path | str,
    skills_dir: Path | str,
    model: str = DEFAULT_MODEL,
) -> list[str]:
    """Build the ``claude`` command line for the CLI backend."""
    return [
        "claude",
        "--model",
        model,
        "-p",
        build_prompt(transcript_path),
        "--system-prompt-file",
        str(instructions_path),
        "--permission-mode",
        "bypassPermissions",
        "--allowedTools",
        ",".join(build_allowed_tools(skills_dir)),
    ]


def build_output_path(outputs_dir: Path | str, original_transcript: Path | str) -> Path:
    """Name a saved-output file ``YYYY-MM-DD-HH-MM-SS-<transcript stem>.log``."""
    stamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    return Path(outputs_dir) / f"{stamp}-{Path(original_transcript).stem}.log"


async def _run_cli(command: list[str], output_file: Path | None) -> int:
    """Run the command to completion, optionally teeing output to a file."""
    capture = output_file is not None
    async with await anyio.open_process(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
        stderr=subprocess.STDOUT if capture else subprocess.DEVNULL,
    ) as process:
        if output_file is not None and process.stdout is not None:
            with output_file.open("ab") as f:
                async for chunk in process.stdout:
                    f.write(chunk)
        return await process.wait()


async def _run_sdk(
    prompt: str,
    *,
    system_prompt: str | None,
    skills_dir: Path,
    model: str,
    output_file: Path | None,
) -> int:
    """Run the agent in-process and translate its result into an exit code."""
    options = ClaudeAgentOptions(
        system_prompt=system_prompt,
        allowed_tools=build_allowed_tools(skills_dir),
        permission_mode="bypassPermissions",
        model=model,
    )

    chunks: list[str] = []
    exit_code = 0

    async for message in query(prompt=prompt, options=options):
        if isinstance(message, AssistantMessage):
            for block in message.content:
                if isinstance(block, TextBlock):
                    chunks.append(block.text)
        elif isinstance(message, ResultMessage):
            if message.result:
                chunks.append(message.result)
            if message.is_error:
                exit_code = 1

    if output_file is not None:
        with output_file.open("a", encoding="utf-8") as f:
            f.write("\n".join(chunks))
    return exit_code


def run_analysis(
    transcript_path: Path | str,
    *,
    skills_dir: Path | str | None = None,
    instructions_path: Path | str | None = None,
    model: str = DEFAULT_MODEL,
    backend: str = "cli",
    save_output: bool = False,
    outputs_dir: Path | str | None = None,
    original_transcript: Path | str | None = None,
    command: list[str] | None = None,
) -> AnalysisResult:
    """Run the skill-extraction agent and wait for it to finish.

    Args:
        transcript_path: Preprocessed transcript to analyze.
        skills_dir: Root the agent may write to. Defaults to the skills root.
        instructions_path: System prompt document. Defaults to the packaged one.
        model: Model name passed to the agent.
        backend: ``cli`` or ``sdk``.
        save_output: Keep the agent's combined output.
        outputs_dir: Where saved output goes. Required when save_output is set.
        original_transcript: Used to name the saved output file.
        command: Override the CLI command line (the CLI backend only).

    Returns:
        AnalysisResult with the exit code and any saved output file.
    """
    skills_dir = Path(skills_dir) if skills_dir else get_skills_dir()
    instructions_path = Path(instructions_path) if instructions_path else get_instructions_path()

    output_file: Path | None = None
    if save_output:
        if outputs_dir is None:
            raise ValueError("outputs_dir is required when save_output is set")
        Path(outputs_dir).mkdir(parents=True, exist_ok=True)
        output_file = build_output_path(outputs_dir, original_transcript or transcript_path)

    with _recursion_guard():
        if backend == "sdk":
            try:
                exit_code = anyio.run(
                    lambda: _run_sdk(
                        build_prompt(transcript_path),
                        system_prompt=read_file(instructions_path),
                        skills_dir=skills_dir,
                        model=model,
                        output_file=output_file,
                    )
                )
            except Exception as e:
                _logger.warning("Agent call failed: %s", e)
                exit_code = 1
        else:
            if command is None:
                command = build_command(
                    transcript_path,
                    instructions_path=instructions_path,
                    skills_dir=skills_dir,
                    model=model,
                )
            try:
                exit_code = anyio.run(_run_cli, command, output_file)
            except FileNotFoundError:
                _logger.error("Analyzer executable not found: %s", command[0])
                exit_code = EXIT_NOT_FOUND
            except PermissionError as e:
                _logger.error("Analyzer could not be executed: %s", e)
                exit_code = EXIT_NOT_EXECUTABLE
            except OSError as e:
                _logger.error("Analyzer failed to start: %s", e)
                exit_code = 1

    _logger.debug("Analyzer exited with code %d", exit_code)
    return AnalysisResult(exit_code=exit_code, output_file=output_file)
