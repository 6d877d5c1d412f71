"""Batch entry point: discover, filter, lock, then analyze one by one.

Each transcript goes through the same sequence:

1. mark in_progress in the state file
2. preprocess into a temp file
3. run the analyzer on the temp file (temp file removed afterwards)
4. mark completed or failed with the exit code
5. update skill usage counters (when usage tracking is on)

After the batch, still under the lock, unused skills are retired.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from skill_manager.analyzer import AnalysisResult, run_analysis
from skill_manager.config import (
    Settings,
    ensure_state_dirs,
    get_instructions_path,
    get_outputs_dir,
    get_projects_dir,
    get_skills_dir,
    get_state_dir,
    get_state_file_path,
    load_settings,
)
from skill_manager.io import safe_unlink
from skill_manager.lock import hold_lock
from skill_manager.logging import (
    cleanup_old_logs,
    configure_file_logging,
    get_log_file_path,
    get_logger,
    remove_file_logging,
)
from skill_manager.pipeline.discovery import discover_transcripts
from skill_manager.pipeline.filters import filter_unanalyzed
from skill_manager.pipeline.preprocess import preprocess_transcript
from skill_manager.skills.retirement import retire_unused_skills
from skill_manager.skills.usage import track_usage
from skill_manager.state import (
    create_empty_state,
    init_state,
    mark_completed,
    mark_failed,
    mark_in_progress,
    read_state,
    write_state,
)

_logger = get_logger("pipeline")

# Called with the preprocessed transcript and the original path.
Analyzer = Callable[[Path, str], AnalysisResult]


@dataclass
class ProcessResult:
    """Outcome for a single transcript."""

    transcript: str
    success: bool = False
    skipped: bool = False
    reason: str = ""
    exit_code: int | None = None


def make_analyzer(
    settings: Settings,
    *,
    skills_dir: Path,
    outputs_dir: Path,
) -> Analyzer:
    """Bind run_analysis to the current settings and paths."""
    instructions_path = get_instructions_path()

    def analyze(preprocessed: Path, original: str) -> AnalysisResult:
        return run_analysis(
            preprocessed,
            skills_dir=skills_dir,
            instructions_path=instructions_path,
            model=settings.model,
            backend=settings.backend,
            save_output=settings.save_output,
            outputs_dir=outputs_dir,
            original_transcript=original,
        )

    return analyze


def process_transcript(
    transcript: str,
    *,
    state_file: Path,
    analyze: Analyzer,
    settings: Settings,
    skills_dir: Path | None = None,
) -> ProcessResult:
    """Run one transcript through the pipeline.

    A transcript that vanished since discovery is skipped without a state
    entry. Analyzer failures are recorded, never retried.

    Raises:
        OSError: On state-file I/O faults.
    """
    path = Path(transcript)
    if not path.exists():
        _logger.info("  Skipped (file missing): %s", transcript)
        return ProcessResult(transcript=transcript, skipped=True, reason="file_missing")

    _logger.info("Processing: %s", transcript)

    state = read_state(state_file) or create_empty_state()
    state = mark_in_progress(state, transcript)
    write_state(state_file, state)

    _logger.info("  Preprocessing transcript...")
    prep = preprocess_transcript(path, settings.truncate_lines, settings.char_threshold)
    _logger.info(
        "  Reduced from %d to %d bytes (%d%% reduction)",
        prep.input_bytes,
        prep.output_bytes,
        prep.reduction_percent,
    )

    _logger.info("  Starting skill extraction...")
    start = time.monotonic()
    try:
        result = analyze(prep.path, transcript)
    finally:
        safe_unlink(prep.path)
    duration = round(time.monotonic() - start)

    if result.exit_code == 0:
        _logger.info("  Completed in %ds: %s", duration, transcript)
        write_state(state_file, mark_completed(state, transcript))
        outcome = ProcessResult(transcript=transcript, success=True, exit_code=0)
    else:
        _logger.info("  Failed (exit %d) in %ds: %s", result.exit_code, duration, transcript)
        write_state(state_file, mark_failed(state, transcript, result.exit_code))
        outcome = ProcessResult(transcript=transcript, success=False, exit_code=result.exit_code)

    if result.output_file is not None:
        _logger.info("  Analyzer output saved to %s", result.output_file)

    if settings.track_usage:
        usage = track_usage(path, skills_dir)
        if usage.found:
            _logger.info("  Skill usage detected: %s", ", ".join(usage.found))

    return outcome


def run_batch(
    *,
    settings: Settings | None = None,
    state_dir: Path | None = None,
    projects_dir: Path | None = None,
    skills_dir: Path | None = None,
    analyze: Analyzer | None = None,
) -> list[ProcessResult]:
    """Discover, filter and process one batch of transcripts.

    Returns the per-transcript results; an empty list covers every graceful
    skip (no transcripts, nothing new, lock held).

    Raises:
        OSError: On state or lock I/O faults. The lock is released first.
    """
    settings = settings or load_settings()
    state_dir = ensure_state_dirs(state_dir or get_state_dir())
    projects_dir = projects_dir or get_projects_dir()
    skills_dir = skills_dir or get_skills_dir()
    state_file = get_state_file_path(state_dir)

    cleanup_old_logs(state_dir)
    init_state(state_file)

    _logger.info("Discovering transcripts from last %d days...", settings.lookback_days)
    transcripts = discover_transcripts(
        projects_dir,
        lookback_days=settings.lookback_days,
        discovery_limit=settings.discovery_limit,
        min_file_size=settings.min_file_size,
    )
    if not transcripts:
        _logger.info("No transcripts found in %s", projects_dir)
        return []

    state = read_state(state_file) or create_empty_state()
    candidates = filter_unanalyzed(
        transcripts,
        state,
        settings.batch_size,
        min_lines=settings.min_lines,
        skip_subagents=settings.skip_subagents,
    )
    if not candidates:
        _logger.info("All transcripts already analyzed")
        return []

    if analyze is None:
        analyze = make_analyzer(settings, skills_dir=skills_dir, outputs_dir=get_outputs_dir(state_dir))

    results: list[ProcessResult] = []
    with hold_lock(state_dir) as acquired:
        if not acquired:
            _logger.info("Another instance is already running (lock held)")
            return []

        _logger.info("Found %d unanalyzed transcript(s) to process", len(candidates))
        for transcript in candidates:
            results.append(
                process_transcript(
                    transcript,
                    state_file=state_file,
                    analyze=analyze,
                    settings=settings,
                    skills_dir=skills_dir,
                )
            )

        if settings.track_usage:
            report = retire_unused_skills(settings.retirement_sessions, skills_dir)
            if report.retired:
                _logger.info("Retired %d skill(s): %s", len(report.retired), ", ".join(report.retired))

    _logger.info("=== Processing complete ===")
    return results


def main(**kwargs) -> int:
    """Run a batch with file logging attached and map the outcome to an exit code.

    Returns:
        0 on completion or graceful skip, 1 on an unhandled exception.
    """
    state_dir = ensure_state_dirs(kwargs.get("state_dir") or get_state_dir())
    kwargs["state_dir"] = state_dir
    handler = configure_file_logging(get_log_file_path(state_dir))
    try:
        run_batch(**kwargs)
        return 0
    except Exception:
        _logger.exception("Error during batch processing")
        return 1
    finally:
        remove_file_logging(handler)
