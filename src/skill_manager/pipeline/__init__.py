"""Transcript intake pipeline."""

from skill_manager.pipeline.discovery import discover_transcripts
from skill_manager.pipeline.filters import filter_unanalyzed
from skill_manager.pipeline.preprocess import PreprocessResult, preprocess_transcript
from skill_manager.pipeline.runner import ProcessResult, process_transcript, run_batch

__all__ = [
    "PreprocessResult",
    "ProcessResult",
    "discover_transcripts",
    "filter_unanalyzed",
    "preprocess_transcript",
    "process_transcript",
    "run_batch",
]
