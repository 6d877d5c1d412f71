"""Skill Manager: turn session transcripts into reusable skills.

This package provides:
- A crash-safe transcript intake pipeline (discovery, filtering, locking,
  durable state, preprocessing)
- Skill name similarity, usage tracking, and retirement with consolidation
- Shared utilities for hooks and scripts
"""

__version__ = "0.1.0"

# Re-export commonly used utilities
from skill_manager.io import (
    atomic_write,
    atomic_write_json,
    ensure_parent_dir,
    read_file,
    read_json,
)
from skill_manager.logging import get_logger

__all__ = [
    "atomic_write",
    "atomic_write_json",
    "ensure_parent_dir",
    "get_logger",
    "read_file",
    "read_json",
]
