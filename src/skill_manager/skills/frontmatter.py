"""YAML front matter for SKILL.md files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from skill_manager.io import atomic_write
from skill_manager.logging import get_logger

_logger = get_logger("skills.frontmatter")

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---\n?(.*)$", re.DOTALL)


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str] | None:
    """Split markdown content into front matter and body.

    Returns:
        Tuple of (front matter dict, body), or None if the content has no
        front matter block or the block is not a YAML mapping.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return None

    try:
        fm = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        _logger.warning("Failed to parse frontmatter: %s", e)
        return None

    if fm is None:
        fm = {}
    if not isinstance(fm, dict):
        return None
    return fm, match.group(2)


def serialize_frontmatter(frontmatter: dict[str, Any]) -> str:
    """Render front matter as YAML, keeping key order."""
    return yaml.safe_dump(
        frontmatter,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def render_document(frontmatter: dict[str, Any], body: str) -> str:
    """Assemble a full SKILL.md document."""
    return f"---\n{serialize_frontmatter(frontmatter)}---\n{body}"


def update_frontmatter(path: Path | str, updates: dict[str, Any]) -> bool:
    """Merge ``updates`` into a file's front matter and rewrite it atomically.

    Returns:
        False if the file has no front matter (nothing is written).

    Raises:
        OSError: If the file cannot be read or written.
    """
    path = Path(path)
    parsed = parse_frontmatter(path.read_text(encoding="utf-8"))
    if parsed is None:
        return False

    frontmatter, body = parsed
    atomic_write(path, render_document({**frontmatter, **updates}, body))
    return True


def get_int(frontmatter: dict[str, Any], key: str, default: int = 0) -> int:
    """Read an integer field, tolerating missing or junk values."""
    value = frontmatter.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default
