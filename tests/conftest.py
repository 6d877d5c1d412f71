"""Shared fixtures for skill_manager tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from skill_manager.skills.frontmatter import render_document


@pytest.fixture
def make_skill(tmp_path: Path) -> Callable[..., Path]:
    """Create skill directories under tmp_path/skills."""
    skills_dir = tmp_path / "skills"

    def _make(name: str, body: str = "# Skill\n", dir_name: str | None = None, **fields) -> Path:
        skill_dir = skills_dir / (dir_name or name)
        skill_dir.mkdir(parents=True, exist_ok=True)
        frontmatter = {"name": name, "description": f"Use when working on {name}", **fields}
        (skill_dir / "SKILL.md").write_text(render_document(frontmatter, body), encoding="utf-8")
        return skill_dir

    return _make


@pytest.fixture
def skills_dir(tmp_path: Path) -> Path:
    return tmp_path / "skills"
