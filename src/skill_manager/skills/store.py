"""Enumerate active skills under the skills root.

An active skill is a non-hidden directory directly under the skills root
that holds a SKILL.md whose front matter has a ``name``. Retired skills
live in the hidden ``.retired`` directory and are never active.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from skill_manager.config import get_skills_dir
from skill_manager.logging import get_logger
from skill_manager.skills.frontmatter import get_int, parse_frontmatter

_logger = get_logger("skills.store")

SKILL_FILE = "SKILL.md"
EXAMPLES_FILE = "examples.md"
TROUBLESHOOTING_FILE = "troubleshooting.md"


@dataclass
class Skill:
    """An active skill on disk."""

    name: str
    dir_path: Path
    frontmatter: dict[str, Any] = field(default_factory=dict)

    @property
    def skill_file(self) -> Path:
        return self.dir_path / SKILL_FILE

    @property
    def sessions_since_use(self) -> int:
        return get_int(self.frontmatter, "sessions_since_use")

    @property
    def usage_count(self) -> int:
        return get_int(self.frontmatter, "usage_count")


def load_skill(skill_dir: Path) -> Skill | None:
    """Load a skill directory, or None if it is not a valid skill."""
    skill_file = skill_dir / SKILL_FILE
    try:
        content = skill_file.read_text(encoding="utf-8")
    except (FileNotFoundError, NotADirectoryError):
        return None
    except (OSError, UnicodeDecodeError) as e:
        _logger.warning("Could not read %s: %s", skill_file, e)
        return None

    parsed = parse_frontmatter(content)
    if parsed is None:
        return None
    frontmatter, _ = parsed
    name = frontmatter.get("name")
    if not name:
        return None
    return Skill(name=str(name), dir_path=skill_dir, frontmatter=frontmatter)


def get_active_skills(skills_dir: Path | str | None = None) -> list[Skill]:
    """List active skills, sorted by directory name.

    A missing skills root gives an empty list.
    """
    skills_dir = Path(skills_dir) if skills_dir else get_skills_dir()
    if not skills_dir.is_dir():
        return []

    skills: list[Skill] = []
    for entry in sorted(skills_dir.iterdir()):
        if entry.name.startswith(".") or not entry.is_dir():
            continue
        skill = load_skill(entry)
        if skill is not None:
            skills.append(skill)
    return skills


def get_active_skill_names(skills_dir: Path | str | None = None) -> list[str]:
    """Names of all active skills."""
    return [s.name for s in get_active_skills(skills_dir)]
