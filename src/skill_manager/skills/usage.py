"""Track which skills a transcript mentions.

Every processed transcript either resets a skill's ``sessions_since_use``
(and bumps ``usage_count``/``last_used``) or ages it by one session. The
retirement pass reads ``sessions_since_use`` later.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from skill_manager.logging import get_logger
from skill_manager.skills.frontmatter import update_frontmatter
from skill_manager.skills.store import get_active_skills

_logger = get_logger("skills.usage")


@dataclass
class UsageReport:
    """Skills found in a transcript and how many skill files were updated."""

    found: list[str] = field(default_factory=list)
    updated: int = 0


def skill_pattern(name: str) -> re.Pattern[str]:
    """Case-insensitive pattern for a skill name.

    Each hyphen also matches whitespace, so ``explicit-reasoning-protocol``
    matches "Explicit reasoning protocol".
    """
    parts = [re.escape(part) for part in name.split("-")]
    return re.compile(r"[-\s]".join(parts), re.IGNORECASE)


def track_usage(transcript_path: Path | str, skills_dir: Path | str | None = None) -> UsageReport:
    """Update usage metadata of every active skill from one transcript.

    An unreadable transcript is logged and leaves all skills unchanged.
    """
    report = UsageReport()
    skills = get_active_skills(skills_dir)
    if not skills:
        return report

    try:
        content = Path(transcript_path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        _logger.warning("Could not read transcript for usage tracking: %s", e)
        return report

    today = date.today()
    for skill in skills:
        if skill_pattern(skill.name).search(content):
            report.found.append(skill.name)
            updates = {
                "usage_count": skill.usage_count + 1,
                "last_used": today,
                "sessions_since_use": 0,
            }
        else:
            updates = {"sessions_since_use": skill.sessions_since_use + 1}

        try:
            if update_frontmatter(skill.skill_file, updates):
                report.updated += 1
        except OSError as e:
            _logger.warning("Could not update usage for %s: %s", skill.name, e)

    if report.found:
        _logger.info("Skills used in transcript: %s", ", ".join(report.found))
    return report
