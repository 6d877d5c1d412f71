"""Retire unused skills, consolidating what is worth keeping first.

A skill whose ``sessions_since_use`` exceeds the threshold is moved into
``<skills_dir>/.retired/``. Before the move, if a strictly similar active
skill exists, the retiring skill's failed attempts, key insight, examples
and troubleshooting notes are appended to that skill so the knowledge is
not lost with it. Consolidation is best-effort; retirement happens either
way.
"""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from skill_manager.config import get_retired_dir, get_skills_dir
from skill_manager.io import atomic_write, read_file
from skill_manager.logging import get_logger
from skill_manager.skills.similarity import find_similar_strict
from skill_manager.skills.store import (
    EXAMPLES_FILE,
    SKILL_FILE,
    TROUBLESHOOTING_FILE,
    Skill,
    get_active_skills,
)

_logger = get_logger("skills.retirement")

VERSION_HISTORY_HEADING = "## Version History"

_FAILED_ATTEMPTS_RE = re.compile(r"## Failed Attempts\n\n(.*?)(?=\n##|\Z)", re.DOTALL)
# First paragraph of the Instructions section
_KEY_INSIGHT_RE = re.compile(r"## Instructions\n\n(.*?)(?=\n##|\n\n)", re.DOTALL)


@dataclass
class ConsolidatableContent:
    """Pieces of a retiring skill worth carrying over. Each may be absent."""

    failed_attempts: str | None = None
    key_insight: str | None = None
    troubleshooting: str | None = None
    examples: str | None = None

    def is_empty(self) -> bool:
        return not (self.failed_attempts or self.key_insight or self.troubleshooting or self.examples)


@dataclass
class RetirementReport:
    """Outcome of one retirement pass."""

    retired: list[str] = field(default_factory=list)
    consolidated: list[tuple[str, str]] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def extract_consolidatable_content(skill_dir: Path | str) -> ConsolidatableContent:
    """Pull the reusable pieces out of a skill directory."""
    skill_dir = Path(skill_dir)
    content = ConsolidatableContent()

    skill_md = read_file(skill_dir / SKILL_FILE)
    if skill_md:
        match = _FAILED_ATTEMPTS_RE.search(skill_md)
        if match and match.group(1).strip():
            content.failed_attempts = match.group(1).strip()

        match = _KEY_INSIGHT_RE.search(skill_md)
        if match and match.group(1).strip():
            content.key_insight = match.group(1).strip()

    content.troubleshooting = read_file(skill_dir / TROUBLESHOOTING_FILE)
    content.examples = read_file(skill_dir / EXAMPLES_FILE)
    return content


def _consolidation_block(source_name: str, content: ConsolidatableContent, today: str) -> str:
    block = f"\n---\n\n## Consolidated from `{source_name}` ({today})\n\n"
    if content.key_insight:
        block += f"### Key Insight\n{content.key_insight}\n\n"
    if content.failed_attempts:
        block += f"### Additional Failed Attempts\n{content.failed_attempts}\n"
    return block


def _append_companion(path: Path, source_name: str, text: str, today: str) -> bool:
    existing = read_file(path)
    if existing is None:
        return False
    atomic_write(path, f"{existing}\n\n<!-- Consolidated from {source_name} on {today} -->\n{text}")
    return True


def append_consolidated_content(
    target_dir: Path | str,
    source_name: str,
    content: ConsolidatableContent,
) -> list[str]:
    """Append extracted content to the matching documents of a target skill.

    SKILL.md content goes before the Version History section when there is
    one. Companion documents are only appended to when the target already
    has them.

    Returns:
        Names of the files that were updated.

    Raises:
        OSError: If a target document cannot be written.
    """
    target_dir = Path(target_dir)
    today = date.today().isoformat()
    updated: list[str] = []

    skill_path = target_dir / SKILL_FILE
    skill_md = read_file(skill_path)
    if skill_md is not None and (content.failed_attempts or content.key_insight):
        block = _consolidation_block(source_name, content, today)
        if VERSION_HISTORY_HEADING in skill_md:
            skill_md = skill_md.replace(VERSION_HISTORY_HEADING, f"{block}\n{VERSION_HISTORY_HEADING}", 1)
        else:
            skill_md += block
        atomic_write(skill_path, skill_md)
        updated.append(SKILL_FILE)

    if content.examples and _append_companion(target_dir / EXAMPLES_FILE, source_name, content.examples, today):
        updated.append(EXAMPLES_FILE)

    if content.troubleshooting and _append_companion(
        target_dir / TROUBLESHOOTING_FILE, source_name, content.troubleshooting, today
    ):
        updated.append(TROUBLESHOOTING_FILE)

    return updated


def attempt_consolidation(skill: Skill, active_skills: list[Skill]) -> str | None:
    """Merge a retiring skill into its closest strict match, if any.

    Returns:
        Name of the skill consolidated into, or None.
    """
    by_name = {s.name: s for s in active_skills if s.name != skill.name}
    matches = find_similar_strict(skill.name, by_name)
    if not matches:
        return None

    best = matches[0]
    target = by_name[best.name]
    _logger.info(
        "Consolidating %s into %s (Jaccard: %.2f, Prefix: %d)",
        skill.name,
        best.name,
        best.jaccard,
        best.prefix,
    )

    content = extract_consolidatable_content(skill.dir_path)
    if content.is_empty():
        return best.name

    updated = append_consolidated_content(target.dir_path, skill.name, content)
    for name in updated:
        _logger.info("  Added consolidated content to %s/%s", best.name, name)
    return best.name


def retirement_target(retired_dir: Path, dir_name: str) -> Path:
    """Pick a free destination under the retired dir.

    Collisions get a ``-YYYYMMDD`` suffix, then a counter after that.
    """
    target = retired_dir / dir_name
    if not target.exists():
        return target

    stamp = date.today().strftime("%Y%m%d")
    target = retired_dir / f"{dir_name}-{stamp}"
    counter = 2
    while target.exists():
        target = retired_dir / f"{dir_name}-{stamp}-{counter}"
        counter += 1
    return target


def retire_unused_skills(
    threshold: int,
    skills_dir: Path | str | None = None,
) -> RetirementReport:
    """Retire every active skill unused for more than ``threshold`` sessions.

    A failure to consolidate or move one skill is logged and does not stop
    the pass.
    """
    skills_dir = Path(skills_dir) if skills_dir else get_skills_dir()
    retired_dir = get_retired_dir(skills_dir)
    report = RetirementReport()

    active = get_active_skills(skills_dir)
    for skill in list(active):
        sessions = skill.sessions_since_use
        if sessions <= threshold:
            continue

        consolidated_into = None
        try:
            consolidated_into = attempt_consolidation(skill, active)
        except OSError as e:
            _logger.warning("Failed to consolidate skill %s: %s", skill.name, e)
        if consolidated_into:
            report.consolidated.append((skill.name, consolidated_into))

        try:
            retired_dir.mkdir(parents=True, exist_ok=True)
            target = retirement_target(retired_dir, skill.dir_path.name)
            shutil.move(str(skill.dir_path), str(target))
        except OSError as e:
            _logger.warning("Failed to retire skill %s: %s", skill.name, e)
            report.failed.append(skill.name)
            continue

        active.remove(skill)
        report.retired.append(skill.name)
        note = f" [consolidated into {consolidated_into}]" if consolidated_into else ""
        _logger.info("Retired skill: %s (unused for %d sessions)%s", skill.name, sessions, note)

    return report
