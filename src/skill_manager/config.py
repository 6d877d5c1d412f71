"""Configuration and path helpers for skill-manager.

Provides canonical paths for:
- Pipeline state (state file, lock, logs, saved analyzer output)
- Transcript root and skills root
- The analyzer instructions document

and the tunable ``Settings`` read from SKILL_MANAGER_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

STATE_FILE_NAME = "analyzed.json"
LOCK_DIR_NAME = "skill-manager.lock.d"
OUTPUTS_DIR_NAME = "outputs"
RETIRED_DIR_NAME = ".retired"
INSTRUCTIONS_REL_PATH = Path("prompts") / "skill-manager.md"


def get_claude_home() -> Path:
    """Get the ~/.claude directory."""
    return Path.home() / ".claude"


def get_state_dir() -> Path:
    """Get the state directory.

    Uses SKILL_MANAGER_STATE_DIR if set, otherwise ~/.claude/skill-manager/
    """
    env_dir = os.environ.get("SKILL_MANAGER_STATE_DIR")
    if env_dir:
        return Path(env_dir)
    return get_claude_home() / "skill-manager"


def get_state_file_path(state_dir: Path | None = None) -> Path:
    """Get the path to analyzed.json."""
    return (state_dir or get_state_dir()) / STATE_FILE_NAME


def get_outputs_dir(state_dir: Path | None = None) -> Path:
    """Get the directory for saved analyzer output."""
    return (state_dir or get_state_dir()) / OUTPUTS_DIR_NAME


def get_projects_dir() -> Path:
    """Get the transcript root.

    Uses SKILL_MANAGER_PROJECTS_DIR if set, otherwise ~/.claude/projects/
    """
    env_dir = os.environ.get("SKILL_MANAGER_PROJECTS_DIR")
    if env_dir:
        return Path(env_dir)
    return get_claude_home() / "projects"


def get_skills_dir() -> Path:
    """Get the skills root.

    Uses SKILL_MANAGER_SKILLS_DIR if set, otherwise ~/.claude/skills/
    """
    env_dir = os.environ.get("SKILL_MANAGER_SKILLS_DIR")
    if env_dir:
        return Path(env_dir)
    return get_claude_home() / "skills"


def get_retired_dir(skills_dir: Path | None = None) -> Path:
    """Get the holding area for retired skills."""
    return (skills_dir or get_skills_dir()) / RETIRED_DIR_NAME


def get_instructions_path() -> Path:
    """Get the analyzer instructions document.

    Uses SKILL_MANAGER_INSTRUCTIONS if set, otherwise the copy shipped
    with the package.
    """
    env_path = os.environ.get("SKILL_MANAGER_INSTRUCTIONS")
    if env_path:
        return Path(env_path)
    return Path(__file__).parent / INSTRUCTIONS_REL_PATH


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    """Tunables for a pipeline run.

    Attributes:
        batch_size: Transcripts analyzed per run.
        lookback_days: Only transcripts modified within this window are considered.
        truncate_lines: Lines kept at each end of an oversized tool result.
        min_lines: Transcripts with fewer non-blank lines are skipped.
        skip_subagents: Exclude ``agent-*`` sub-agent transcripts.
        discovery_limit: Cap on discovered transcripts before filtering.
        min_file_size: Transcripts smaller than this many bytes are not discovered.
        save_output: Keep the analyzer's combined output under outputs/.
        track_usage: Update skill usage metadata and run retirement.
        retirement_sessions: Retire skills unused for more than this many sessions.
        char_threshold: Character limit for tool results line truncation cannot shrink.
        model: Model passed to the analyzer.
        backend: Analyzer backend, ``cli`` or ``sdk``.
    """

    batch_size: int = 1
    lookback_days: int = 7
    truncate_lines: int = 30
    min_lines: int = 10
    skip_subagents: bool = True
    discovery_limit: int = 50
    min_file_size: int = 500
    save_output: bool = False
    track_usage: bool = True
    retirement_sessions: int = 30
    char_threshold: int = 50_000
    model: str = "sonnet"
    backend: str = "cli"


def load_settings() -> Settings:
    """Build Settings from the environment, falling back to defaults."""
    defaults = Settings()
    backend = os.environ.get("SKILL_MANAGER_BACKEND", defaults.backend).strip().lower()
    if backend not in ("cli", "sdk"):
        backend = defaults.backend
    min_file_size_raw = os.environ.get("SKILL_MANAGER_MIN_FILE_SIZE", "").strip()

    return Settings(
        batch_size=_env_int("SKILL_MANAGER_COUNT", defaults.batch_size),
        lookback_days=_env_int("SKILL_MANAGER_LOOKBACK_DAYS", defaults.lookback_days),
        truncate_lines=_env_int("SKILL_MANAGER_TRUNCATE_LINES", defaults.truncate_lines),
        min_lines=_env_int("SKILL_MANAGER_MIN_LINES", defaults.min_lines),
        skip_subagents=_env_flag("SKILL_MANAGER_SKIP_SUBAGENTS", defaults.skip_subagents),
        discovery_limit=_env_int("SKILL_MANAGER_DISCOVERY_LIMIT", defaults.discovery_limit),
        # Zero is meaningful here: it disables the size filter.
        min_file_size=(
            int(min_file_size_raw)
            if min_file_size_raw.isdigit()
            else defaults.min_file_size
        ),
        save_output=(
            _env_flag("SKILL_MANAGER_SAVE_OUTPUT", False)
            or os.environ.get("SKILL_MANAGER_DEBUG") == "1"
        ),
        track_usage=_env_flag("SKILL_MANAGER_TRACK_USAGE", defaults.track_usage),
        retirement_sessions=_env_int("SKILL_MANAGER_RETIREMENT_SESSIONS", defaults.retirement_sessions),
        char_threshold=_env_int("SKILL_MANAGER_CHAR_THRESHOLD", defaults.char_threshold),
        model=os.environ.get("SKILL_MANAGER_MODEL", "").strip() or defaults.model,
        backend=backend,
    )


def ensure_state_dirs(state_dir: Path | None = None) -> Path:
    """Ensure the state directory exists and return it."""
    state_dir = state_dir or get_state_dir()
    state_dir.mkdir(parents=True, exist_ok=True)
    return state_dir
