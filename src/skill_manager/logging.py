"""Logging for skill-manager.

All loggers hang off the ``skill_manager`` parent logger. A stderr handler
keeps stdout clean for hook responses and defaults to WARNING. The batch
worker additionally attaches an append-only daily log file, which is the
only place most failures become visible.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path

ROOT_LOGGER_NAME = "skill_manager"
LOG_LEVEL_VAR = "SKILL_MANAGER_LOG_LEVEL"
LOG_FILE_PREFIX = "skill-manager-"
LOG_FILE_SUFFIX = ".log"
FILE_FORMAT = "[%(asctime)s] %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Cache configured loggers
_loggers: dict[str, logging.Logger] = {}


def _stderr_level() -> int:
    level_name = os.environ.get(LOG_LEVEL_VAR, "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    return level if isinstance(level, int) else logging.WARNING


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger.

    Logs to stderr with format: [skill-manager:{name}] {level}: {message}
    The stderr level defaults to WARNING; override with SKILL_MANAGER_LOG_LEVEL.

    Args:
        name: Logger name (typically the module name).

    Returns:
        Configured logger instance.
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(f"[skill-manager:{name}] %(levelname)s: %(message)s"))
        handler.setLevel(_stderr_level())
        logger.addHandler(handler)
        # Records must reach the file handler on the parent even when
        # stderr filters them out.
        logger.setLevel(logging.DEBUG)

    _loggers[name] = logger
    return logger


def get_log_file_path(state_dir: Path | str, day: str | None = None) -> Path:
    """Get the daily log file path (skill-manager-YYYY-MM-DD.log)."""
    if day is None:
        day = time.strftime("%Y-%m-%d")
    return Path(state_dir) / f"{LOG_FILE_PREFIX}{day}{LOG_FILE_SUFFIX}"


def configure_file_logging(log_file: Path | str, level: int = logging.INFO) -> logging.Handler:
    """Attach an append-only file handler to the parent logger.

    Calling this twice for the same file is a no-op.

    Returns:
        The handler in use for ``log_file``.
    """
    log_file = Path(log_file)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in root.handlers:
        if isinstance(existing, logging.FileHandler) and Path(existing.baseFilename) == log_file.resolve():
            return existing

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
    handler.setLevel(level)
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)
    return handler


def remove_file_logging(handler: logging.Handler) -> None:
    """Detach and close a handler returned by configure_file_logging."""
    logging.getLogger(ROOT_LOGGER_NAME).removeHandler(handler)
    handler.close()


def cleanup_old_logs(state_dir: Path | str, max_age_days: int = 7) -> int:
    """Delete daily log files older than ``max_age_days``.

    Missing directories and files that vanish mid-scan are ignored.

    Returns:
        Number of files deleted.
    """
    cutoff = time.time() - max_age_days * 24 * 60 * 60
    try:
        entries = list(Path(state_dir).iterdir())
    except OSError:
        return 0

    removed = 0
    for entry in entries:
        if not (entry.name.startswith(LOG_FILE_PREFIX) and entry.name.endswith(LOG_FILE_SUFFIX)):
            continue
        try:
            if entry.stat().st_mtime < cutoff:
                entry.unlink()
                removed += 1
        except OSError:
            continue
    return removed
