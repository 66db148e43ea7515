# verkcli/utils/logger.py
"""
Centralised logging configuration for the whole CLI.
Logs to stderr and to a rotating file under the user cache directory.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from verkcli.config import settings
from verkcli.utils.paths import user_cache_root

_configured = False


def _log_dir() -> str:
    return os.path.join(str(user_cache_root()), "verkcli", "logs")


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    level = settings.LOG_LEVEL.upper()
    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler (stderr keeps stdout clean for command output)
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)

    if not settings.LOG_FILE_ENABLED:
        return

    # Rotating file handler, keeps last 5 × 5MB log files
    try:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=os.path.join(log_dir, "verkcli.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
    except OSError as e:
        root.debug(f"File logging disabled: {e}")
        return
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)


def set_log_level(level: str):
    """Change the level of the root logger and all its handlers (used by --debug)."""
    _configure_root_logger()
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in root.handlers:
        handler.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
