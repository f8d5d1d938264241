"""
Logging for the PhotoVault editor.

Everything goes through the root logger: a console handler always, plus one
log file per day under ~/.local/share/photovault/logs/ when file output is
enabled. Set PHOTOVAULT_LOG_LEVEL (e.g. "DEBUG") to override the level
passed by the host application.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "photovault" / "logs"
LOG_LEVEL_ENV = "PHOTOVAULT_LOG_LEVEL"

_FORMATTER = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "%Y-%m-%d %H:%M:%S",
)

_logging_initialized = False


def _resolve_level(log_level: Union[int, str]) -> int:
    """Env override first, then the caller's level; names or numbers."""
    requested = os.environ.get(LOG_LEVEL_ENV) or log_level
    if isinstance(requested, int):
        return requested
    level = logging.getLevelName(str(requested).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def log_file_for(log_dir: Path, day: Optional[datetime] = None) -> Path:
    """Daily log file inside ``log_dir``."""
    day = day or datetime.now()
    return log_dir / f"photovault_{day.strftime('%Y%m%d')}.log"


def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Route editor logging to the console and, optionally, a daily file.

    Args:
        log_level: Level as a number or name; PHOTOVAULT_LOG_LEVEL wins.
        log_to_file: Also write to a file under ``log_dir``.
        log_dir: Defaults to ~/.local/share/photovault/logs/

    Returns:
        Path of the log file in use, or None when logging to console only.

    Only the first call configures anything.
    """
    global _logging_initialized

    if _logging_initialized:
        return None

    level = _resolve_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(_FORMATTER)
    root_logger.addHandler(console_handler)

    log_path = None
    if log_to_file:
        log_path = log_file_for(log_dir or DEFAULT_LOG_DIR)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError as e:
            console_handler.setLevel(logging.WARNING)
            root_logger.warning(f"Could not open log file {log_path}: {e}. Logging to console only.")
            log_path = None
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(_FORMATTER)
            root_logger.addHandler(file_handler)

    _logging_initialized = True
    return log_path


def reset_logging() -> None:
    """Drop all root handlers so setup_logging() can run again."""
    global _logging_initialized

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _logging_initialized = False


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, usually called with ``__name__``.

    Usage:
        from photovault.services.logging_service import get_logger
        logger = get_logger(__name__)
        logger.info("Editor opened")
    """
    return logging.getLogger(name)
