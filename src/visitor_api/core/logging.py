"""Loguru sinks for the API server and the CLI.

Console output always goes to stderr. A daily-rotated ``visitor-api.log`` is
added when a log directory is configured.
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"
LOG_FILE_NAME = "visitor-api.log"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Replace any existing sinks with the configured ones.

    Args:
        log_level: Minimum level, case-insensitive.
        log_dir: Directory for the rotating log file; created if missing.
    """
    level = log_level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT)

    if not log_dir:
        return
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    logger.add(
        directory / LOG_FILE_NAME,
        level=level,
        format=_LOG_FORMAT,
        rotation="00:00",
        retention="14 days",
        encoding="utf-8",
    )
