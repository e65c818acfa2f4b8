"""
Service Initialization - Logging Module.

Configures the loguru logger: stderr by default, or a timestamped file
in the log directory (with a ``service.log`` symlink) in quiet mode.
"""

import sys
import time
from pathlib import Path

from loguru import logger

LOG_SYMLINK_NAME = "service.log"


def timestamped_log_name() -> str:
    return f"service-{int(time.time() * 1000)}.log"


def setup_logging(log_path: Path, quiet: bool = False, level: str = "INFO") -> Path | None:
    """
    Configure logger.

    Args:
        log_path: Log directory, must exist
        quiet: Log to a file instead of stderr
        level: Minimum level

    Returns:
        Path of the log file, or None when logging to stderr
    """
    logger.remove()

    if not quiet:
        logger.add(sys.stderr, level=level)
        return None

    log_name = timestamped_log_name()
    logfile = log_path / log_name
    logger.add(
        logfile,
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    symlink = log_path / LOG_SYMLINK_NAME
    try:
        symlink.unlink(missing_ok=True)
        symlink.symlink_to(log_name)
    except OSError as e:
        logger.warning(f"Failed to link {symlink} to {log_name}: {e}")

    return logfile
