"""
Logging setup for Tollgate.

stdout is the hook protocol channel, so every sink goes to stderr or a file.
The default level is WARNING so a normal hook call prints nothing besides
its verdict.

Environment:
    TOLLGATE_LOG_LEVEL: Minimum level for the stderr sink (default WARNING)
    TOLLGATE_LOG_FILE: Optional path of an additional rotating file sink
"""

import os
import sys

from loguru import logger

DEFAULT_LEVEL = "WARNING"
LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

STDERR_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Replace loguru's default sink with Tollgate's sinks.

    Safe to call more than once; each call resets all sinks.

    Args:
        level: stderr level; falls back to TOLLGATE_LOG_LEVEL then WARNING
        log_file: File sink path; falls back to TOLLGATE_LOG_FILE
    """
    level = (level or os.environ.get("TOLLGATE_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    if level not in LEVELS:
        level = DEFAULT_LEVEL
    log_file = log_file or os.environ.get("TOLLGATE_LOG_FILE")

    logger.remove()
    logger.add(sys.stderr, format=STDERR_FORMAT, level=level, colorize=False)

    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
            enqueue=False,
        )
