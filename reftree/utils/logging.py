"""
Logging setup.

Configures loguru sinks for applications embedding the tree core.
Sets up log rotation and retention policies for the optional file sink.
"""

import sys

from loguru import logger

from reftree.config.settings import settings


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure logger with a stderr sink and optional file rotation."""
    level = (level or settings.log_level).upper()
    log_file = log_file if log_file is not None else settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

    logger.info(f"reftree logging configured (level={level})")
