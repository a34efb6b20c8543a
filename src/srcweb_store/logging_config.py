"""Loguru configuration for applications embedding srcweb_store."""

import sys
from typing import Any

from loguru import logger

# Flag to track if logging has been configured
_logging_configured = False


def setup_logging(level: str = "INFO", sink: Any = None, force: bool = False) -> None:
    """
    Configures the global logger.

    The library only emits records; the hosting application decides where
    they go by calling this once at startup.

    Args:
        level: Minimum level to emit (default: INFO)
        sink: Where to write; stderr when None
        force: Reconfigure even if logging was already set up
    """
    global _logging_configured

    # Only configure once to avoid duplicate handlers
    if _logging_configured and not force:
        return
    _logging_configured = True

    logger.remove()
    logger.add(
        sink if sink is not None else sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        colorize=sink is None,
    )
