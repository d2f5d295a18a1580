"""Logging setup.

library modules just `from loguru import logger`; only entry points (the cli,
or an embedding app) call configure_logger to decide where records go.
"""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

VALID_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}

# level of the sink we installed, None until configured
_configured_level: str | None = None


def _stderr_sink(message) -> None:
    # looked up per record so swapped streams (test runners) keep working
    sys.stderr.write(message)


def configure_logger(level: str = "INFO") -> str:
    """Replace loguru's default sink with a stderr sink at `level`.

    unknown levels fall back to INFO. calling again with the same level is a
    no-op. returns the level actually used.
    """
    global _configured_level

    level = level.upper()
    if level not in VALID_LEVELS:
        level = "INFO"
    if _configured_level == level:
        return level

    logger.remove()
    logger.add(_stderr_sink, format=LOG_FORMAT, level=level, colorize=sys.stderr.isatty())
    _configured_level = level
    logger.debug("Logger configured: level={}", level)
    return level
