"""Logging configuration using loguru.

Call setup_logging() once at startup; everything else just does
``from loguru import logger``.
"""

import sys

from loguru import logger


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    fmt: str = "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> {name}: {message}",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru with a stderr sink and an optional rotating file sink."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=fmt)

    if log_file:
        logger.add(
            log_file,
            level=level.upper(),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}",
            rotation=rotation,
            retention=retention,
        )
