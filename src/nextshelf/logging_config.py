"""Logging setup via loguru.

Console output is colored and human readable. An optional file handler
writes serialized JSON with rotation.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def configure_logging(
    log_level: str = "WARNING",
    log_file: Path | None = None,
    rotation_size: str = "10 MB",
    retention_count: int = 5,
) -> None:
    """Configure application logging.

    Args:
        log_level: Minimum level for console output (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path of a JSON log file.
        rotation_size: Maximum file size before rotation (e.g. "10 MB").
        retention_count: Number of rotated files to keep.
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format="{message}",
            serialize=True,
            rotation=rotation_size,
            retention=retention_count,
            enqueue=True,
        )
        logger.debug("Logging to {}", log_file)
