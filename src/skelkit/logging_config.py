"""
Centralized logging configuration for skelkit.

Usage at the entry point (cli.py):

    from skelkit.logging_config import setup_logging
    setup_logging()

Modules log through named stdlib loggers:

    logger = logging.getLogger("skelkit.session")
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_initialized = False


def default_log_dir() -> Path:
    return Path(os.environ.get("SKELKIT_LOG_DIR", str(Path(tempfile.gettempdir()) / "skelkit-logs")))


def setup_logging(
    *,
    log_dir: Optional[str] = None,
    level: str = "INFO",
    console: bool = False,
) -> Path:
    """
    Initialize logging for skelkit.

    Attaches a file handler writing ``skelkit.log`` under *log_dir* (defaults to
    SKELKIT_LOG_DIR or <tmp>/skelkit-logs). Calling it again only adjusts the level.

    Args:
        log_dir: Directory for the log file.
        level: Minimum log level.
        console: Also log to stderr.

    Returns:
        Path of the log file.
    """
    global _initialized

    logger = logging.getLogger("skelkit")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    log_path = Path(log_dir) if log_dir else default_log_dir()
    log_file = log_path / "skelkit.log"
    if _initialized:
        return log_file

    log_path.mkdir(parents=True, exist_ok=True)
    if not any(
        isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == os.path.abspath(log_file)
        for h in logger.handlers
    ):
        file_handler = logging.FileHandler(str(log_file))
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stream_handler)

    _initialized = True
    return log_file
