"""Logging utilities for the page math engine."""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from core.config import settings

LOG_FILE = settings.log_file


def init_logging() -> None:
    """Initialize logging with console and rotating file handler."""
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    logger.setLevel(settings.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    console_handler = logging.StreamHandler()
    # Rendered expressions routinely carry Unicode math symbols
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    console_handler.setFormatter(formatter)
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
        errors="replace",
    )
    file_handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(console_handler)
        logger.addHandler(file_handler)


logger = logging.getLogger("pagemath")
