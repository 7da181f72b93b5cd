"""
Simple structured logger for console and file output.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _default_level() -> int:
    level = logging.getLevelName(settings.LOG_LEVEL)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: Optional[str] = None, level: Optional[int] = None) -> logging.Logger:
    """
    Return a configured logger instance.

    Ensures handlers are attached only once to avoid duplicate logs.
    """
    logger = logging.getLogger(name if name else "staking")
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

        # Daily folder: <LOG_DIR>/YYYY-MM-DD/staking-HHMMSS-<pid>.log
        if settings.LOG_TO_FILE:
            now = datetime.now(timezone.utc)
            log_dir = os.path.join(settings.LOG_DIR, now.strftime("%Y-%m-%d"))
            os.makedirs(log_dir, exist_ok=True)
            file_path = os.path.join(log_dir, f"staking-{now.strftime('%H%M%S')}-{os.getpid()}.log")
            file_handler = logging.FileHandler(file_path, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)

        logger.setLevel(level if level is not None else _default_level())
        logger.propagate = False
    return logger
