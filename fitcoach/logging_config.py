# -*- coding: utf-8 -*-
"""Logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "supabase", "postgrest", "urllib3")


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Configure application-wide logging.

    Args:
        level: Level name; defaults to FITCOACH_LOG_LEVEL.
        log_file: Optional file to mirror stdout into; defaults to FITCOACH_LOG_FILE.
    """
    level_name = (level or settings.log_level).upper()
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    target = log_file or settings.log_file
    if target is not None:
        target.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(target, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("fitcoach").debug("Logging initialized at %s", level_name)
