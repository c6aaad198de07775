"""Shared ``quote_impact`` logger: one file handler plus the console."""

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(module)s.%(funcName)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "QUOTE_IMPACT_LOG_LEVEL"


def resolve_level(level: Optional[str] = None) -> int:
    """Map a level name (argument, then ``QUOTE_IMPACT_LOG_LEVEL``) to a logging level.

    Unknown or empty names fall back to ``INFO``.
    """
    name = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").strip().upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def setup_logger(
    name: str = "quote_impact",
    log_file: str = "output/quote_impact.log",
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Return the named logger, attaching file and console handlers on first use.

    Args:
        name (str): Logger name; modules share ``quote_impact``.
        log_file (str): Log file path; its directory is created if missing.
        level (str, optional): Level name, overriding ``QUOTE_IMPACT_LOG_LEVEL``.

    Returns:
        logging.Logger: The configured logger instance.
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)

    # handlers are attached once per process
    if logger.hasHandlers():
        return logger

    logger.setLevel(resolve_level(level))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()
