"""
Logging setup for the roll pipeline.

All package loggers live under the "odia_roll" logger, which owns the
handlers:
- console: INFO, or DEBUG when DEBUG=1; level names coloured on a terminal
- file: one DEBUG log per run in the log directory (LOG_TO_FILE=1)

Usage:
    from odia_roll.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Page 1: 30 blocks")
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Optional

from .config import Config, get_config


ROOT_LOGGER = "odia_roll"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class LevelColorFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.COLORS.get(record.levelno)
        if not color:
            return text
        # Level column only; the record is shared with the file handler
        return text.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)


def configure_logging(config: Optional[Config] = None) -> logging.Logger:
    """Attach the console and file handlers to the package logger (once)."""
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root

    config = config or get_config()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if config.debug else logging.INFO)
    formatter_cls = LevelColorFormatter if sys.stdout.isatty() else logging.Formatter
    console.setFormatter(formatter_cls(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)

    if config.log_to_file:
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.logs_dir / f"roll_{datetime.now():%Y%m%d_%H%M%S}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)
        root.debug(f"Log file: {log_file}")

    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Logger under the package logger.

    Component names ("BlockDetector") become children ("odia_roll.BlockDetector").
    """
    configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
