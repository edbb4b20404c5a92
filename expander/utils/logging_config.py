"""
Console and file logging for the expander CLI.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init(autoreset=True)

ROOT_LOGGER_NAME = "expander"

# Client libraries that log every request at INFO; muted unless debugging.
NOISY_LOGGERS = ("aiohttp", "httpx", "httpcore", "pydantic_ai", "asyncio")

CONSOLE_FORMAT = "%(levelname)-8s | %(message)s"
VERBOSE_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class LogLevel(str, Enum):
    """Log level enumeration."""

    MINIMAL = "minimal"  # warnings and errors
    NORMAL = "normal"  # stage and section progress
    DETAILED = "detailed"  # every chunk and retry


_LEVELS = {
    LogLevel.MINIMAL: logging.WARNING,
    LogLevel.NORMAL: logging.INFO,
    LogLevel.DETAILED: logging.DEBUG,
}


class ColoredFormatter(logging.Formatter):
    """Colors the level name; the record itself is left untouched for other handlers."""

    COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        original = record.levelname
        record.levelname = f"{self.COLORS.get(original, '')}{original}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(
    level: LogLevel = LogLevel.NORMAL,
    log_file: Optional[str] = None,
    verbose: bool = False,
    debug: bool = False,
) -> logging.Logger:
    """
    Configure the ``expander`` logger hierarchy.

    Args:
        level: Console verbosity
        log_file: Optional log file path; the file always records DEBUG
        verbose: Show timestamps and logger names on the console
        debug: Like verbose, and stop muting client library loggers

    Returns:
        The package root logger
    """
    console_level = logging.DEBUG if (debug or verbose) else _LEVELS[level]

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else console_level)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    if debug or verbose:
        console_handler.setFormatter(ColoredFormatter(VERBOSE_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    else:
        console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    return logger
