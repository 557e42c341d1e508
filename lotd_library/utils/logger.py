"""Logging configuration for lotd-library.

This module provides colored console logging on stderr (stdout is reserved
for the JSON output) and optional rotating file logging, plus small timing
helpers.
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import colorlog

from .exceptions import AppException


CONSOLE_FORMAT_COLOR = "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR_ENV = "LOTD_LIBRARY_LOG_DIR"


def _setup_console_handler(level: int) -> logging.Handler:
    """Create a colored console handler writing to stderr.

    Args:
        level: Logging level

    Returns:
        Configured console handler
    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    formatter = colorlog.ColoredFormatter(
        CONSOLE_FORMAT_COLOR,
        datefmt=DATE_FORMAT,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )

    console_handler.setFormatter(formatter)
    return console_handler


def _setup_file_handler(level: int, log_dir: Path) -> logging.Handler:
    """Create and configure rotating file handler.

    Args:
        level: Logging level
        log_dir: Directory for log files

    Returns:
        Configured rotating file handler
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "lotd_library.log"

    # max 10MB, keep 5 backups
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))

    return file_handler


def get_logger(name: str, log_dir: Optional[Path] = None, level: Optional[str] = None) -> logging.Logger:
    """Get or create a logger with a console handler and optional file handler.

    Args:
        name: Logger name (typically __name__ from calling module)
        log_dir: Directory for log files. If None, uses the LOTD_LIBRARY_LOG_DIR
                 environment variable; no file handler when neither is set.
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
              If None, uses LOG_LEVEL environment variable, defaulting to INFO.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure once per logger
    if not logger.handlers:
        if level is not None:
            log_level_str = level.upper()
        else:
            log_level_str = os.environ.get('LOG_LEVEL', 'INFO').upper()
        log_level = getattr(logging, log_level_str, logging.INFO)

        logger.setLevel(log_level)
        logger.addHandler(_setup_console_handler(log_level))

        if log_dir is None and os.environ.get(LOG_DIR_ENV):
            log_dir = Path(os.environ[LOG_DIR_ENV])
        if log_dir is not None:
            logger.addHandler(_setup_file_handler(log_level, log_dir))

        logger.propagate = False

    return logger


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str):
    """Context manager to automatically log operation execution time.

    Args:
        logger: Logger instance
        operation: Name of the operation

    Usage:
        with log_execution_time(logger, "crawling floor 1"):
            await scraper.crawl_floor(floor)
    """
    logger.debug(f"Starting: {operation}")
    start_time = time.time()

    try:
        yield
    finally:
        duration = time.time() - start_time
        logger.info(f"Completed: {operation} in {duration:.3f}s")


def set_log_level(logger: logging.Logger, level: str) -> None:
    """Change the log level of a logger and all its handlers.

    Args:
        logger: Logger instance
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level_upper = level.upper()
    log_level = getattr(logging, level_upper, logging.INFO)

    logger.setLevel(log_level)
    for handler in logger.handlers:
        handler.setLevel(log_level)

    logger.debug(f"Log level changed to {level_upper}")


def set_package_log_level(level: str) -> None:
    """Apply a log level to every lotd_library logger created so far."""
    for name in list(logging.root.manager.loggerDict):
        if name == "lotd_library" or name.startswith("lotd_library."):
            set_log_level(logging.getLogger(name), level)


def log_exception(logger: logging.Logger, operation: str, exception: Exception) -> None:
    """Log an exception with context.

    Args:
        logger: Logger instance
        operation: Name of the operation that failed
        exception: The exception that was raised
    """
    logger.error(f"Failed: {operation}: {exception}", exc_info=True)
    if isinstance(exception, AppException):
        logger.debug(f"Error details: {exception.to_dict()}")
