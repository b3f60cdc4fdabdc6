"""
Logging Configuration for StayScout

This module provides centralized logging configuration with:
- Console output on stderr (stdout is reserved for the JSON result)
- Optional dated log file
- Configurable log levels
- Per-module loggers
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime


DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str] = None,
    console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console: Whether to log to the console (stderr)
        log_dir: Directory for a dated log file when log_file is not given.
            No file handler is installed when both are None.

    Returns:
        Configured root logger

    Example:
        >>> logger = setup_logging(level="DEBUG")
        >>> logger.info("Scraper started")
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        # stdout carries the job's JSON array
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    log_path: Optional[Path] = None
    if log_file:
        log_path = Path(log_file)
    elif log_dir is not None:
        date_str = datetime.now().strftime("%Y%m%d")
        log_path = Path(log_dir) / f"scraper_{date_str}.log"

    if log_path is not None:
        log_path.parent.mkdir(exist_ok=True, parents=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(getattr(logging, level.upper()))
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.debug(f"Logging initialized - Level: {level}, File: {log_path or 'none'}")

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Name of the logger (typically __name__)

    Returns:
        Logger instance for the module
    """
    return logging.getLogger(name)


def init_scraper_logging(debug: bool = False, log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Initialize logging for a scrape job.

    Args:
        debug: If True, set DEBUG level; otherwise WARNING so that a
            dispatch layer capturing stderr only sees problems.
        log_dir: Optional directory for a dated log file

    Returns:
        Configured logger
    """
    level = "DEBUG" if debug else "WARNING"
    return setup_logging(level=level, log_dir=log_dir)
