"""
Structured logging configuration.

This module provides centralized logging setup for the entire project.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from src.shared_lib.core.settings import LOG_LEVEL, LOG_FILE


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to the error log file. If None, uses LOG_FILE from settings
        console_output: Whether to output logs to console

    Returns:
        Configured root logger
    """
    # Determine log level
    log_level = level or LOG_LEVEL
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # Determine log file path
    file_path = log_file or LOG_FILE

    # Ensure log directory exists
    log_dir = Path(file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Create formatter
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Get root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    # File handler keeps errors only
    file_handler = logging.FileHandler(file_path, encoding="utf-8")
    file_handler.setLevel(logging.ERROR)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Add console handler if requested
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Third-party clients are chatty at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


__all__ = ("setup_logging", "get_logger")
