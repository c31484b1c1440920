"""Logging configuration for Jetson kernel source provisioning.

Every run logs timestamped lines to the console and to a per-run log
file. Credentials embedded in download URLs are redacted.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = "jetson_sources"

# Patterns to redact from logs
REDACT_PATTERNS = [
    # URLs with userinfo
    (re.compile(r'(https?|ftp)://[^/\s:@]+:[^/\s@]+@'), r'\1://[REDACTED]@'),
    # Basic auth headers
    (re.compile(r'(Authorization["\s:=]+Basic\s+)\S+', re.IGNORECASE), r'\1[REDACTED]'),
]


class RedactingFormatter(logging.Formatter):
    """Formatter that strips credentials from log messages."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record, redacting any credentials."""
        message = super().format(record)
        for pattern, replacement in REDACT_PATTERNS:
            message = pattern.sub(replacement, message)
        return message


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Logging level (default INFO)
        log_file: Optional file path for log output
        console: Whether to output to console (default True)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Clear any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = RedactingFormatter(
        fmt="[%(levelname)s] %(asctime)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (default is app logger)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
