"""
Logging setup for Artwork Storage using Python's standard logging
with JSON formatting for structured error logs.

Log destinations:
- Console (stderr): Human-readable format for debugging
- logs/errors.jsonl: JSON format for error tracking

Signed query strings never reach a handler in clear text: the
RedactionFilter masks ``sig=`` values and account keys on every record.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import re
import sys

from pathlib import Path
from typing import Any

from pythonjsonlogger import json as jsonlogger

from art_storage.core.constants import (
    LOG_BACKUP_COUNT_ERRORS,
    LOG_MAX_SIZE,
    LOG_REDACTED,
    PROJECT_ROOT,
)

# Secret redaction patterns (signature values and connection-string keys)
REDACTION_PATTERNS = [
    (re.compile(r"(\bsig=)[^&\s;\"']+"), rf"\g<1>{LOG_REDACTED}"),
    (re.compile(r"(\bAccountKey=)[^;\s\"']+", re.IGNORECASE), rf"\g<1>{LOG_REDACTED}"),
    (re.compile(r"(\bSharedAccessSignature=)[^;\s\"']+", re.IGNORECASE), rf"\g<1>{LOG_REDACTED}"),
]


def redact(text: str) -> str:
    """Mask signatures and keys in a string."""
    if not text:
        return text
    for pattern, replacement in REDACTION_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class RedactionFilter(logging.Filter):
    """Rewrite the record message and string extras with secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = ()
        for key, value in vars(record).items():
            if key != "msg" and isinstance(value, str) and ("sig=" in value or "Key=" in value):
                setattr(record, key, redact(value))
        return True


class ErrorFilter(logging.Filter):
    """Filter to only allow ERROR and CRITICAL logs"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to log levels and standardizes format.
    Format: HH:MM:SS [LEVEL] logger_name - message
    """

    # ANSI color codes
    GREY = "\x1b[38;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        level_fmt = f"[{record.levelname}]"
        if color:
            level_fmt = f"{color}{level_fmt}{self.RESET}"

        record.asctime = self.formatTime(record, "%H:%M:%S")
        message = f"{record.asctime} {level_fmt} {record.name} - {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(
    name: str = "art-storage",
    debug: bool | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Set up logging with a console handler and a JSON error file handler.

    Args:
        name: Logger name
        debug: Enable debug logging (overrides DEBUG env var)
        log_dir: Directory for errors.jsonl (overrides LOG_DIR env var)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level
    logger.handlers = []
    logger.filters = []
    logger.addFilter(RedactionFilter())

    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

    # --- Console Handler (Human-readable) ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    logger.addHandler(console_handler)

    # --- Error Log Handler (JSON) ---
    if log_dir is None:
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
    if not log_dir.is_absolute():
        log_dir = PROJECT_ROOT / log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    error_handler = logging.handlers.RotatingFileHandler(
        log_dir / "errors.jsonl",
        maxBytes=LOG_MAX_SIZE,
        backupCount=LOG_BACKUP_COUNT_ERRORS,
        encoding="utf-8",
        delay=True,
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.addFilter(ErrorFilter())
    error_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(name)s %(message)s",
            timestamp=True,
        )
    )
    logger.addHandler(error_handler)

    return logger


class StorageLogger:
    """
    High-level logging interface for Artwork Storage.
    Wraps standard Python logging with keyword-argument structured context.
    """

    def __init__(self, name: str = "art-storage"):
        self.logger = setup_logging(name)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Debug level logging"""
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Info level logging"""
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Warning level logging"""
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Error level logging with optional exception info"""
        self.logger.error(message, extra=kwargs, exc_info=exc_info)


# Global logger instance
logger = StorageLogger()
