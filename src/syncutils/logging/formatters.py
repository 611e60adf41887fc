"""
Custom log formatters for structured and console logging.
"""

import json
import logging
import os
import sys
import traceback
from datetime import UTC, datetime

# Attributes every LogRecord carries; anything else came in through extra=
RESERVED_FIELDS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "asctime",
})


def extract_context(record: logging.LogRecord) -> dict:
    """Return the extra fields attached to a log record."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_FIELDS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging

    Outputs log records as one JSON object per line with the standard fields
    plus any extra context under "context".
    """

    def __init__(self, include_hostname: bool = True, app_name: str = "tablesync"):
        super().__init__()
        self.app_name = app_name
        self.hostname = os.uname().nodename if include_hostname else None

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "app": self.app_name,
        }

        if self.hostname:
            log_data["hostname"] = self.hostname

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        context = extract_context(record)
        if context:
            log_data["context"] = context

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with colors

    Extra context is appended as ``[key=value, ...]``.
    """

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            formatted = super().format(record)
        finally:
            record.levelname = levelname

        context = extract_context(record)
        if context:
            formatted += " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"

        return formatted
