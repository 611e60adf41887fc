"""
Root logger setup for tablesync runs.

The -v count decides how much of a sync is reported: warnings only, one
summary line per table, or every row mutation and SQL statement. Output goes
to stderr so that stdout stays free for the run summaries, and optionally to
a rotating file for scheduled runs.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

# -v count -> log level; anything above the table is DEBUG
VERBOSITY_LEVELS = {
    0: "WARNING",
    1: "INFO",
}

# Client libraries that log every HTTP request or job tick at INFO
QUIET_LOGGERS = ("urllib3", "requests", "apscheduler")


def verbosity_to_level(verbosity: int, debug: bool = False) -> str:
    """
    Map the -v count (and --debug) to a log level name.

    0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG.
    """
    if debug:
        return "DEBUG"
    return VERBOSITY_LEVELS.get(verbosity, "DEBUG" if verbosity > 1 else "WARNING")


def _formatter(json_format: bool, app_name: str, colors: bool) -> logging.Formatter:
    if json_format:
        return JSONFormatter(app_name=app_name)
    return ConsoleFormatter(use_colors=colors)


def _sync_log_file(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = "tablesync",
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Replace the root handlers with the ones a sync run writes to.

    Args:
        level: Level name from verbosity_to_level(); unknown names mean INFO
        log_file: Rotating log file for scheduled runs (None disables it)
        console_output: Whether to write to stderr
        json_format: Emit one JSON object per line instead of console text
        app_name: Value of the "app" field in JSON output
        max_bytes: Size at which the log file is rotated
        backup_count: Number of rotated files kept
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = []
    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_formatter(json_format, app_name, colors=True))
        handlers.append(console)
    if log_file:
        file_handler = _sync_log_file(log_file, max_bytes, backup_count)
        file_handler.setFormatter(_formatter(json_format, app_name, colors=False))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Sync logging at {logging.getLevelName(numeric_level)} "
        f"(file={log_file or 'none'}, json={json_format})"
    )
