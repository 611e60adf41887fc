"""
Logging configuration for tablesync

Console logging is human readable by default; JSON output is available for
log shippers. Per-table messages carry context through ContextLogger.

Usage:
    from syncutils.logging import setup_logging, ContextLogger

    setup_logging(level="INFO", log_file="/var/log/tablesync/sync.log")

    log = ContextLogger(__name__, table="nodes_info")
    log.info("Snapshot read", rows=1200)
"""

from .config import setup_logging, verbosity_to_level
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "verbosity_to_level",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
