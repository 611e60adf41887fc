"""
Logger wrapper that attaches context to every message.
"""

import logging


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        log = ContextLogger("tablesync.driver", table="nodes_info")
        log.warning("Target row is newer", key=42)
        # Output includes both table and key
    """

    def __init__(self, name: str, **context):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)
