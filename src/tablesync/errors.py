"""
Exceptions raised by the sync engine.

Every error names the table and operation it came from and, for row-level
failures, the row's primary key and a short fragment of its content.
"""

from typing import Any


class SyncError(Exception):
    """Base exception for sync failures."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        operation: str | None = None,
        key: Any = None,
    ):
        self.table = table
        self.operation = operation
        self.key = key
        super().__init__(message)


class StoreConnectionError(SyncError):
    """A record store could not be opened. Always fatal."""


class LockError(SyncError):
    """A table lock or unlock statement failed."""


class SnapshotReadError(SyncError):
    """A full-table snapshot read failed."""


class MutationError(SyncError):
    """A row insert, update or delete failed."""
