"""
Table lock bracketing for the snapshot-read-and-apply window.

Sequence for one table:

1. read lock on the source table (if read_lock)
2. target snapshot, then source snapshot
3. write lock on the target table (if write_lock); otherwise, if only the
   source was read-locked, UNLOCK on the target connection
4. deletion and upsert passes
5. UNLOCK on the target connection (if any lock was requested)

Both unlocks go to the target connection. A source read lock is therefore
not released by this sequence; it stays held until the source connection
takes another lock or is closed.
"""

import logging
from enum import Enum

from syncutils.stores import RecordStore, StoreError

from .errors import LockError

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    UNLOCKED = "unlocked"
    SOURCE_READ_LOCKED = "source_read_locked"
    TARGET_WRITE_LOCKED = "target_write_locked"


class LockCoordinator:
    """Lock state machine for one table."""

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        table: str,
        read_lock: bool = False,
        write_lock: bool = False,
    ):
        self.source = source
        self.target = target
        self.table = table
        self.read_lock = read_lock
        self.write_lock = write_lock
        self.state = LockState.UNLOCKED

    @property
    def locking(self) -> bool:
        return self.read_lock or self.write_lock

    def lock_source(self) -> None:
        """Take the source read lock before any snapshot is read."""
        if not self.read_lock:
            return
        self._call(self.source.lock_table_read, "lock_source_read", self.table)
        self.state = LockState.SOURCE_READ_LOCKED
        logger.debug(f"Read-locked source table {self.table}")

    def lock_target(self) -> None:
        """Take the target write lock once both snapshots are read."""
        if self.write_lock:
            self._call(self.target.lock_table_write, "lock_target_write", self.table)
            self.state = LockState.TARGET_WRITE_LOCKED
            logger.debug(f"Write-locked target table {self.table}")
        elif self.state is LockState.SOURCE_READ_LOCKED:
            # Goes to the target connection; the source read lock stays held
            self._call(self.target.unlock_tables, "unlock_target")
            logger.debug(
                f"Issued unlock on target after reading {self.table}; "
                "source read lock remains with the source connection"
            )

    def release(self) -> None:
        """Close the lock window after the apply passes."""
        if not self.locking:
            return
        try:
            self._call(self.target.unlock_tables, "unlock_target")
        finally:
            self.state = LockState.UNLOCKED

    def _call(self, func, operation: str, *args) -> None:
        try:
            func(*args)
        except StoreError as e:
            raise LockError(
                f"{operation} failed for {self.table}: {e}",
                table=self.table,
                operation=operation,
            ) from e
