"""
Table reconciliation between two SQL databases

Converges a target database toward a source database one table at a time,
from full in-memory snapshots keyed by primary key. Conflicts are resolved
by force, by a timestamp column (optionally in both directions) or by
full-row equality.

Components:
- snapshot: Snapshot reads keyed by primary key
- repair: Sentinel "zero date" repair
- resolver: Per-row conflict resolution
- locking: Table lock bracketing of the read-and-apply window
- applier: Mutation execution honouring dry run and ignore-errors
- driver: Per-table orchestration and run counters

Usage:
    from tablesync import Reconciler, load_options

    options = load_options("tablesync.yml", tables="nodes_info")
    counters = Reconciler(source_store, target_store, options).run(options.tables)
"""

from .counters import RunCounters, TableCounters
from .driver import Reconciler
from .errors import (
    LockError,
    MutationError,
    SnapshotReadError,
    StoreConnectionError,
    SyncError,
)
from .options import SyncOptions, load_options

__version__ = "1.0.0"
__all__ = [
    "Reconciler",
    "RunCounters",
    "TableCounters",
    "SyncOptions",
    "load_options",
    "SyncError",
    "StoreConnectionError",
    "LockError",
    "SnapshotReadError",
    "MutationError",
]
