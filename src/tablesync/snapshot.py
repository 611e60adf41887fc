"""
Full-table snapshots keyed by primary key.
"""

import logging
from collections.abc import Iterable
from typing import Any

from syncutils.stores import RecordStore, Row, StoreError

from .errors import SnapshotReadError

logger = logging.getLogger(__name__)

Snapshot = dict[Any, Row]


def build_snapshot(rows: Iterable[Row], primary_key: str) -> Snapshot:
    """
    Index rows by their primary key value.

    Every row must carry a non-null primary key. If two rows share a key
    the later one wins.
    """
    snapshot: Snapshot = {}
    for row in rows:
        snapshot[row[primary_key]] = row
    return snapshot


def read_snapshot(store: RecordStore, table: str, primary_key: str) -> Snapshot:
    """
    Read a table from a store and index it.

    Raises:
        SnapshotReadError: If the store read fails
    """
    try:
        rows = store.fetch_table(table)
    except StoreError as e:
        raise SnapshotReadError(
            f"Cannot read {store.name} snapshot of {table}: {e}",
            table=table,
            operation=f"read_{store.name}",
        ) from e

    snapshot = build_snapshot(rows, primary_key)
    logger.debug(f"Read {len(snapshot)} {store.name} row(s) from {table}")
    return snapshot
