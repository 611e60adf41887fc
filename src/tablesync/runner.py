"""
One complete sync run: open both stores, reconcile, close.
"""

import logging

from syncutils.metrics import SyncMetrics
from syncutils.stores import RecordStore, StoreError, open_store

from .counters import RunCounters
from .driver import Reconciler
from .errors import StoreConnectionError
from .options import SyncOptions

logger = logging.getLogger(__name__)


def connect_store(uri: str | None, password: str | None, name: str) -> RecordStore:
    """
    Open the store of one side.

    Raises:
        StoreConnectionError: If the URI is missing or invalid, or the connection fails
    """
    if not uri:
        raise StoreConnectionError(f"No {name} URI configured", operation="connect")
    try:
        store = open_store(uri, password, name=name)
        store.connect()
    except (ValueError, StoreError) as e:
        raise StoreConnectionError(
            f"Cannot connect to {name}: {e}", operation="connect"
        ) from e
    return store


def run_sync(
    options: SyncOptions,
    source_password: str | None = None,
    target_password: str | None = None,
    metrics: SyncMetrics | None = None,
) -> RunCounters:
    """
    Connect to both sides and reconcile the selected tables.

    Both connections are held for the whole run and closed at the end,
    whatever the outcome.

    Raises:
        SyncError: On any fatal failure
    """
    source = connect_store(options.source_uri, source_password, "source")
    try:
        target = connect_store(options.target_uri, target_password, "target")
        try:
            reconciler = Reconciler(source, target, options, metrics=metrics)
            return reconciler.run()
        finally:
            target.close()
    finally:
        source.close()


def list_selected_tables(options: SyncOptions, source_password: str | None = None) -> list[str]:
    """Expand the table selection against the source without touching data."""
    source = connect_store(options.source_uri, source_password, "source")
    try:
        return Reconciler(source, source, options).resolve_tables()
    finally:
        source.close()
