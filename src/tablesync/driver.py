"""
Reconciliation driver.

Processes tables strictly one at a time. For each table:

    lock source (optional) -> read target snapshot -> read source snapshot
    -> lock target / unlock (optional) -> deletion pass -> upsert pass
    -> release locks

and folds the table's counters into the run counters.
"""

import logging
import time
from collections.abc import Iterable

from opentelemetry import trace

from syncutils.logging import ContextLogger
from syncutils.metrics import SyncMetrics
from syncutils.stores import RecordStore, StoreError
from syncutils.tracing import add_span_attributes, add_span_event, trace_operation

from .applier import MutationApplier
from .counters import RunCounters, TableCounters
from .errors import LockError, SnapshotReadError, SyncError
from .locking import LockCoordinator
from .options import ALL_TABLES, SyncOptions
from .repair import SentinelRepair
from .resolver import resolve
from .snapshot import Snapshot, read_snapshot

logger = logging.getLogger(__name__)


class Reconciler:
    """Converges target tables toward the source."""

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        options: SyncOptions,
        metrics: SyncMetrics | None = None,
        repair: SentinelRepair | None = None,
    ):
        """
        Initialize reconciler.

        Args:
            source: Connected source store
            target: Connected target store
            options: Run options
            metrics: Optional Prometheus metrics sink
            repair: Sentinel repair policies (default: built from options)
        """
        self.source = source
        self.target = target
        self.options = options
        self.metrics = metrics
        self.repair = repair or SentinelRepair.from_options(options)

    def resolve_tables(self, requested: Iterable[str] | None = None) -> list[str]:
        """
        Expand the table selection.

        "*" stands for every source table except the skip-list. Explicit
        names are kept as given, in order, without duplicates.

        Raises:
            SnapshotReadError: If the source table list cannot be read
        """
        requested = list(requested if requested is not None else self.options.tables)
        tables: list[str] = []

        for name in requested:
            if name == ALL_TABLES:
                try:
                    available = self.source.list_tables()
                except StoreError as e:
                    raise SnapshotReadError(
                        f"Cannot list source tables: {e}", operation="list_tables"
                    ) from e
                expanded = [t for t in available if t not in self.options.skip_tables]
                logger.debug(
                    f"Expanded '*' to {len(expanded)} table(s) "
                    f"({len(available) - len(expanded)} skipped)"
                )
                tables.extend(t for t in expanded if t not in tables)
            elif name not in tables:
                tables.append(name)

        return tables

    def run(self, tables: Iterable[str] | None = None) -> RunCounters:
        """
        Sync every selected table.

        Lock and snapshot failures abandon the table when ignore_errors is
        set and abort the run otherwise. Row failures are handled inside
        sync_table.

        Returns:
            RunCounters for the run
        """
        run_counters = RunCounters()

        for table in self.resolve_tables(tables):
            try:
                counters = self.sync_table(table)
            except (LockError, SnapshotReadError) as e:
                run_counters.abandon(table)
                if self.metrics:
                    self.metrics.record_failure(table)
                logger.error(f"Table {table} abandoned: {e}")
                if not self.options.ignore_errors:
                    raise
                continue
            run_counters.add(counters)

        self.log_summary(run_counters)
        return run_counters

    def sync_table(self, table: str) -> TableCounters:
        """
        Reconcile one table.

        Raises:
            LockError: If a lock statement fails
            SnapshotReadError: If either snapshot cannot be read
            MutationError: If a row mutation fails and ignore_errors is off
        """
        options = self.options
        counters = TableCounters(table)
        log = ContextLogger(__name__, table=table)
        coordinator = LockCoordinator(
            self.source,
            self.target,
            table,
            read_lock=options.read_lock,
            write_lock=options.write_lock,
        )
        applier = MutationApplier(self.source, self.target, table, options, counters)
        started = time.monotonic()

        with trace_operation("sync_table", kind=trace.SpanKind.INTERNAL, table=table):
            try:
                coordinator.lock_source()
                target_snapshot = read_snapshot(self.target, table, options.primary_key)
                source_snapshot = read_snapshot(self.source, table, options.primary_key)
                add_span_event(
                    "snapshots_read",
                    source_rows=len(source_snapshot),
                    target_rows=len(target_snapshot),
                )
                coordinator.lock_target()

                self._delete_pass(source_snapshot, target_snapshot, applier)
                self._upsert_pass(table, source_snapshot, target_snapshot, applier, log)
            except SyncError:
                self._release_after_failure(coordinator)
                raise
            coordinator.release()

            add_span_attributes(**counters.to_dict())

        duration = time.monotonic() - started
        if self.metrics:
            self.metrics.record_table(table, counters, duration)

        if counters.warnings or counters.errors:
            log.warning(counters.summary())
        else:
            log.info(f"{counters.summary()} in {duration:.2f}s")
        return counters

    def _delete_pass(
        self,
        source_snapshot: Snapshot,
        target_snapshot: Snapshot,
        applier: MutationApplier,
    ) -> None:
        for key, target_row in target_snapshot.items():
            if key not in source_snapshot:
                applier.delete(key, target_row)

    def _upsert_pass(
        self,
        table: str,
        source_snapshot: Snapshot,
        target_snapshot: Snapshot,
        applier: MutationApplier,
        log: ContextLogger,
    ) -> None:
        timestamp_key = self.options.timestamp_key
        if timestamp_key and source_snapshot:
            first_row = next(iter(source_snapshot.values()))
            if timestamp_key not in first_row:
                log.warning(
                    f"Column {timestamp_key} not found in {table}; every row will be "
                    "skipped (disable the timestamp column to compare whole rows)"
                )

        for key, source_row in source_snapshot.items():
            applier.counters.scanned += 1
            row = self.repair.repair(table, source_row)
            target_row = target_snapshot.get(key)
            decision = resolve(row, target_row, self.options)
            applier.apply(decision, key, row, target_row)

    def _release_after_failure(self, coordinator: LockCoordinator) -> None:
        try:
            coordinator.release()
        except LockError as e:
            logger.error(f"Unlock after failure also failed: {e}")

    def log_summary(self, run_counters: RunCounters) -> None:
        """Report run totals; non-zero warnings or errors always surface."""
        if self.options.dry_run:
            summary = f"Dry run complete: {run_counters.summary()}"
        else:
            summary = f"Sync complete: {run_counters.summary()}"

        if run_counters.warnings or run_counters.errors:
            logger.warning(summary)
        else:
            logger.info(summary)
