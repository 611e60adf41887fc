"""
Mutation execution.

Runs the insert/update/delete decided for a row against the right store,
counts it, and applies the dry-run and ignore-errors switches. In a dry run
nothing reaches the stores but every row is counted as if it had been.
"""

import logging
from typing import Any

from syncutils.logging import ContextLogger
from syncutils.stores import RecordStore, Row, StoreError

from .counters import TableCounters
from .errors import MutationError
from .options import SyncOptions
from .resolver import Action, Decision

logger = logging.getLogger(__name__)

FRAGMENT_LENGTH = 60


def describe_row(row: Row | None, primary_key: str) -> str:
    """Short description of a row's content for log lines."""
    if not row:
        return ""
    text = ", ".join(f"{k}={v}" for k, v in row.items() if k != primary_key)
    if len(text) > FRAGMENT_LENGTH:
        text = text[:FRAGMENT_LENGTH - 3] + "..."
    return text


class MutationApplier:
    """Applies decisions for the rows of one table."""

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        table: str,
        options: SyncOptions,
        counters: TableCounters,
    ):
        self.source = source
        self.target = target
        self.table = table
        self.options = options
        self.counters = counters
        self.log = ContextLogger(__name__, table=table)

    def apply(self, decision: Decision, key: Any, source_row: Row, target_row: Row | None) -> None:
        """
        Carry out one resolver decision.

        Raises:
            MutationError: If the mutation fails and ignore_errors is off
        """
        action = decision.action

        if action is Action.INSERT:
            if self._mutate("insert", key, source_row,
                            lambda: self.target.insert(self.table, source_row)):
                self.counters.added += 1
        elif action is Action.UPDATE_TARGET:
            if self._mutate("update", key, source_row,
                            lambda: self.target.update(self.table, source_row, self._key_filter(key))):
                self.counters.updated += 1
        elif action is Action.UPDATE_SOURCE:
            if self._mutate("update_source", key, target_row,
                            lambda: self.source.update(self.table, target_row, self._key_filter(key))):
                self.counters.updated_source += 1
        elif action is Action.WARN:
            self.counters.warnings += 1
            self.log.warning(
                f"Target row {key} is newer than source; not updated "
                f"({describe_row(target_row, self.options.primary_key)})",
                key=key,
            )
        elif action is Action.SKIP:
            self.counters.skipped += 1
            self.log.info(
                f"Skipping row {key}: {decision.reason} "
                f"({describe_row(source_row, self.options.primary_key)})",
                key=key,
            )

    def delete(self, key: Any, target_row: Row) -> None:
        """
        Remove a target row that has no source counterpart.

        With deletes disabled the row is still counted, as a would-be delete.
        """
        if not self.options.delete:
            self.counters.deleted += 1
            self.log.debug(f"(NOT) delete {key}: deletes disabled", key=key)
            return

        if self._mutate("delete", key, target_row,
                        lambda: self.target.delete(self.table, self._key_filter(key))):
            self.counters.deleted += 1

    def _mutate(self, operation: str, key: Any, row: Row | None, call) -> bool:
        fragment = describe_row(row, self.options.primary_key)

        if self.options.dry_run:
            self.log.debug(f"(NOT) {operation} {key} ({fragment})", key=key)
            return True

        try:
            call()
        except StoreError as e:
            self.counters.errors += 1
            self.log.error(
                f"{operation} of row {key} failed: {e} ({fragment})",
                key=key,
                operation=operation,
            )
            if not self.options.ignore_errors:
                raise MutationError(
                    f"{operation} of row {key} in {self.table} failed: {e}",
                    table=self.table,
                    operation=operation,
                    key=key,
                ) from e
            return False

        self.log.debug(f"{operation} {key} ({fragment})", key=key)
        return True

    def _key_filter(self, key: Any) -> Row:
        return {self.options.primary_key: key}
