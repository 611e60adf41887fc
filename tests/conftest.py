"""
Pytest configuration and fixtures for tablesync tests.

Provides an in-memory record store that applies mutations to its own
tables and records every call made to it.
"""

from typing import Any

import pytest

from syncutils.stores import RecordStore, Row, StoreError
from tablesync.options import SyncOptions


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


class FakeStore(RecordStore):
    """In-memory record store keyed by the "id" column."""

    dialect = "mysql"

    def __init__(self, name: str = "store", tables: dict[str, list[Row]] | None = None,
                 primary_key: str = "id"):
        super().__init__(name=name)
        self.primary_key = primary_key
        self.tables = {table: [dict(r) for r in rows] for table, rows in (tables or {}).items()}
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, Any] = {}
        self._conn = object()

    def fail(self, operation: str, key: Any = None) -> None:
        """Make the next calls of operation fail (only for key, if given)."""
        self.failures[operation] = key

    def _check(self, operation: str, key: Any = None) -> None:
        if operation in self.failures:
            wanted = self.failures[operation]
            if wanted is None or wanted == key:
                error = StoreError(operation, "simulated failure")
                self.last_error = error
                raise error

    def _create_connection(self) -> Any:
        return object()

    def connect(self) -> None:
        self.calls.append(("connect",))
        self._check("connect")

    def close(self) -> None:
        self.calls.append(("close",))

    def fetch_table(self, table: str) -> list[Row]:
        self.calls.append(("fetch_table", table))
        self._check("fetch_table")
        return [dict(r) for r in self.tables.get(table, [])]

    def insert(self, table: str, row: Row) -> None:
        key = row.get(self.primary_key)
        self.calls.append(("insert", table, key))
        self._check("insert", key)
        self.tables.setdefault(table, []).append(dict(row))

    def update(self, table: str, row: Row, key_filter: Row) -> None:
        key = key_filter[self.primary_key]
        self.calls.append(("update", table, key))
        self._check("update", key)
        rows = self.tables.get(table, [])
        for i, existing in enumerate(rows):
            if existing.get(self.primary_key) == key:
                rows[i] = dict(row)

    def delete(self, table: str, key_filter: Row) -> None:
        key = key_filter[self.primary_key]
        self.calls.append(("delete", table, key))
        self._check("delete", key)
        self.tables[table] = [
            r for r in self.tables.get(table, []) if r.get(self.primary_key) != key
        ]

    def lock_table_read(self, table: str) -> None:
        self.calls.append(("lock_read", table))
        self._check("lock_read")

    def lock_table_write(self, table: str) -> None:
        self.calls.append(("lock_write", table))
        self._check("lock_write")

    def unlock_tables(self) -> None:
        self.calls.append(("unlock",))
        self._check("unlock")

    def list_tables(self) -> list[str]:
        self.calls.append(("list_tables",))
        self._check("list_tables")
        return sorted(self.tables)

    def mutations(self) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] in ("insert", "update", "delete")]

    def rows(self, table: str) -> dict[Any, Row]:
        return {r[self.primary_key]: r for r in self.tables.get(table, [])}


@pytest.fixture
def make_store():
    """Factory for FakeStore instances."""
    def _make(name: str = "store", **tables: list[Row]) -> FakeStore:
        return FakeStore(name=name, tables=tables)
    return _make


@pytest.fixture
def options() -> SyncOptions:
    """Default run options with a single table selected."""
    return SyncOptions(tables=("items",))
