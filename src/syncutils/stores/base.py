"""
Base classes for record store adapters.

A record store wraps one database connection held for the whole sync run and
exposes the small set of operations the engine needs: full-table reads,
single-row insert/update/delete by key, table locks and table enumeration.
Driver exceptions never leave this layer; they are converted to StoreError.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from opentelemetry import trace

from syncutils.sql_safety import quote_identifier, quote_table
from syncutils.tracing import trace_operation

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class StoreError(Exception):
    """Raised when a record store operation fails."""

    def __init__(self, operation: str, message: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {message}")


class RecordStore(ABC):
    """
    Base class for record store adapters.

    Subclasses provide the connection factory, the driver's exception types,
    the parameter placeholder and the dialect-specific lock statements.
    """

    dialect: str = "unknown"
    placeholder: str = "?"
    driver_errors: tuple[type[BaseException], ...] = ()
    # Savepoint taken around each statement while a lock transaction is open
    savepoint: str | None = None

    def __init__(self, name: str = "store"):
        """
        Initialize record store.

        Args:
            name: Side label used in logs and spans ("source" or "target")
        """
        self.name = name
        self.last_error: BaseException | None = None
        self._conn: Any = None

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _create_connection(self) -> Any:
        """Open a new driver connection."""

    @abstractmethod
    def lock_table_read(self, table: str) -> None:
        """Take a table-level read lock."""

    @abstractmethod
    def lock_table_write(self, table: str) -> None:
        """Take a table-level write lock."""

    @abstractmethod
    def unlock_tables(self) -> None:
        """Release every table lock held by this connection."""

    @abstractmethod
    def list_tables(self) -> list[str]:
        """List the base tables of the connected database."""

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """
        Open the connection.

        Raises:
            StoreError: If the driver refuses the connection
        """
        with trace_operation(
            "store_connect",
            kind=trace.SpanKind.CLIENT,
            store=self.name,
            dialect=self.dialect,
        ):
            try:
                self._conn = self._create_connection()
            except self.driver_errors as e:
                self.last_error = e
                raise StoreError("connect", str(e), e) from e
        logger.info(f"Connected to {self.name} ({self.dialect})")

    def close(self) -> None:
        """Close the connection, committing any transaction still open."""
        if self._conn is None:
            return
        try:
            if not self._conn.autocommit:
                self._conn.commit()
            self._conn.close()
        except self.driver_errors as e:
            self.last_error = e
            logger.warning(f"Error closing {self.name} connection: {e}")
        finally:
            self._conn = None

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        statement: str,
        params: list[Any] | None = None,
        fetch: bool = False,
    ) -> list[Row] | None:
        if self._conn is None:
            raise StoreError(operation, f"{self.name} store is not connected")

        guarded = self.savepoint is not None and not self._conn.autocommit
        cursor = self._conn.cursor()
        try:
            if guarded:
                cursor.execute(f"SAVEPOINT {self.savepoint}")

            if params:
                cursor.execute(statement, params)
            else:
                cursor.execute(statement)

            rows = None
            if fetch:
                columns = [desc[0] for desc in cursor.description]
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]

            if guarded:
                cursor.execute(f"RELEASE SAVEPOINT {self.savepoint}")
            return rows
        except self.driver_errors as e:
            self.last_error = e
            if guarded:
                self._rollback_to_savepoint(cursor)
            raise StoreError(operation, str(e), e) from e
        finally:
            cursor.close()

    def _rollback_to_savepoint(self, cursor: Any) -> None:
        # Keeps the lock transaction usable after one failed statement
        try:
            cursor.execute(f"ROLLBACK TO SAVEPOINT {self.savepoint}")
        except self.driver_errors as e:
            logger.error(f"[{self.name}] Rollback to savepoint failed, transaction stays aborted: {e}")

    def execute(self, statement: str, params: list[Any] | None = None) -> None:
        """Execute a statement that returns no rows."""
        logger.debug(f"[{self.name}] {statement}")
        self._run("execute", statement, params)

    def fetch_all(self, query: str, params: list[Any] | None = None) -> list[Row]:
        """Execute a query and return every row as a column -> value mapping."""
        logger.debug(f"[{self.name}] {query}")
        return self._run("fetch_all", query, params, fetch=True)

    def fetch_table(self, table: str) -> list[Row]:
        """Read the full contents of a table."""
        with trace_operation(
            "store_fetch_table",
            kind=trace.SpanKind.CLIENT,
            store=self.name,
            table=table,
        ):
            return self.fetch_all(f"SELECT * FROM {self._quote_table(table)}")

    def insert(self, table: str, row: Row) -> None:
        """Insert one row."""
        columns = list(row)
        column_list = ", ".join(self._quote(c) for c in columns)
        values = ", ".join([self.placeholder] * len(columns))
        statement = f"INSERT INTO {self._quote_table(table)} ({column_list}) VALUES ({values})"
        self._run("insert", statement, [row[c] for c in columns])

    def update(self, table: str, row: Row, key_filter: Row) -> None:
        """Update the row(s) matching key_filter with the values of row."""
        columns = [c for c in row if c not in key_filter]
        if not columns:
            return
        set_clause = ", ".join(f"{self._quote(c)} = {self.placeholder}" for c in columns)
        where_clause, where_params = self._where(key_filter)
        statement = f"UPDATE {self._quote_table(table)} SET {set_clause} WHERE {where_clause}"
        self._run("update", statement, [row[c] for c in columns] + where_params)

    def delete(self, table: str, key_filter: Row) -> None:
        """Delete the row(s) matching key_filter."""
        where_clause, where_params = self._where(key_filter)
        statement = f"DELETE FROM {self._quote_table(table)} WHERE {where_clause}"
        self._run("delete", statement, where_params)

    def _where(self, key_filter: Row) -> tuple[str, list[Any]]:
        if not key_filter:
            raise StoreError("where", "refusing to build a statement without a key filter")
        conditions = [f"{self._quote(c)} = {self.placeholder}" for c in key_filter]
        return " AND ".join(conditions), list(key_filter.values())

    def _quote(self, identifier: str) -> str:
        try:
            return quote_identifier(identifier, self.dialect)
        except ValueError as e:
            raise StoreError("quote", str(e)) from e

    def _quote_table(self, table: str) -> str:
        try:
            return quote_table(table, self.dialect)
        except ValueError as e:
            raise StoreError("quote", str(e)) from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, dialect={self.dialect!r})"
