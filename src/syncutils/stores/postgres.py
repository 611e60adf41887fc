"""PostgreSQL record store implementation."""

from typing import Any

import psycopg2
import psycopg2.extensions

from .base import RecordStore, StoreError


class PostgresStore(RecordStore):
    """
    Record store for PostgreSQL databases.

    The connection runs in autocommit mode. Table locks only exist inside a
    transaction in PostgreSQL, so taking a lock opens one and unlock_tables()
    commits it, which also commits any mutation made while the lock was held.

    Inside that transaction every statement runs under a savepoint, so a
    failed row is rolled back on its own and the rows around it survive.
    """

    dialect = "postgresql"
    placeholder = "%s"
    driver_errors = (psycopg2.Error,)
    savepoint = "tablesync_row"

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str | None = None,
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        """
        Initialize PostgreSQL store.

        Args:
            host: PostgreSQL host
            port: PostgreSQL port
            database: Database name
            user: Username
            password: Password
            connect_timeout: Connection timeout in seconds
            **kwargs: Additional arguments for RecordStore
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.connect_timeout = connect_timeout

        super().__init__(**kwargs)

    def _create_connection(self) -> psycopg2.extensions.connection:
        conn = psycopg2.connect(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            connect_timeout=self.connect_timeout,
        )
        conn.autocommit = True
        return conn

    def _lock(self, table: str, mode: str) -> None:
        statement = f"LOCK TABLE {self._quote_table(table)} IN {mode} MODE"
        if self._conn is not None and self._conn.autocommit:
            self._conn.autocommit = False
        try:
            self.execute(statement)
        except StoreError:
            if self._conn is not None:
                self._conn.rollback()
                self._conn.autocommit = True
            raise

    def lock_table_read(self, table: str) -> None:
        self._lock(table, "SHARE")

    def lock_table_write(self, table: str) -> None:
        self._lock(table, "EXCLUSIVE")

    def unlock_tables(self) -> None:
        if self._conn is None or self._conn.autocommit:
            return
        if self._conn.info.transaction_status == psycopg2.extensions.TRANSACTION_STATUS_INERROR:
            self._conn.rollback()
            self._conn.autocommit = True
            raise StoreError(
                "unlock_tables",
                "lock transaction was aborted; changes made under the lock were rolled back",
            )
        try:
            self._conn.commit()
        except self.driver_errors as e:
            self.last_error = e
            self._conn.rollback()
            self._conn.autocommit = True
            raise StoreError("unlock_tables", str(e), e) from e
        self._conn.autocommit = True

    def list_tables(self) -> list[str]:
        rows = self.fetch_all(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_type = 'BASE TABLE' "
            "ORDER BY table_name"
        )
        return [row["table_name"] for row in rows]
