"""ODBC record store implementation for MySQL and SQL Server."""

import re
from typing import Any

import pyodbc

from .base import RecordStore, StoreError

DEFAULT_DRIVERS = {
    "mysql": "MySQL ODBC 8.0 Unicode Driver",
    "sqlserver": "ODBC Driver 18 for SQL Server",
}

DEFAULT_PORTS = {
    "mysql": 3306,
    "sqlserver": 1433,
}


class OdbcStore(RecordStore):
    """
    Record store reached through an ODBC driver.

    MySQL has explicit LOCK TABLES / UNLOCK TABLES statements that work in
    autocommit mode. SQL Server locks are held by a transaction opened with a
    locking hint and released when unlock_tables() commits it.
    """

    placeholder = "?"
    driver_errors = (pyodbc.Error,)

    def __init__(
        self,
        dialect: str,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        driver: str | None = None,
        connection_string: str | None = None,
        **kwargs: Any,
    ):
        """
        Initialize ODBC store.

        Args:
            dialect: "mysql" or "sqlserver"
            host: Database host (required if connection_string not provided)
            port: Database port (default: dialect's standard port)
            database: Database name
            user: Username
            password: Password
            driver: ODBC driver name (default: dialect's usual driver)
            connection_string: Complete ODBC connection string (alternative to individual params)
            **kwargs: Additional arguments for RecordStore
        """
        if dialect not in DEFAULT_DRIVERS:
            raise ValueError(f"Unsupported ODBC dialect: {dialect!r}")
        if not connection_string and not (host and database):
            raise ValueError("Either connection_string or host and database must be provided")

        self.dialect = dialect
        self.host = host
        self.port = port or DEFAULT_PORTS[dialect]
        self.database = database
        self.user = user
        self.password = password
        self.driver = driver or DEFAULT_DRIVERS[dialect]
        self.connection_string = connection_string

        super().__init__(**kwargs)

    def _build_connection_string(self) -> str:
        if self.connection_string:
            if self.password and not re.search(r"(^|;)\s*PWD=", self.connection_string, re.I):
                return f"{self.connection_string.rstrip(';')};PWD={self.password};"
            return self.connection_string

        if self.dialect == "sqlserver":
            server = f"SERVER={self.host},{self.port};"
        else:
            server = f"SERVER={self.host};PORT={self.port};"

        conn_str = f"DRIVER={{{self.driver}}};{server}DATABASE={self.database};"
        if self.user:
            conn_str += f"UID={self.user};"
        if self.password:
            conn_str += f"PWD={self.password};"
        if self.dialect == "sqlserver":
            conn_str += "TrustServerCertificate=yes;"
        return conn_str

    def _create_connection(self) -> pyodbc.Connection:
        return pyodbc.connect(self._build_connection_string(), autocommit=True, timeout=10)

    def lock_table_read(self, table: str) -> None:
        if self.dialect == "mysql":
            self.execute(f"LOCK TABLES {self._quote_table(table)} READ")
        else:
            self._hint_lock(table, "TABLOCK, HOLDLOCK")

    def lock_table_write(self, table: str) -> None:
        if self.dialect == "mysql":
            self.execute(f"LOCK TABLES {self._quote_table(table)} WRITE")
        else:
            self._hint_lock(table, "TABLOCKX, HOLDLOCK")

    def _hint_lock(self, table: str, hints: str) -> None:
        if self._conn is not None and self._conn.autocommit:
            self._conn.autocommit = False
        try:
            self.execute(f"SELECT TOP 0 * FROM {self._quote_table(table)} WITH ({hints})")
        except StoreError:
            if self._conn is not None:
                self._conn.rollback()
                self._conn.autocommit = True
            raise

    def unlock_tables(self) -> None:
        if self.dialect == "mysql":
            self.execute("UNLOCK TABLES")
            return

        if self._conn is None or self._conn.autocommit:
            return
        try:
            self._conn.commit()
        except self.driver_errors as e:
            self.last_error = e
            self._conn.rollback()
            self._conn.autocommit = True
            raise StoreError("unlock_tables", str(e), e) from e
        self._conn.autocommit = True

    def list_tables(self) -> list[str]:
        if self.dialect == "mysql":
            query = (
                "SELECT table_name AS table_name FROM information_schema.tables "
                "WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE' "
                "ORDER BY table_name"
            )
        else:
            query = (
                "SELECT TABLE_NAME AS table_name FROM INFORMATION_SCHEMA.TABLES "
                "WHERE TABLE_TYPE = 'BASE TABLE' ORDER BY TABLE_NAME"
            )
        return [row["table_name"] for row in self.fetch_all(query)]
