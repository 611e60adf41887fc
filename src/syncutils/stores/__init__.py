"""
Record store adapters for PostgreSQL, MySQL and SQL Server.

Each store wraps a single connection held for the whole sync run. Use
open_store() to build one from a URI:

    postgresql://user@host:5432/dbname
    mysql+odbc://user@host:3306/dbname
    mssql+odbc://user@host:1433/dbname?driver=ODBC+Driver+18+for+SQL+Server

The password is passed separately so it never has to appear in a URI that
ends up in a config file or a log line.
"""

import logging
from urllib.parse import parse_qs, unquote, urlsplit

from .base import RecordStore, Row, StoreError
from .odbc import OdbcStore
from .postgres import PostgresStore

logger = logging.getLogger(__name__)

ODBC_SCHEMES = {
    "mysql+odbc": "mysql",
    "mssql+odbc": "sqlserver",
}


def open_store(uri: str, credential: str | None = None, name: str = "store") -> RecordStore:
    """
    Build an unconnected record store from a URI.

    Args:
        uri: Store URI (postgresql://, mysql+odbc:// or mssql+odbc://)
        credential: Password; overrides any password embedded in the URI
        name: Side label used in logs ("source" or "target")

    Returns:
        RecordStore ready for connect()

    Raises:
        ValueError: If the URI scheme is unsupported or the URI is incomplete
    """
    parts = urlsplit(uri)
    scheme = parts.scheme.lower()
    password = credential if credential is not None else (
        unquote(parts.password) if parts.password else None
    )
    user = unquote(parts.username) if parts.username else None
    database = parts.path.lstrip("/") or None
    query = {k: v[-1] for k, v in parse_qs(parts.query).items()}

    if scheme in ("postgresql", "postgres"):
        if not parts.hostname or not database:
            raise ValueError(f"PostgreSQL URI needs a host and a database: {_redact(uri)}")
        store = PostgresStore(
            host=parts.hostname,
            port=parts.port or 5432,
            database=database,
            user=user,
            password=password,
            name=name,
        )
    elif scheme in ODBC_SCHEMES:
        store = OdbcStore(
            dialect=ODBC_SCHEMES[scheme],
            host=parts.hostname,
            port=parts.port,
            database=database,
            user=user,
            password=password,
            driver=query.get("driver"),
            connection_string=query.get("odbc_connect"),
            name=name,
        )
    else:
        raise ValueError(f"Unsupported store URI scheme: {parts.scheme!r}")

    logger.debug(f"Configured {name} store {store!r} for {_redact(uri)}")
    return store


def _redact(uri: str) -> str:
    parts = urlsplit(uri)
    if parts.password is None:
        return uri
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@")
    return parts._replace(netloc=netloc).geturl()


__all__ = [
    "RecordStore",
    "PostgresStore",
    "OdbcStore",
    "Row",
    "StoreError",
    "open_store",
]
