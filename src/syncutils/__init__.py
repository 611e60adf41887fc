"""
Shared utilities for the tablesync engine

Provides:
- stores: Record store adapters (PostgreSQL via psycopg2, ODBC via pyodbc)
- sql_safety: Identifier validation and dialect-aware quoting
- logging: Console/JSON logging setup and context loggers
- tracing: OpenTelemetry span helpers
- metrics: Prometheus metrics for sync runs
- vault_client: HashiCorp Vault integration for store credentials
"""

__version__ = "1.0.0"
__all__ = ["stores", "sql_safety", "logging", "tracing", "metrics", "vault_client"]
