"""
SQL safety utilities for preventing SQL injection.

Table and column names cannot be bound as parameters, so every identifier
that reaches a statement is validated and quoted here first.
"""

import re
from typing import Literal

Dialect = Literal["postgresql", "sqlserver", "mysql"]

# Strict ASCII-only patterns for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
VALID_SCHEMA_TABLE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)?$"
)

_QUOTES = {
    "postgresql": ('"', '"'),
    "sqlserver": ("[", "]"),
    "mysql": ("`", "`"),
}


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (table name, column name, etc.).

    Args:
        identifier: The identifier to validate

    Raises:
        ValueError: If the identifier contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, and underscores are allowed, "
            "and must start with a letter or underscore."
        )


def validate_schema_table(schema_table: str) -> None:
    """
    Validate a table name that may carry a schema prefix.

    Raises:
        ValueError: If the identifier format is invalid
    """
    if not schema_table:
        raise ValueError("Schema.table identifier cannot be empty")

    if not VALID_SCHEMA_TABLE.match(schema_table):
        raise ValueError(
            f"Invalid schema.table identifier: {schema_table!r}. "
            "Only ASCII letters, digits, and underscores are allowed."
        )


def quote_identifier(identifier: str, dialect: Dialect) -> str:
    """
    Safely quote a column name after validation.

    Args:
        identifier: The identifier to quote
        dialect: SQL dialect that decides the quoting style

    Returns:
        Quoted identifier safe for use in SQL

    Raises:
        ValueError: If the identifier or dialect is invalid
    """
    validate_identifier(identifier)
    try:
        opening, closing = _QUOTES[dialect]
    except KeyError:
        raise ValueError(f"Unsupported SQL dialect: {dialect!r}") from None
    return f"{opening}{identifier}{closing}"


def quote_table(table: str, dialect: Dialect) -> str:
    """
    Quote a table name, quoting schema and table parts separately.

    Raises:
        ValueError: If the table name or dialect is invalid
    """
    validate_schema_table(table)
    return ".".join(quote_identifier(part, dialect) for part in table.split("."))
