"""
Run options.

Options are resolved once at startup: built-in defaults, then the YAML
config file, then command-line flags. The result is frozen for the run.

Example config file:

    source:
      uri: mysql+odbc://sync@db1:3306/inventory
      password: s3cret
    target:
      uri: mysql+odbc://sync@db2:3306/inventory
      vault_path: secret/tablesync/target
    primary_key: id
    timestamp_key: updated
    delete: true
    write_lock: true
    tables: "*"
    skip_tables: [audit_log, sessions]
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL = "0000-00-00 00:00:00"
ALL_TABLES = "*"

# Nested config sections flattened to "<side>_<key>" options
STORE_SECTIONS = ("source", "target")
STORE_KEYS = ("uri", "password", "vault_path")


@dataclass(frozen=True)
class SyncOptions:
    """Process-wide run configuration."""

    source_uri: str | None = None
    target_uri: str | None = None
    source_password: str | None = field(default=None, repr=False)
    target_password: str | None = field(default=None, repr=False)
    source_vault_path: str | None = None
    target_vault_path: str | None = None

    tables: tuple[str, ...] = ()
    skip_tables: frozenset[str] = frozenset()

    primary_key: str = "id"
    timestamp_key: str | None = "updated"

    delete: bool = False
    apply: bool = True
    force: bool = False
    two_way: bool = False
    read_lock: bool = False
    write_lock: bool = False
    ignore_errors: bool = False
    verbosity: int = 0

    repair_tables: tuple[str, ...] = ("nodes_info",)
    sentinel: str = DEFAULT_SENTINEL

    @property
    def dry_run(self) -> bool:
        return not self.apply

    @property
    def all_tables(self) -> bool:
        return ALL_TABLES in self.tables


def load_config_file(config_path: str | Path) -> dict[str, Any]:
    """
    Load a YAML config file and flatten its store sections.

    Args:
        config_path: Path to the YAML file

    Returns:
        Option values keyed by SyncOptions field name

    Raises:
        ValueError: If the file is not a mapping or has unknown keys
    """
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key in STORE_SECTIONS:
            if not isinstance(value, dict):
                raise ValueError(f"Config section '{key}' must be a mapping")
            for store_key, store_value in value.items():
                if store_key not in STORE_KEYS:
                    raise ValueError(f"Unknown key '{key}.{store_key}' in {config_path}")
                values[f"{key}_{store_key}"] = store_value
        else:
            values[key] = value

    _check_known(values, str(config_path))
    logger.debug(f"Loaded {len(values)} option(s) from {config_path}")
    return values


def load_options(config_path: str | Path | None = None, **overrides: Any) -> SyncOptions:
    """
    Resolve the run options.

    Args:
        config_path: Optional YAML config file
        **overrides: Command-line values; None means "not given" and is ignored

    Returns:
        Frozen SyncOptions

    Raises:
        ValueError: On unknown keys or inconsistent settings
    """
    values: dict[str, Any] = {}
    if config_path:
        values.update(load_config_file(config_path))

    given = {k: v for k, v in overrides.items() if v is not None}
    _check_known(given, "command line")
    values.update(given)

    options = SyncOptions(**_normalize(values))

    if options.two_way and not options.timestamp_key:
        raise ValueError("Two-way sync needs a timestamp column; it cannot run on row equality")

    return options


def _check_known(values: dict[str, Any], origin: str) -> None:
    known = {f.name for f in fields(SyncOptions)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown option(s) from {origin}: {', '.join(unknown)}")


def _normalize(values: dict[str, Any]) -> dict[str, Any]:
    normalized = dict(values)

    for name in ("tables", "repair_tables"):
        if name in normalized:
            normalized[name] = tuple(_as_list(normalized[name]))

    if "skip_tables" in normalized:
        normalized["skip_tables"] = frozenset(_as_list(normalized["skip_tables"]))

    if "timestamp_key" in normalized and not normalized["timestamp_key"]:
        normalized["timestamp_key"] = None

    if "verbosity" in normalized:
        normalized["verbosity"] = int(normalized["verbosity"])

    return normalized


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value]
