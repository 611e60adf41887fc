"""
Per-row conflict resolution.

Given a repaired source row and the matching target row (if any), decide
what the sync does with it:

- no target row                      -> insert into target
- force                              -> update target
- timestamp column, source newer     -> update target
- timestamp column, equal            -> nothing
- timestamp column, target newer     -> update source (two-way) or warn
- no timestamp column, rows differ   -> update target
- no timestamp column, rows equal    -> nothing

Rows without a usable timestamp are skipped before any of the above.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from syncutils.stores import Row

from .options import SyncOptions
from .repair import has_valid_timestamp


class Action(str, Enum):
    """What the sync does with one source row."""

    INSERT = "insert"
    UPDATE_TARGET = "update_target"
    UPDATE_SOURCE = "update_source"
    WARN = "warn"
    NOOP = "noop"
    SKIP = "skip"


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: str = ""

    @property
    def mutates(self) -> bool:
        return self.action in (Action.INSERT, Action.UPDATE_TARGET, Action.UPDATE_SOURCE)


def _timestamp_text(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return str(value)


def compare_timestamps(source_value: Any, target_value: Any) -> int:
    """
    Order two timestamp values: -1 if source is older, 0 if equal, 1 if newer.

    Values are compared as "YYYY-MM-DD HH:MM:SS" strings. The format is
    fixed-width and zero-padded, so string order is chronological order.
    A NULL target timestamp is older than anything.
    """
    if target_value is None:
        return 0 if source_value is None else 1
    if source_value is None:
        return -1

    source_text = _timestamp_text(source_value)
    target_text = _timestamp_text(target_value)
    if source_text > target_text:
        return 1
    if source_text < target_text:
        return -1
    return 0


def rows_equal(source_row: Row, target_row: Row) -> bool:
    """
    Compare every column of two rows.

    A column missing from one row equals a NULL in the other; everything
    else is compared by raw value.
    """
    for column in source_row.keys() | target_row.keys():
        if source_row.get(column) != target_row.get(column):
            return False
    return True


def resolve(source_row: Row, target_row: Row | None, options: SyncOptions) -> Decision:
    """
    Decide what to do with one source row.

    Args:
        source_row: Source row after sentinel repair
        target_row: Target row with the same key, or None
        options: Run options (force, two_way, timestamp_key)

    Returns:
        Decision for the row
    """
    timestamp_key = options.timestamp_key

    if not has_valid_timestamp(source_row, timestamp_key, options.sentinel):
        return Decision(Action.SKIP, f"no usable {timestamp_key}")

    if target_row is None:
        return Decision(Action.INSERT, "missing in target")

    if options.force:
        return Decision(Action.UPDATE_TARGET, "forced")

    if timestamp_key:
        order = compare_timestamps(source_row.get(timestamp_key), target_row.get(timestamp_key))
        if order > 0:
            return Decision(Action.UPDATE_TARGET, "source is newer")
        if order == 0:
            return Decision(Action.NOOP)
        if options.two_way:
            return Decision(Action.UPDATE_SOURCE, "target is newer")
        return Decision(Action.WARN, "target is newer")

    if rows_equal(source_row, target_row):
        return Decision(Action.NOOP)
    return Decision(Action.UPDATE_TARGET, "rows differ")
