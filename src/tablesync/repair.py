"""
Sentinel "zero date" repair.

Some tables hold the all-zero date in place of NULL. Before comparison, the
configured tables get their sentinel values corrected: the timestamp column
takes the latest well-formed date found elsewhere in the row, and any other
column holding the sentinel becomes NULL. A row whose timestamp is still
missing afterwards is not synced.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from syncutils.stores import Row

from .options import DEFAULT_SENTINEL, SyncOptions

DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


@dataclass(frozen=True)
class RepairPolicy:
    """
    How sentinel values are repaired in one table.

    columns limits the repair to the named columns; None means every column.
    """

    sentinel: str = DEFAULT_SENTINEL
    timestamp_key: str | None = "updated"
    recover_timestamp: bool = True
    null_other_columns: bool = True
    columns: frozenset[str] | None = None

    def applies_to(self, column: str) -> bool:
        return self.columns is None or column in self.columns


def _date_text(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, str) and DATETIME_PATTERN.match(value):
        return value
    return None


class SentinelRepair:
    """
    Applies the repair policy of each table.

    Tables named in policies get their own policy; every other table gets
    the default policy, which nulls sentinel values but never rewrites the
    timestamp column.
    """

    def __init__(
        self,
        policies: Mapping[str, RepairPolicy],
        default: RepairPolicy | None = None,
    ):
        self.policies = dict(policies)
        self.default = default

    @classmethod
    def from_options(cls, options: SyncOptions) -> "SentinelRepair":
        policy = RepairPolicy(sentinel=options.sentinel, timestamp_key=options.timestamp_key)
        default = RepairPolicy(
            sentinel=options.sentinel,
            timestamp_key=options.timestamp_key,
            recover_timestamp=False,
        )
        return cls({table: policy for table in options.repair_tables}, default=default)

    def policy_for(self, table: str) -> RepairPolicy | None:
        return self.policies.get(table, self.default)

    def repair(self, table: str, row: Row) -> Row:
        """
        Return the repaired copy of a row.

        Rows are returned unchanged when the table has no policy.
        """
        policy = self.policy_for(table)
        if policy is None:
            return row

        repaired = dict(row)
        for column, value in row.items():
            if value != policy.sentinel or not policy.applies_to(column):
                continue
            if column == policy.timestamp_key:
                if policy.recover_timestamp:
                    repaired[column] = self._latest_date(row, column, policy.sentinel)
            elif policy.null_other_columns:
                repaired[column] = None
        return repaired

    @staticmethod
    def _latest_date(row: Row, timestamp_key: str, sentinel: str) -> Any:
        candidates = []
        for column, value in row.items():
            text = _date_text(value)
            if column != timestamp_key and text is not None and text != sentinel:
                candidates.append(text)
        # Fixed-width, zero-padded format: string order is chronological order
        return max(candidates) if candidates else sentinel


def has_valid_timestamp(row: Row, timestamp_key: str | None, sentinel: str = DEFAULT_SENTINEL) -> bool:
    """
    Tell whether a row may take part in a timestamp-based sync.

    Always True when no timestamp column is configured. A missing column
    counts as NULL.
    """
    if not timestamp_key:
        return True
    value = row.get(timestamp_key)
    return value is not None and value != sentinel
