"""
Unit tests for sentinel zero-date repair.
"""

from datetime import datetime

from tablesync.options import DEFAULT_SENTINEL, SyncOptions
from tablesync.repair import RepairPolicy, SentinelRepair, has_valid_timestamp

ZERO = DEFAULT_SENTINEL


class TestSentinelRepair:
    """Test SentinelRepair with the default policies."""

    def setup_method(self):
        """Set up a repair built from default options."""
        self.repair = SentinelRepair.from_options(SyncOptions())

    def test_timestamp_recovered_from_other_date_column(self):
        """A zero timestamp takes the value of another date column."""
        row = {"id": 1, "updated": ZERO, "created": "2020-01-01 00:00:00"}

        repaired = self.repair.repair("nodes_info", row)

        assert repaired["updated"] == "2020-01-01 00:00:00"

    def test_timestamp_takes_latest_candidate(self):
        """The greatest well-formed date wins."""
        row = {
            "id": 1,
            "updated": ZERO,
            "created": "2019-05-01 10:00:00",
            "seen": "2021-03-04 08:09:10",
            "note": "2022-01-01",
        }

        repaired = self.repair.repair("nodes_info", row)

        assert repaired["updated"] == "2021-03-04 08:09:10"

    def test_datetime_values_are_candidates(self):
        """Driver datetime objects count as dates."""
        row = {"id": 1, "updated": ZERO, "created": datetime(2023, 7, 1, 12, 0, 0)}

        repaired = self.repair.repair("nodes_info", row)

        assert repaired["updated"] == "2023-07-01 12:00:00"

    def test_timestamp_stays_sentinel_without_candidates(self):
        """With nothing to recover from, the sentinel stays."""
        row = {"id": 2, "updated": ZERO}

        repaired = self.repair.repair("nodes_info", row)

        assert repaired["updated"] == ZERO

    def test_other_sentinel_columns_are_nulled(self):
        """Sentinels outside the timestamp column become NULL."""
        row = {"id": 1, "updated": "2020-01-01 00:00:00", "retired": ZERO}

        repaired = self.repair.repair("nodes_info", row)

        assert repaired["retired"] is None
        assert repaired["updated"] == "2020-01-01 00:00:00"

    def test_other_table_nulls_sentinel_columns(self):
        """Tables without a dedicated policy still null sentinel columns."""
        row = {"id": 1, "updated": "2020-01-01 00:00:00", "expires": ZERO}

        repaired = self.repair.repair("other_table", row)

        assert repaired["expires"] is None
        assert repaired["updated"] == "2020-01-01 00:00:00"

    def test_other_table_does_not_recover_timestamp(self):
        """Timestamp recovery is limited to the configured tables."""
        row = {"id": 1, "updated": ZERO, "created": "2020-01-01 00:00:00"}

        repaired = self.repair.repair("other_table", row)

        assert repaired["updated"] == ZERO

    def test_input_row_is_not_modified(self):
        """Repair works on a copy."""
        row = {"id": 1, "updated": ZERO, "created": "2020-01-01 00:00:00"}

        self.repair.repair("nodes_info", row)

        assert row["updated"] == ZERO

    def test_repair_is_idempotent(self):
        """Repairing twice gives the same row as repairing once."""
        row = {"id": 1, "updated": ZERO, "created": "2020-01-01 00:00:00", "gone": ZERO}

        once = self.repair.repair("nodes_info", row)
        twice = self.repair.repair("nodes_info", once)

        assert once == twice

    def test_configured_repair_tables(self):
        """repair_tables selects which tables recover timestamps."""
        repair = SentinelRepair.from_options(SyncOptions(repair_tables=("hosts",)))
        row = {"id": 1, "updated": ZERO, "created": "2020-01-01 00:00:00"}

        assert repair.repair("hosts", row)["updated"] == "2020-01-01 00:00:00"
        assert repair.repair("nodes_info", row)["updated"] == ZERO


class TestRepairPolicy:
    """Test custom repair policies."""

    def test_column_restriction(self):
        """Only the listed columns are repaired."""
        policy = RepairPolicy(columns=frozenset({"a"}))
        repair = SentinelRepair({"t": policy})
        row = {"id": 1, "a": ZERO, "b": ZERO}

        repaired = repair.repair("t", row)

        assert repaired["a"] is None
        assert repaired["b"] == ZERO

    def test_no_default_leaves_other_tables_untouched(self):
        """Without a default policy, unlisted tables pass through."""
        repair = SentinelRepair({"t": RepairPolicy()})
        row = {"id": 1, "b": ZERO}

        assert repair.repair("other", row) is row

    def test_custom_sentinel(self):
        """The sentinel value is configurable."""
        repair = SentinelRepair({"t": RepairPolicy(sentinel="1970-01-01 00:00:00")})
        row = {"id": 1, "b": "1970-01-01 00:00:00", "c": ZERO}

        repaired = repair.repair("t", row)

        assert repaired["b"] is None
        assert repaired["c"] == ZERO


class TestHasValidTimestamp:
    """Test the skip gate."""

    def test_valid_value(self):
        assert has_valid_timestamp({"updated": "2020-01-01 00:00:00"}, "updated")

    def test_null_value(self):
        assert not has_valid_timestamp({"updated": None}, "updated")

    def test_missing_column_counts_as_null(self):
        assert not has_valid_timestamp({"id": 1}, "updated")

    def test_sentinel_value(self):
        assert not has_valid_timestamp({"updated": ZERO}, "updated")

    def test_no_timestamp_column_configured(self):
        """Everything passes when timestamps are disabled."""
        assert has_valid_timestamp({"updated": ZERO}, None)
