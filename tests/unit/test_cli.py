"""
Unit tests for CLI module

Tests for argument parsing, option merging, credential resolution and
command execution. Store access is mocked throughout.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from tablesync.cli import create_parser, main, options_from_args, resolve_credentials
from tablesync.cli.commands import cmd_run, cmd_schedule, cmd_tables
from tablesync.counters import RunCounters, TableCounters
from tablesync.errors import MutationError, StoreConnectionError
from tablesync.options import SyncOptions


def _args(*argv):
    return create_parser().parse_args(list(argv))


@pytest.fixture
def no_password_env(monkeypatch):
    monkeypatch.delenv("TABLESYNC_SOURCE_PASSWORD", raising=False)
    monkeypatch.delenv("TABLESYNC_TARGET_PASSWORD", raising=False)


# ============================================================================
# Parser and option merging
# ============================================================================

class TestParser:
    """Tests for create_parser"""

    def test_flags_default_to_none(self):
        args = _args("run")

        assert args.delete is None
        assert args.force is None
        assert args.verbose is None
        assert args.tables is None

    def test_verbosity_count(self):
        assert _args("run", "-vv").verbose == 2

    def test_schedule_interval_default(self):
        args = _args("schedule")

        assert args.interval == 3600
        assert args.cron is None

    def test_schedule_cron_and_interval_exclusive(self):
        with pytest.raises(SystemExit):
            _args("schedule", "--cron", "* * * * *", "--interval", "60")


class TestOptionsFromArgs:
    """Tests for options_from_args"""

    def test_flags_map_to_options(self):
        args = _args(
            "run", "--tables", "a,b", "--skip-tables", "c", "--primary-key", "node_id",
            "--delete", "--dry-run", "--force", "--read-lock", "--write-lock",
            "--ignore-errors", "-v",
        )

        options = options_from_args(args)

        assert options.tables == ("a", "b")
        assert options.skip_tables == frozenset({"c"})
        assert options.primary_key == "node_id"
        assert options.delete is True
        assert options.dry_run is True
        assert options.force is True
        assert options.read_lock and options.write_lock
        assert options.ignore_errors is True
        assert options.verbosity == 1

    def test_no_timestamp(self):
        options = options_from_args(_args("run", "--tables", "a", "--no-timestamp"))

        assert options.timestamp_key is None

    def test_flags_override_config(self, tmp_path):
        config = tmp_path / "sync.yml"
        config.write_text("delete: true\ntables: [a, b]\ntimestamp_key: modified\n")

        options = options_from_args(_args("run", "--config", str(config), "--no-delete"))

        assert options.delete is False
        assert options.tables == ("a", "b")
        assert options.timestamp_key == "modified"

    def test_two_way_without_timestamp_rejected(self):
        with pytest.raises(ValueError):
            options_from_args(_args("run", "--two-way", "--no-timestamp"))


# ============================================================================
# Credentials
# ============================================================================

class TestResolveCredentials:
    """Tests for resolve_credentials"""

    def test_config_passwords_first(self, monkeypatch):
        monkeypatch.setenv("TABLESYNC_SOURCE_PASSWORD", "from-env")
        options = SyncOptions(source_password="from-config")

        assert resolve_credentials(options)[0] == "from-config"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("TABLESYNC_SOURCE_PASSWORD", "spw")
        monkeypatch.setenv("TABLESYNC_TARGET_PASSWORD", "tpw")

        assert resolve_credentials(SyncOptions()) == ("spw", "tpw")

    def test_none_without_vault(self, no_password_env):
        assert resolve_credentials(SyncOptions()) == (None, None)

    @patch("tablesync.cli.credentials.VaultClient")
    def test_vault(self, mock_vault_class, no_password_env):
        vault = mock_vault_class.return_value
        vault.get_store_password.side_effect = ["spw", "tpw"]
        options = SyncOptions(target_vault_path="secret/custom/target")

        assert resolve_credentials(options, use_vault=True) == ("spw", "tpw")
        assert [c.args[0] for c in vault.get_store_password.call_args_list] == [
            "secret/tablesync/source",
            "secret/custom/target",
        ]
        mock_vault_class.assert_called_once()

    @patch("tablesync.cli.credentials.VaultClient")
    def test_vault_failure(self, mock_vault_class, no_password_env):
        mock_vault_class.return_value.get_store_password.side_effect = (
            requests.ConnectionError("vault down")
        )

        with pytest.raises(StoreConnectionError, match="Vault"):
            resolve_credentials(SyncOptions(), use_vault=True)


# ============================================================================
# Commands
# ============================================================================

@pytest.fixture
def quiet_cli():
    """Patch logging and tracing setup out of the commands."""
    with patch("tablesync.cli.commands.configure_logging"), \
            patch("tablesync.cli.commands.initialize_tracing"), \
            patch("tablesync.cli.commands.shutdown_tracing") as mock_shutdown, \
            patch("tablesync.cli.commands.resolve_credentials", return_value=("s", "t")):
        yield mock_shutdown


class TestCmdRun:
    """Tests for cmd_run"""

    @patch("tablesync.cli.commands.run_sync")
    def test_success_exits_zero(self, mock_run_sync, quiet_cli):
        mock_run_sync.return_value = RunCounters()

        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args("run", "--tables", "a"))

        assert exc_info.value.code == 0
        options = mock_run_sync.call_args.args[0]
        assert options.tables == ("a",)
        assert mock_run_sync.call_args.args[1:] == ("s", "t")
        quiet_cli.assert_called_once()

    @patch("tablesync.cli.commands.run_sync")
    def test_summaries_printed_when_verbose(self, mock_run_sync, quiet_cli, capsys):
        counters = RunCounters()
        counters.add(TableCounters("a", scanned=2, added=1))
        mock_run_sync.return_value = counters

        with pytest.raises(SystemExit):
            cmd_run(_args("run", "--tables", "a", "-v"))

        assert "a: scanned=2" in capsys.readouterr().out

    @patch("tablesync.cli.commands.run_sync")
    def test_fatal_error_exits_one(self, mock_run_sync, quiet_cli):
        mock_run_sync.side_effect = MutationError("insert of row 1 in a failed", table="a")

        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args("run", "--tables", "a"))

        assert exc_info.value.code == 1
        quiet_cli.assert_called_once()

    def test_no_tables_exits_one(self, quiet_cli):
        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args("run"))

        assert exc_info.value.code == 1

    def test_invalid_config_exits_one(self, quiet_cli):
        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args("run", "--tables", "a", "--two-way", "--no-timestamp"))

        assert exc_info.value.code == 1

    @patch("tablesync.cli.commands.run_sync")
    @patch("tablesync.cli.commands.MetricsPublisher")
    def test_metrics_port(self, mock_publisher, mock_run_sync, quiet_cli):
        mock_run_sync.return_value = RunCounters()

        with pytest.raises(SystemExit):
            cmd_run(_args("run", "--tables", "a", "--metrics-port", "9300"))

        mock_publisher.assert_called_once_with(port=9300)
        mock_publisher.return_value.start.assert_called_once()
        assert mock_run_sync.call_args.kwargs["metrics"] is not None

    @patch("tablesync.cli.commands.run_sync")
    @patch("tablesync.cli.commands.MetricsPublisher")
    def test_metrics_port_in_use_exits_one(self, mock_publisher, mock_run_sync, quiet_cli):
        mock_publisher.return_value.start.side_effect = RuntimeError("port 9300 in use")

        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args("run", "--tables", "a", "--metrics-port", "9300"))

        assert exc_info.value.code == 1
        mock_run_sync.assert_not_called()
        quiet_cli.assert_called_once()


class TestCmdSchedule:
    """Tests for cmd_schedule"""

    @patch("tablesync.cli.commands.SyncScheduler")
    def test_cron(self, mock_scheduler_class, quiet_cli):
        scheduler = mock_scheduler_class.return_value

        cmd_schedule(_args("schedule", "--tables", "a", "--cron", "0 * * * *"))

        args, kwargs = scheduler.add_cron_job.call_args
        assert args[1:] == ("0 * * * *", "tablesync")
        assert kwargs["source_password"] == "s"
        scheduler.start.assert_called_once()

    @patch("tablesync.cli.commands.SyncScheduler")
    def test_interval(self, mock_scheduler_class, quiet_cli):
        scheduler = mock_scheduler_class.return_value

        cmd_schedule(_args("schedule", "--tables", "a", "--interval", "60"))

        assert scheduler.add_interval_job.call_args.args[1] == 60
        scheduler.start.assert_called_once()

    @patch("tablesync.cli.commands.SyncScheduler")
    def test_invalid_schedule_exits_one(self, mock_scheduler_class, quiet_cli):
        mock_scheduler_class.return_value.add_interval_job.side_effect = ValueError("bad")

        with pytest.raises(SystemExit) as exc_info:
            cmd_schedule(_args("schedule", "--tables", "a", "--interval", "0"))

        assert exc_info.value.code == 1

    @patch("tablesync.cli.commands.SyncScheduler")
    @patch("tablesync.cli.commands.MetricsPublisher")
    def test_metrics_port_in_use_exits_one(self, mock_publisher, mock_scheduler_class, quiet_cli):
        mock_publisher.return_value.start.side_effect = RuntimeError("port 9300 in use")

        with pytest.raises(SystemExit) as exc_info:
            cmd_schedule(_args("schedule", "--tables", "a", "--interval", "60", "--metrics-port", "9300"))

        assert exc_info.value.code == 1
        mock_scheduler_class.return_value.start.assert_not_called()


class TestCmdTables:
    """Tests for cmd_tables"""

    @patch("tablesync.cli.commands.list_selected_tables", return_value=["a", "c"])
    def test_prints_tables(self, mock_list, quiet_cli, capsys):
        cmd_tables(_args("tables", "--tables", "*"))

        assert capsys.readouterr().out == "a\nc\n"
        assert mock_list.call_args.args[1] == "s"

    @patch("tablesync.cli.commands.list_selected_tables")
    def test_connection_failure(self, mock_list, quiet_cli):
        mock_list.side_effect = StoreConnectionError("Cannot connect to source")

        with pytest.raises(SystemExit) as exc_info:
            cmd_tables(_args("tables", "--tables", "*"))

        assert exc_info.value.code == 1


class TestMain:
    """Tests for main"""

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert "usage: tablesync" in capsys.readouterr().out

    def test_dispatches_command(self):
        mock_cmd_run = Mock()

        with patch.dict("tablesync.cli.COMMANDS", {"run": mock_cmd_run}):
            main(["run", "--tables", "a"])

        mock_cmd_run.assert_called_once()
