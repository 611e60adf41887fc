"""
Command-line argument parser configuration.

Every option flag defaults to None so that only flags actually given on the
command line override the config file.
"""

import argparse


def _add_sync_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--config', help='YAML config file with defaults')

    stores = parser.add_argument_group('stores')
    stores.add_argument('--source-uri', help='Source store URI')
    stores.add_argument('--target-uri', help='Target store URI')
    stores.add_argument(
        '--use-vault',
        action='store_true',
        help='Fetch store passwords from HashiCorp Vault'
    )

    selection = parser.add_argument_group('table selection')
    selection.add_argument(
        '--tables',
        help="Comma-separated list of tables, or '*' for all source tables"
    )
    selection.add_argument(
        '--skip-tables',
        help="Comma-separated list of tables excluded from '*'"
    )

    keys = parser.add_argument_group('keys')
    keys.add_argument('--primary-key', help='Primary key column (default: id)')
    keys.add_argument('--timestamp-key', help='Timestamp column (default: updated)')
    keys.add_argument(
        '--no-timestamp',
        action='store_true',
        help='Compare whole rows instead of a timestamp column (one-way only)'
    )

    behaviour = parser.add_argument_group('sync behaviour')
    behaviour.add_argument(
        '--delete',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Delete target rows missing from the source (default: off)'
    )
    behaviour.add_argument(
        '--dry-run',
        action='store_true',
        default=None,
        help='Decide and count, but send no mutation to either store'
    )
    behaviour.add_argument(
        '--force',
        action='store_true',
        default=None,
        help='Overwrite target rows regardless of timestamps'
    )
    behaviour.add_argument(
        '--two-way',
        action='store_true',
        default=None,
        help='Push newer target rows back to the source'
    )
    behaviour.add_argument(
        '--read-lock',
        action='store_true',
        default=None,
        help='Read-lock the source table while its snapshot is taken'
    )
    behaviour.add_argument(
        '--write-lock',
        action='store_true',
        default=None,
        help='Write-lock the target table while changes are applied'
    )
    behaviour.add_argument(
        '--ignore-errors',
        action='store_true',
        default=None,
        help='Skip failed rows and tables instead of aborting'
    )

    output = parser.add_argument_group('output')
    output.add_argument(
        '-v', '--verbose',
        action='count',
        default=None,
        help='Increase verbosity (-v: per-table summaries, -vv: per-row detail)'
    )
    output.add_argument('--debug', action='store_true', help='Debug logging')
    output.add_argument('--log-file', help='Also log to this file (rotated)')
    output.add_argument('--json-logs', action='store_true', help='Log as JSON lines')
    output.add_argument('--metrics-port', type=int, help='Expose Prometheus metrics on this port')
    output.add_argument(
        '--trace-console',
        action='store_true',
        help='Print OpenTelemetry spans to the console'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='tablesync',
        description="Reconcile tables between a source and a target SQL database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Preview what a sync of two tables would change
  tablesync run --config sync.yml --tables nodes_info,hosts --dry-run -vv

  # Sync every table except two, deleting rows gone from the source
  tablesync run --config sync.yml --tables '*' --skip-tables audit,sessions --delete

  # Two-way sync by timestamp with both tables locked
  tablesync run --config sync.yml --tables nodes_info --two-way --read-lock --write-lock

  # Run every 15 minutes
  tablesync schedule --config sync.yml --tables '*' --cron "*/15 * * * *"

  # Show which tables a selection resolves to
  tablesync tables --config sync.yml --tables '*' --skip-tables audit
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Run one sync pass')
    _add_sync_options(run_parser)

    schedule_parser = subparsers.add_parser('schedule', help='Run sync passes periodically')
    _add_sync_options(schedule_parser)
    trigger = schedule_parser.add_mutually_exclusive_group()
    trigger.add_argument('--cron', help='Cron expression (e.g., "0 */6 * * *")')
    trigger.add_argument(
        '--interval',
        type=int,
        default=3600,
        help='Interval in seconds (default: 3600)'
    )

    tables_parser = subparsers.add_parser('tables', help='List the tables a selection resolves to')
    _add_sync_options(tables_parser)

    return parser
