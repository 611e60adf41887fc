"""
CLI command implementations.

- run: one sync pass
- schedule: periodic sync passes
- tables: show the resolved table selection
"""

import argparse
import logging
import sys

from syncutils.metrics import MetricsPublisher, SyncMetrics
from syncutils.tracing import initialize_tracing, shutdown_tracing

from ..errors import SyncError
from ..options import SyncOptions, load_options
from ..runner import list_selected_tables, run_sync
from ..scheduler import SyncScheduler, sync_job
from .credentials import configure_logging, resolve_credentials

logger = logging.getLogger(__name__)


def options_from_args(args: argparse.Namespace) -> SyncOptions:
    """
    Merge config file and command-line flags into run options.

    Raises:
        ValueError: On invalid configuration
        OSError: If the config file cannot be read
    """
    overrides = {
        "source_uri": args.source_uri,
        "target_uri": args.target_uri,
        "tables": args.tables,
        "skip_tables": args.skip_tables,
        "primary_key": args.primary_key,
        "timestamp_key": "" if args.no_timestamp else args.timestamp_key,
        "delete": args.delete,
        "apply": False if args.dry_run else None,
        "force": args.force,
        "two_way": args.two_way,
        "read_lock": args.read_lock,
        "write_lock": args.write_lock,
        "ignore_errors": args.ignore_errors,
        "verbosity": args.verbose,
    }
    return load_options(args.config, **overrides)


def _prepare(args: argparse.Namespace) -> SyncOptions:
    try:
        options = options_from_args(args)
    except (ValueError, OSError) as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    configure_logging(args, options)
    if not options.tables:
        logger.error("No tables selected; use --tables or the 'tables' config key")
        sys.exit(1)
    return options


def _metrics(args: argparse.Namespace) -> SyncMetrics | None:
    if args.metrics_port is None:
        return None
    try:
        MetricsPublisher(port=args.metrics_port).start()
    except RuntimeError as e:
        logger.error(f"Cannot publish metrics: {e}")
        sys.exit(1)
    return SyncMetrics()


def cmd_run(args: argparse.Namespace) -> None:
    """
    Run one sync pass and exit.

    Exit code 0 when the run completes (ignored errors included), 1 on any
    fatal error.
    """
    options = _prepare(args)
    initialize_tracing(console_export=args.trace_console)

    try:
        source_password, target_password = resolve_credentials(options, args.use_vault)
        counters = run_sync(
            options,
            source_password,
            target_password,
            metrics=_metrics(args),
        )
    except SyncError as e:
        logger.error(f"Sync aborted: {e}")
        sys.exit(1)
    finally:
        shutdown_tracing()

    if options.verbosity > 0:
        for table_counters in counters.results:
            print(table_counters.summary())
    sys.exit(0)


def cmd_schedule(args: argparse.Namespace) -> None:
    """Run sync passes on a cron or interval schedule until interrupted."""
    options = _prepare(args)
    initialize_tracing(console_export=args.trace_console)

    try:
        source_password, target_password = resolve_credentials(options, args.use_vault)
    except SyncError as e:
        logger.error(f"Cannot schedule sync: {e}")
        sys.exit(1)

    scheduler = SyncScheduler()
    job_kwargs = {
        "options": options,
        "source_password": source_password,
        "target_password": target_password,
        "metrics": _metrics(args),
    }

    try:
        if args.cron:
            scheduler.add_cron_job(sync_job, args.cron, "tablesync", **job_kwargs)
        else:
            scheduler.add_interval_job(sync_job, args.interval, "tablesync", **job_kwargs)
    except ValueError as e:
        logger.error(f"Invalid schedule: {e}")
        sys.exit(1)

    try:
        scheduler.start()
    finally:
        shutdown_tracing()


def cmd_tables(args: argparse.Namespace) -> None:
    """Print the tables the selection resolves to, one per line."""
    options = _prepare(args)

    try:
        source_password, _ = resolve_credentials(options, args.use_vault)
        tables = list_selected_tables(options, source_password)
    except SyncError as e:
        logger.error(f"Cannot list tables: {e}")
        sys.exit(1)

    for table in tables:
        print(table)
