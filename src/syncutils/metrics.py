"""
Prometheus metrics for sync runs

Usage:
    from syncutils.metrics import MetricsPublisher, SyncMetrics

    MetricsPublisher(port=9091).start()
    metrics = SyncMetrics()
    metrics.record_table("nodes_info", counters, duration=3.2, success=True)
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Per-table counter fields exported as row actions
ROW_ACTIONS = (
    "scanned",
    "skipped",
    "added",
    "updated",
    "updated_source",
    "deleted",
    "warnings",
    "errors",
)


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric, or return the one already registered under metric_name.

    Args:
        metric_factory: Callable that creates the metric (e.g., lambda: Counter(...))
        metric_name: Name of the metric for lookup if already registered
        registry: Prometheus registry to use (default: global REGISTRY)
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


class SyncMetrics:
    """
    Metrics for table sync runs

    Tracks row actions per table, table outcomes and sync duration.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize sync metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.rows_total = get_or_create_metric(
            lambda: Counter(
                "tablesync_rows_total",
                "Rows handled by the sync engine, by action",
                ["table_name", "action"],
                registry=self.registry,
            ),
            "tablesync_rows",
            self.registry,
        )

        self.tables_total = get_or_create_metric(
            lambda: Counter(
                "tablesync_tables_total",
                "Table sync runs, by outcome",
                ["table_name", "status"],
                registry=self.registry,
            ),
            "tablesync_tables",
            self.registry,
        )

        self.table_duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "tablesync_table_duration_seconds",
                "Duration of one table sync in seconds",
                ["table_name"],
                buckets=(0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800),
                registry=self.registry,
            ),
            "tablesync_table_duration_seconds",
            self.registry,
        )

        self.last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "tablesync_last_run_timestamp",
                "Unix time of the last completed table sync",
                ["table_name"],
                registry=self.registry,
            ),
            "tablesync_last_run_timestamp",
            self.registry,
        )

    def record_table(
        self,
        table_name: str,
        counters: Any,
        duration: float,
        success: bool = True,
    ) -> None:
        """
        Record the outcome of one table sync

        Args:
            table_name: Name of the table
            counters: TableCounters of the finished table
            duration: Duration in seconds
            success: Whether the table finished without being abandoned
        """
        for action in ROW_ACTIONS:
            value = getattr(counters, action, 0)
            if value:
                self.rows_total.labels(table_name=table_name, action=action).inc(value)

        status = "success" if success else "failed"
        self.tables_total.labels(table_name=table_name, status=status).inc()
        self.table_duration_seconds.labels(table_name=table_name).observe(duration)
        if success:
            self.last_run_timestamp.labels(table_name=table_name).set_to_current_time()

    def record_failure(self, table_name: str) -> None:
        """Record a table that was abandoned before its counters were complete."""
        self.tables_total.labels(table_name=table_name, status="failed").inc()


class MetricsPublisher:
    """
    Exposes the registry on an HTTP /metrics endpoint.
    """

    def __init__(self, port: int = 9091, registry: CollectorRegistry | None = None):
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            raise RuntimeError(f"Metrics server cannot listen on port {self.port}: {e}") from e

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")
