"""
APScheduler-based periodic sync.
"""

import logging
from collections.abc import Callable
from typing import Any

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .errors import SyncError
from .options import SyncOptions
from .runner import run_sync

logger = logging.getLogger(__name__)


def sync_job(
    options: SyncOptions,
    source_password: str | None = None,
    target_password: str | None = None,
    metrics: Any = None,
) -> None:
    """
    Scheduled entry point for one sync run.

    A failed run is logged; the scheduler keeps going.
    """
    try:
        counters = run_sync(options, source_password, target_password, metrics=metrics)
    except SyncError as e:
        logger.error(f"Scheduled sync failed: {e}")
        return
    logger.info(f"Scheduled sync finished: {counters.summary()}")


class SyncScheduler:
    """
    Scheduler for periodic sync runs

    Wraps a BlockingScheduler; start() blocks until interrupted.
    """

    def __init__(self):
        self.scheduler = BlockingScheduler()
        self.jobs = []

    def add_interval_job(
        self,
        job_func: Callable,
        interval_seconds: int,
        job_id: str,
        **kwargs
    ) -> None:
        """
        Add a job that runs at fixed intervals

        Args:
            job_func: Function to execute
            interval_seconds: Interval in seconds
            job_id: Unique identifier for the job
            **kwargs: Arguments passed to job_func
        """
        if interval_seconds <= 0:
            raise ValueError("Interval must be a positive number of seconds")

        job = self.scheduler.add_job(
            job_func,
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=job_id,
            kwargs=kwargs,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.jobs.append(job)
        logger.info(f"Added interval job '{job_id}' every {interval_seconds}s")

    def add_cron_job(
        self,
        job_func: Callable,
        cron_expression: str,
        job_id: str,
        **kwargs
    ) -> None:
        """
        Add a job that runs on a cron schedule

        Args:
            job_func: Function to execute
            cron_expression: Five-field cron expression, e.g. "*/15 * * * *"
            job_id: Unique identifier for the job
            **kwargs: Arguments passed to job_func
        """
        parts = cron_expression.split()
        if len(parts) != 5:
            raise ValueError(
                "Cron expression must have 5 parts: minute hour day month day_of_week"
            )

        minute, hour, day, month, day_of_week = parts
        trigger = CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=day_of_week,
        )

        job = self.scheduler.add_job(
            job_func,
            trigger=trigger,
            id=job_id,
            kwargs=kwargs,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.jobs.append(job)
        logger.info(f"Added cron job '{job_id}' with schedule '{cron_expression}'")

    def start(self) -> None:
        """Run scheduled jobs until interrupted."""
        logger.info(f"Starting sync scheduler with {len(self.jobs)} job(s)")
        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped by user")
            self.stop()

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Scheduler stopped")
