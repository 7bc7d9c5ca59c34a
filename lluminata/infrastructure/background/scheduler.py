# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for periodic offline jobs.

Uses APScheduler's AsyncIOScheduler to run coroutine jobs on the
application's event loop:

- Reconciliation pass every ``sync.interval_minutes`` (when auto sync is on)
- Retention sweep every ``sync.sweep_interval_hours`` (and at start when
  ``sync.sweep_on_start`` is set)

Job failures are counted and logged; they never reach APScheduler.

Example:
    from lluminata.infrastructure.background.scheduler import build_offline_scheduler

    scheduler = build_offline_scheduler(settings.sync, reconciliation, sweeper)
    await scheduler.start()
    ...
    await scheduler.stop()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable
from uuid import uuid4

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from lluminata.core.config.settings import SyncSettings
    from lluminata.domains.offline.reconciliation import ReconciliationClient
    from lluminata.domains.offline.retention import RetentionSweeper

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass
class ScheduledTask:
    """Configuration and counters for a scheduled job.

    Attributes:
        name: Human-readable task name.
        func: Coroutine function to run.
        interval_seconds: Seconds between runs.
        start_immediately: Run once as soon as the scheduler starts.
        id: Unique task identifier.
        last_run: Last run timestamp.
        run_count: Total number of runs.
        error_count: Number of failed runs.
    """

    name: str
    func: JobFunc
    interval_seconds: int
    start_immediately: bool = False
    id: str = field(default_factory=lambda: str(uuid4()))
    last_run: datetime | None = None
    run_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "interval_seconds": self.interval_seconds,
            "start_immediately": self.start_immediately,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class OfflineScheduler:
    """Interval scheduler for offline maintenance jobs.

    Tasks may be added before or after start(); tasks added before start
    are scheduled when the scheduler starts.

    Attributes:
        _scheduler: APScheduler instance.
        _tasks: Dictionary of scheduled tasks.
        _running: Whether scheduler is running.
    """

    def __init__(self) -> None:
        """Initialize the scheduler."""
        self._scheduler: AsyncIOScheduler | None = None
        self._tasks: dict[str, ScheduledTask] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def add_interval_task(
        self,
        name: str,
        func: JobFunc,
        seconds: int = 0,
        minutes: int = 0,
        hours: int = 0,
        start_immediately: bool = False,
    ) -> ScheduledTask:
        """Add an interval-scheduled task.

        Args:
            name: Task name.
            func: Coroutine function to run.
            seconds: Interval seconds.
            minutes: Interval minutes.
            hours: Interval hours.
            start_immediately: Run immediately on start.

        Returns:
            Created ScheduledTask.

        Raises:
            ValueError: If the interval is not positive.
        """
        interval = seconds + minutes * 60 + hours * 3600
        if interval <= 0:
            raise ValueError(f"Interval must be positive for task: {name}")

        task = ScheduledTask(
            name=name,
            func=func,
            interval_seconds=interval,
            start_immediately=start_immediately,
        )
        self._tasks[task.id] = task

        if self._scheduler:
            self._schedule(task)

        logger.info(
            "Added interval task: %s (every %dh %dm %ds)",
            name,
            hours,
            minutes,
            seconds,
        )
        return task

    def _schedule(self, task: ScheduledTask) -> None:
        """Register a task with APScheduler."""
        next_run = datetime.now(timezone.utc) if task.start_immediately else None
        job_kwargs: dict[str, Any] = {}
        if next_run is not None:
            job_kwargs["next_run_time"] = next_run

        self._scheduler.add_job(
            self._execute_task,
            trigger=IntervalTrigger(seconds=task.interval_seconds),
            args=[task.id],
            id=task.id,
            name=task.name,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )

    async def _execute_task(self, task_id: str) -> None:
        """Execute a scheduled task.

        Args:
            task_id: ID of the task to execute.
        """
        task = self._tasks.get(task_id)
        if not task:
            return

        logger.debug("Executing scheduled task: %s", task.name)

        try:
            await task.func()
            task.run_count += 1
        except Exception as e:
            task.error_count += 1
            logger.error("Scheduled task %s failed: %s", task.name, str(e))
        finally:
            task.last_run = datetime.now(timezone.utc)

    async def start(self) -> None:
        """Start the scheduler and schedule every registered task."""
        if self._running:
            return

        self._scheduler = AsyncIOScheduler()
        for task in self._tasks.values():
            self._schedule(task)
        self._scheduler.start()
        self._running = True

        logger.info("Offline scheduler started with %d tasks", len(self._tasks))

    async def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        stats = self.get_stats()
        logger.info(
            "Offline scheduler stopped (%d runs, %d errors)",
            stats["total_runs"],
            stats["total_errors"],
        )

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics.

        Returns:
            Statistics dictionary.
        """
        return {
            "is_running": self._running,
            "task_count": len(self._tasks),
            "total_runs": sum(t.run_count for t in self._tasks.values()),
            "total_errors": sum(t.error_count for t in self._tasks.values()),
            "tasks": [t.to_dict() for t in self._tasks.values()],
        }


def build_offline_scheduler(
    settings: "SyncSettings",
    reconciliation: "ReconciliationClient",
    sweeper: "RetentionSweeper",
) -> OfflineScheduler:
    """Create a scheduler with the default offline jobs registered.

    Args:
        settings: Sync configuration.
        reconciliation: Client whose reconcile() runs on the sync interval.
        sweeper: Sweeper whose sweep() runs on the sweep interval.

    Returns:
        Scheduler ready to start.
    """
    scheduler = OfflineScheduler()

    scheduler.add_interval_task(
        name="Retention Sweep",
        func=sweeper.sweep,
        hours=settings.sweep_interval_hours,
        start_immediately=settings.sweep_on_start,
    )

    if settings.auto_sync:
        scheduler.add_interval_task(
            name="Reconciliation Pass",
            func=reconciliation.reconcile,
            minutes=settings.interval_minutes,
        )
    else:
        logger.info("Automatic reconciliation disabled")

    return scheduler
