"""Scheduling decision engine.

Each job is classified exactly once at startup against the current
wall-clock time, then activated:

- Recurring: the recurrence interval is at least the ignore threshold,
  so a periodic timer is registered.
- ImmediateOnce: the trigger time passed no more than the catch-up
  threshold ago (or is still ahead today), so the job runs now.
- ScheduledOnce: otherwise a daily timer is registered for the job's
  time of day.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from reportcast.config.models import SchedulerConfig
from reportcast.errors import ConfigurationError
from reportcast.scheduling.registry import JobRegistry
from reportcast.scheduling.timers import TimerService
from reportcast.scheduling.types import (
    ExecutionMode,
    ImmediateOnce,
    JobCallback,
    JobDefinition,
    Recurring,
    ScheduledOnce,
    ScheduleDecision,
    validate_time_of_day,
)

logger = logging.getLogger(__name__)

# Builds the firing callback for a job
JobRunnerFactory = Callable[[JobDefinition], JobCallback]


def compute_delay_minutes(job: JobDefinition, now: datetime) -> float:
    """Minutes elapsed since the job's time of day on `now`'s date.

    Negative when the time of day is still ahead today.

    Raises:
        ConfigurationError: If the job's time of day is out of range.
    """
    validate_time_of_day(job.hour, job.minute)
    job_time = now.replace(hour=job.hour, minute=job.minute, second=0, microsecond=0)
    return (now - job_time).total_seconds() / 60


def classify(
    job: JobDefinition, now: datetime, settings: SchedulerConfig
) -> ExecutionMode:
    """Select the execution mode for a job at `now`.

    First matching rule wins: qualifying recurrence, then catch-up, then a
    daily timer.

    Raises:
        ConfigurationError: If the job's time of day is out of range.
    """
    delay_minutes = compute_delay_minutes(job, now)
    return _classify(job, delay_minutes, settings)


def _classify(
    job: JobDefinition, delay_minutes: float, settings: SchedulerConfig
) -> ExecutionMode:
    interval = job.recurrence_interval_minutes
    if interval and interval >= settings.ignore_threshold_minutes:
        return Recurring(interval)

    if interval:
        logger.debug(
            "recurrence_collapsed",
            extra={
                "job.report_id": job.report_id,
                "job.recurrence_minutes": interval,
                "schedule.ignore_threshold": settings.ignore_threshold_minutes,
            },
        )

    catch_up = delay_minutes <= settings.catch_up_threshold_minutes
    if catch_up and (settings.catch_up_future_jobs or delay_minutes >= 0):
        return ImmediateOnce()

    return ScheduledOnce(job.hour, job.minute)


class SchedulingEngine:
    """Classifies jobs and registers them with the timer service."""

    def __init__(
        self,
        settings: SchedulerConfig,
        timers: TimerService,
        runner_factory: JobRunnerFactory,
    ):
        self._settings = settings
        self._timers = timers
        self._runner_factory = runner_factory

    def schedule(self, job: JobDefinition, now: datetime) -> ScheduleDecision:
        """Classify one job and activate its mode.

        Raises:
            ConfigurationError: If the job's time of day is out of range.
        """
        delay_minutes = compute_delay_minutes(job, now)
        mode = _classify(job, delay_minutes, self._settings)
        callback = self._runner_factory(job)
        name = f"job:{job.report_id}"

        match mode:
            case Recurring(interval_minutes=interval):
                self._timers.schedule_recurring(interval, callback, name=name)
            case ImmediateOnce():
                self._timers.spawn(callback, name=name)
            case ScheduledOnce(hour=hour, minute=minute):
                self._timers.schedule_once(hour, minute, callback, name=name)

        logger.info(
            "job_scheduled",
            extra={
                "job.report_id": job.report_id,
                "job.time": job.time_of_day,
                "schedule.mode": mode.describe(),
                "schedule.delay_minutes": round(delay_minutes, 1),
            },
        )
        return ScheduleDecision(job=job, mode=mode, delay_minutes=delay_minutes)

    def schedule_all(
        self, registry: JobRegistry, now: datetime | None = None
    ) -> list[ScheduleDecision]:
        """Classify and activate every job in registry order.

        A job with an invalid definition is logged and skipped; the rest
        are still scheduled.
        """
        now = now or self._timers.now()
        decisions: list[ScheduleDecision] = []
        for job in registry:
            try:
                decisions.append(self.schedule(job, now))
            except ConfigurationError as e:
                logger.error(
                    "job_schedule_rejected",
                    extra={"job.report_id": job.report_id, "error.message": str(e)},
                )
        logger.info(
            "job_scheduling_started",
            extra={"jobs.scheduled": len(decisions), "jobs.total": len(registry)},
        )
        return decisions
