"""Clock and timer service built on asyncio.

Timers are long-lived asyncio tasks that sleep until their next fire time
and then spawn the job callback as an independent task, so a slow firing
never delays the timer or other jobs.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from reportcast.scheduling.types import JobCallback, validate_time_of_day

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]


def resolve_timezone(name: str) -> ZoneInfo:
    """Get a ZoneInfo for an IANA name, falling back to UTC."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("invalid_timezone", extra={"schedule.timezone": name})
        return ZoneInfo("UTC")


def next_daily_fire(now: datetime, hour: int, minute: int) -> datetime:
    """Next occurrence of hour:minute strictly after `now`.

    Evaluated in `now`'s timezone so that "09:00" stays 09:00 local time
    across DST changes.
    """
    validate_time_of_day(hour, minute)
    return croniter(f"{minute} {hour} * * *", now).get_next(datetime)


class TimerService:
    """Registers daily and fixed-interval callbacks on the running loop.

    Example:
        timers = TimerService(timezone="Asia/Kolkata")
        timers.schedule_once(9, 0, job_body)
        timers.schedule_recurring(60, other_body)
        ...
        await timers.stop()
    """

    def __init__(
        self,
        timezone: str = "UTC",
        *,
        clock: Clock | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._tz = resolve_timezone(timezone)
        self._clock = clock
        self._sleep = sleep
        self._timers: set[asyncio.Task] = set()
        self._firings: set[asyncio.Task] = set()

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    @property
    def timer_count(self) -> int:
        return len(self._timers)

    @property
    def in_flight(self) -> int:
        return len(self._firings)

    def now(self) -> datetime:
        """Current wall-clock time in the service timezone."""
        if self._clock is not None:
            return self._clock().astimezone(self._tz)
        return datetime.now(UTC).astimezone(self._tz)

    def schedule_once(
        self, hour: int, minute: int, callback: JobCallback, name: str | None = None
    ) -> asyncio.Task:
        """Register a callback that fires daily at hour:minute local time."""
        validate_time_of_day(hour, minute)
        return self._add_timer(self._daily_loop(hour, minute, callback, name), name)

    def schedule_recurring(
        self, interval_minutes: int, callback: JobCallback, name: str | None = None
    ) -> asyncio.Task:
        """Register a callback that fires every `interval_minutes`."""
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")
        return self._add_timer(
            self._interval_loop(interval_minutes, callback, name), name
        )

    def spawn(self, callback: JobCallback, name: str | None = None) -> asyncio.Task:
        """Start a firing now, without waiting for it."""
        task = asyncio.create_task(callback(), name=name)
        self._firings.add(task)
        task.add_done_callback(self._on_firing_done)
        return task

    async def stop(self) -> None:
        """Cancel every timer and wait for in-flight firings to finish."""
        timers = list(self._timers)
        for task in timers:
            task.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        self._timers.clear()

        if self._firings:
            await asyncio.gather(*list(self._firings), return_exceptions=True)

    def _add_timer(self, coro, name: str | None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)
        return task

    async def _daily_loop(
        self, hour: int, minute: int, callback: JobCallback, name: str | None
    ) -> None:
        last_fire: datetime | None = None
        while True:
            now = self.now()
            # A sleep may wake slightly before the wall clock reaches fire_at
            after = now if last_fire is None else max(now, last_fire)
            fire_at = next_daily_fire(after, hour, minute)
            delay = (fire_at - now).total_seconds()
            logger.debug(
                "timer_next_fire",
                extra={
                    "timer.name": name,
                    "timer.fire_at": fire_at.isoformat(),
                    "timer.delay_s": round(delay),
                },
            )
            await self._sleep(max(delay, 0.0))
            last_fire = fire_at
            self._fire(callback, name)

    async def _interval_loop(
        self, interval_minutes: int, callback: JobCallback, name: str | None
    ) -> None:
        while True:
            await self._sleep(interval_minutes * 60)
            self._fire(callback, name)

    def _fire(self, callback: JobCallback, name: str | None) -> None:
        logger.info("timer_fired", extra={"timer.name": name})
        self.spawn(callback, name=name)

    def _on_firing_done(self, task: asyncio.Task) -> None:
        self._firings.discard(task)
        if task.cancelled():
            return
        if (exc := task.exception()) is not None:
            logger.error(
                "firing_error",
                extra={
                    "timer.name": task.get_name(),
                    "error.message": str(exc),
                    "error.type": type(exc).__name__,
                },
            )
