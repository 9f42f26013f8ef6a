"""Tests for the asyncio timer service."""

import asyncio
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from reportcast.errors import ConfigurationError
from reportcast.scheduling.timers import TimerService, next_daily_fire, resolve_timezone


class TestNextDailyFire:
    def test_later_today(self):
        now = datetime(2026, 3, 14, 8, 0, tzinfo=UTC)
        assert next_daily_fire(now, 9, 30) == datetime(2026, 3, 14, 9, 30, tzinfo=UTC)

    def test_already_passed_rolls_to_tomorrow(self):
        now = datetime(2026, 3, 14, 10, 0, tzinfo=UTC)
        assert next_daily_fire(now, 9, 30) == datetime(2026, 3, 15, 9, 30, tzinfo=UTC)

    def test_exactly_now_rolls_to_tomorrow(self):
        now = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)
        assert next_daily_fire(now, 9, 30) == datetime(2026, 3, 15, 9, 30, tzinfo=UTC)

    def test_keeps_local_wall_clock(self):
        tz = ZoneInfo("Asia/Kolkata")
        now = datetime(2026, 3, 14, 23, 0, tzinfo=tz)
        fire = next_daily_fire(now, 6, 15)
        assert (fire.hour, fire.minute, fire.day) == (6, 15, 15)
        assert fire.utcoffset() == tz.utcoffset(fire)

    def test_invalid_time(self):
        with pytest.raises(ConfigurationError):
            next_daily_fire(datetime(2026, 3, 14, tzinfo=UTC), 24, 0)


class TestResolveTimezone:
    def test_valid(self):
        assert resolve_timezone("Europe/London") == ZoneInfo("Europe/London")

    def test_invalid_falls_back_to_utc(self):
        assert resolve_timezone("Not/AZone") == ZoneInfo("UTC")


class TestTimerService:
    def test_now_uses_clock_in_service_timezone(self):
        timers = TimerService(
            "Asia/Kolkata", clock=lambda: datetime(2026, 3, 14, 0, 0, tzinfo=UTC)
        )
        now = timers.now()
        assert (now.hour, now.minute) == (5, 30)
        assert now.tzinfo == ZoneInfo("Asia/Kolkata")

    @pytest.mark.asyncio
    async def test_spawn_runs_callback_independently(self):
        timers = TimerService()
        started = asyncio.Event()
        release = asyncio.Event()

        async def job():
            started.set()
            await release.wait()
            return "done"

        task = timers.spawn(job, name="job:a")
        await started.wait()
        assert timers.in_flight == 1

        release.set()
        assert await task == "done"
        await asyncio.sleep(0)
        assert timers.in_flight == 0

    @pytest.mark.asyncio
    async def test_spawned_failure_does_not_propagate(self, caplog):
        timers = TimerService()

        async def job():
            raise RuntimeError("boom")

        task = timers.spawn(job, name="job:bad")
        with pytest.raises(RuntimeError):
            await task
        await asyncio.sleep(0)
        assert "firing_error" in caplog.text

    @pytest.mark.asyncio
    async def test_recurring_fires_every_interval(self):
        delays: list[float] = []
        fired = 0
        done = asyncio.Event()

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)
            await asyncio.sleep(0)

        async def job():
            nonlocal fired
            fired += 1
            if fired >= 3:
                done.set()

        timers = TimerService(sleep=fake_sleep)
        timers.schedule_recurring(60, job, name="job:hourly")
        assert timers.timer_count == 1

        await asyncio.wait_for(done.wait(), timeout=5)
        await timers.stop()

        assert fired >= 3
        assert all(d == 3600 for d in delays)
        assert timers.timer_count == 0

    @pytest.mark.asyncio
    async def test_daily_sleeps_until_time_of_day(self):
        delays: list[float] = []
        done = asyncio.Event()

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)
            await asyncio.sleep(0)

        async def job():
            done.set()

        timers = TimerService(
            "UTC",
            clock=lambda: datetime(2026, 3, 14, 8, 0, tzinfo=UTC),
            sleep=fake_sleep,
        )
        timers.schedule_once(9, 30, job, name="job:daily")

        await asyncio.wait_for(done.wait(), timeout=5)
        await timers.stop()

        assert delays[0] == 90 * 60

    @pytest.mark.asyncio
    async def test_daily_early_wake_fires_once_per_day(self):
        current = [datetime(2026, 3, 14, 8, 0, tzinfo=UTC)]
        delays: list[float] = []
        fired = 0
        parked = asyncio.Event()

        async def early_sleep(seconds: float) -> None:
            delays.append(seconds)
            if len(delays) > 2:
                parked.set()
                await asyncio.Event().wait()
            # Wake 5 ms before the wall clock reaches the target
            current[0] += timedelta(seconds=seconds - 0.005)
            await asyncio.sleep(0)

        async def job():
            nonlocal fired
            fired += 1

        timers = TimerService("UTC", clock=lambda: current[0], sleep=early_sleep)
        timers.schedule_once(9, 0, job, name="job:daily")

        await asyncio.wait_for(parked.wait(), timeout=5)
        await asyncio.sleep(0)
        await timers.stop()

        assert fired == 2
        assert delays[0] == 3600
        assert delays[1] == pytest.approx(86400.005)
        assert delays[2] == pytest.approx(86400.005)

    @pytest.mark.asyncio
    async def test_schedule_once_rejects_invalid_time(self):
        timers = TimerService()

        async def job():
            pass

        with pytest.raises(ConfigurationError):
            timers.schedule_once(9, 75, job)
        assert timers.timer_count == 0

    @pytest.mark.asyncio
    async def test_schedule_recurring_rejects_non_positive_interval(self):
        timers = TimerService()

        async def job():
            pass

        with pytest.raises(ValueError):
            timers.schedule_recurring(0, job)

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight_firings(self):
        timers = TimerService()
        finished = False

        async def job():
            nonlocal finished
            await asyncio.sleep(0.01)
            finished = True

        timers.spawn(job)
        await timers.stop()

        assert finished
