"""Scheduling types.

Public types:
- JobDefinition: One configured report job (immutable)
- ExecutionMode: Recurring | ImmediateOnce | ScheduledOnce
- ScheduleDecision: The outcome of classifying one job
- JobCallback: Async callable invoked for each firing
"""

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from reportcast.errors import ConfigurationError

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2})\s*:\s*(\d{1,2})\s*$")


def parse_time_of_day(value: Any) -> tuple[int, int]:
    """Parse an "HH:MM" string into (hour, minute).

    Raises:
        ConfigurationError: If the value is not numeric or out of range.
    """
    if not isinstance(value, str):
        raise ConfigurationError(f"Time of day must be an 'HH:MM' string, got {value!r}")
    match = _TIME_PATTERN.match(value)
    if not match:
        raise ConfigurationError(f"Invalid time of day {value!r}, expected 'HH:MM'")
    hour, minute = int(match.group(1)), int(match.group(2))
    validate_time_of_day(hour, minute)
    return hour, minute


def validate_time_of_day(hour: Any, minute: Any) -> None:
    """Check hour and minute ranges.

    Raises:
        ConfigurationError: If either value is not an int or out of range.
    """
    if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
        raise ConfigurationError(f"Hour must be in 0-23, got {hour!r}")
    if isinstance(minute, bool) or not isinstance(minute, int) or not 0 <= minute <= 59:
        raise ConfigurationError(f"Minute must be in 0-59, got {minute!r}")


def _parse_recurrence(value: Any) -> int | None:
    if value is None or value == 0:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(
            f"Recurrence must be a positive number of minutes, got {value!r}"
        )
    return value


@dataclass(frozen=True)
class JobDefinition:
    """A configured (report, schedule, destination) tuple."""

    report_id: str
    delivery_target: str
    display_name: str
    hour: int
    minute: int
    recurrence_interval_minutes: int | None = None

    @property
    def time_of_day(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobDefinition":
        """Parse a job from a [[jobs]] config entry.

        Raises:
            ConfigurationError: If a required field is missing or invalid.
        """
        report_id = data.get("report_id")
        if not report_id or not isinstance(report_id, str):
            raise ConfigurationError("Job is missing 'report_id'")
        delivery_target = data.get("delivery_target")
        if not delivery_target or not isinstance(delivery_target, str):
            raise ConfigurationError(f"Job {report_id!r} is missing 'delivery_target'")
        display_name = data.get("display_name") or report_id
        if not isinstance(display_name, str):
            raise ConfigurationError(
                f"Job {report_id!r}: display_name must be a string, got {display_name!r}"
            )

        try:
            hour, minute = parse_time_of_day(data.get("time"))
            recurrence = _parse_recurrence(data.get("recurrence_minutes"))
        except ConfigurationError as e:
            raise ConfigurationError(f"Job {report_id!r}: {e}") from e

        return cls(
            report_id=report_id,
            delivery_target=delivery_target,
            display_name=display_name,
            hour=hour,
            minute=minute,
            recurrence_interval_minutes=recurrence,
        )


@dataclass(frozen=True)
class Recurring:
    """Fire every `interval_minutes`."""

    interval_minutes: int

    def describe(self) -> str:
        return f"recurring every {self.interval_minutes}m"


@dataclass(frozen=True)
class ImmediateOnce:
    """Fire once, right away, with no timer."""

    def describe(self) -> str:
        return "immediate"


@dataclass(frozen=True)
class ScheduledOnce:
    """Fire at `hour:minute` local time, every day."""

    hour: int
    minute: int

    def describe(self) -> str:
        return f"daily at {self.hour:02d}:{self.minute:02d}"


ExecutionMode = Recurring | ImmediateOnce | ScheduledOnce


@dataclass(frozen=True)
class ScheduleDecision:
    """The mode selected for one job and the delay it was computed from."""

    job: JobDefinition
    mode: ExecutionMode
    delay_minutes: float


JobCallback = Callable[[], Awaitable[Any]]
