"""Scheduling subsystem: deciding when each job fires.

Public API:
- JobRegistry: Read-only list of configured jobs
- SchedulingEngine: Classifies jobs and registers them with timers
- TimerService: Daily and fixed-interval callbacks on the asyncio loop
- classify: Pure mode selection for one job at a given time

Types:
- JobDefinition: One configured report job
- Recurring / ImmediateOnce / ScheduledOnce: Execution modes
"""

from reportcast.scheduling.engine import (
    SchedulingEngine,
    classify,
    compute_delay_minutes,
)
from reportcast.scheduling.registry import JobRegistry, RejectedJob
from reportcast.scheduling.timers import TimerService, next_daily_fire
from reportcast.scheduling.types import (
    ExecutionMode,
    ImmediateOnce,
    JobCallback,
    JobDefinition,
    Recurring,
    ScheduledOnce,
    ScheduleDecision,
    parse_time_of_day,
)

__all__ = [
    "ExecutionMode",
    "ImmediateOnce",
    "JobCallback",
    "JobDefinition",
    "JobRegistry",
    "Recurring",
    "RejectedJob",
    "ScheduleDecision",
    "ScheduledOnce",
    "SchedulingEngine",
    "TimerService",
    "classify",
    "compute_delay_minutes",
    "next_daily_fire",
    "parse_time_of_day",
]
