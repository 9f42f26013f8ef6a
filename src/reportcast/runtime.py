"""Process wiring: config -> registry -> engine -> timers.

`build_runtime` assembles the collaborators once from the immutable
config; `Runtime.start` classifies every job and `Runtime.run_forever`
keeps the loop alive until a shutdown signal arrives.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from reportcast.config.models import ReportcastConfig
from reportcast.delivery.gateway import HttpMessagingGateway, MessagingGateway
from reportcast.delivery.retry import RetryPolicy
from reportcast.reports.pipeline import ReportPipeline
from reportcast.reports.render import Renderer
from reportcast.reports.source import DataSource, HttpDataSource
from reportcast.scheduling.engine import SchedulingEngine
from reportcast.scheduling.registry import JobRegistry
from reportcast.scheduling.timers import TimerService
from reportcast.scheduling.types import ScheduleDecision

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    config: ReportcastConfig
    registry: JobRegistry
    timers: TimerService
    pipeline: ReportPipeline
    engine: SchedulingEngine

    def start(self, now: datetime | None = None) -> list[ScheduleDecision]:
        """Classify and activate every job. Must run inside the event loop."""
        return self.engine.schedule_all(self.registry, now=now)

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """Schedule all jobs, then wait for `stop_event` and shut down."""
        self.start()
        logger.info("job_scheduling_running", extra={"timezone": self.config.timezone})
        try:
            await stop_event.wait()
        finally:
            logger.info("shutting_down", extra={"firings.in_flight": self.timers.in_flight})
            await self.timers.stop()


def build_runtime(
    config: ReportcastConfig,
    *,
    source: DataSource | None = None,
    gateway: MessagingGateway | None = None,
    timers: TimerService | None = None,
) -> Runtime:
    """Assemble the runtime from config.

    Raises:
        ConfigurationError: If [source] or [gateway] is missing and no
            replacement was passed in.
    """
    settings = config.scheduler
    if source is None:
        source = HttpDataSource(config.require_source())
    if gateway is None:
        gateway = HttpMessagingGateway(config.require_gateway())
    if timers is None:
        timers = TimerService(config.timezone)

    registry = JobRegistry.from_entries(config.jobs)
    pipeline = ReportPipeline(
        source,
        Renderer(config.output_dir),
        gateway,
        RetryPolicy.from_settings(settings),
        retry_fetch=settings.retry_fetch,
    )
    engine = SchedulingEngine(settings, timers, pipeline.runner_for)
    return Runtime(
        config=config,
        registry=registry,
        timers=timers,
        pipeline=pipeline,
        engine=engine,
    )
