"""Report pipeline: fetch, render, deliver.

`run_job` is the job-body boundary. Every error raised by one firing is
logged there and goes no further, so a permanently failing job never
stops other jobs or the process.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from reportcast.delivery.retry import RetryPolicy, deliver_with_retry
from reportcast.errors import DeliveryFailed, FetchError, ReportcastError
from reportcast.reports.render import Renderer
from reportcast.reports.source import DataSource
from reportcast.reports.types import Artifact, Row
from reportcast.scheduling.types import JobCallback, JobDefinition

if TYPE_CHECKING:
    from reportcast.delivery.gateway import MessagingGateway

logger = logging.getLogger(__name__)


class ReportPipeline:
    """Runs one firing of a job end to end."""

    def __init__(
        self,
        source: DataSource,
        renderer: Renderer,
        gateway: "MessagingGateway",
        retry_policy: RetryPolicy,
        *,
        retry_fetch: bool = False,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self._source = source
        self._renderer = renderer
        self._gateway = gateway
        self._retry_policy = retry_policy
        self._retry_fetch = retry_fetch
        self._sleep = sleep or asyncio.sleep

    def runner_for(self, job: JobDefinition) -> JobCallback:
        """Build the firing callback handed to the timer service."""

        async def run() -> bool:
            return await self.run_job(job)

        return run

    async def run_job(self, job: JobDefinition) -> bool:
        """Run one firing, logging instead of raising.

        Returns:
            True if the report was delivered.
        """
        started = time.monotonic()
        logger.info(
            "job_started",
            extra={"job.report_id": job.report_id, "messaging.target": job.delivery_target},
        )
        try:
            await self.execute(job)
        except FetchError as e:
            logger.error(
                "job_fetch_failed",
                extra={
                    "job.report_id": job.report_id,
                    "error.type": type(e).__name__,
                    "error.message": str(e),
                },
            )
            return False
        except DeliveryFailed as e:
            logger.error(
                "job_delivery_failed",
                extra={
                    "job.report_id": job.report_id,
                    "retry.attempts": e.attempts,
                    "error.message": str(e.last_error),
                },
            )
            return False
        except ReportcastError as e:
            logger.error(
                "job_failed",
                extra={"job.report_id": job.report_id, "error.message": str(e)},
            )
            return False
        except Exception:
            logger.exception(
                "job_unexpected_error", extra={"job.report_id": job.report_id}
            )
            return False

        logger.info(
            "job_completed",
            extra={
                "job.report_id": job.report_id,
                "duration_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return True

    async def execute(self, job: JobDefinition) -> Artifact:
        """Fetch, render and deliver, raising on failure.

        Raises:
            FetchError: If the data source fails.
            DeliveryFailed: If the gateway kept failing past the retry budget.
        """
        rows = await self._fetch(job)
        artifact = self._renderer.render(job.display_name, rows, report_id=job.report_id)
        try:
            await self._retry(
                lambda: self._gateway.deliver(job.delivery_target, artifact),
                operation_name=f"deliver:{job.report_id}",
            )
        finally:
            if artifact.path is not None:
                artifact.path.unlink(missing_ok=True)
        return artifact

    async def _fetch(self, job: JobDefinition) -> list[Row]:
        if not self._retry_fetch:
            return await self._source.fetch(job.report_id)
        try:
            return await self._retry(
                lambda: self._source.fetch(job.report_id),
                operation_name=f"fetch:{job.report_id}",
            )
        except DeliveryFailed as e:
            raise FetchError(
                f"Query {job.report_id} failed after {e.attempts} attempt(s): "
                f"{e.last_error}"
            ) from e.last_error

    async def _retry(self, action, *, operation_name: str):
        return await deliver_with_retry(
            action, self._retry_policy, operation_name=operation_name, sleep=self._sleep
        )
