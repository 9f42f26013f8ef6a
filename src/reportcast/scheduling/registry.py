"""Job registry: the read-only list of configured jobs.

Built once at startup from the [[jobs]] entries in the config file and
never mutated afterwards, so concurrent firings can read it freely.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from reportcast.errors import ConfigurationError
from reportcast.scheduling.types import JobDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RejectedJob:
    """A config entry that failed validation."""

    index: int
    entry: dict[str, Any]
    error: ConfigurationError


class JobRegistry:
    """Immutable, ordered collection of job definitions."""

    def __init__(
        self,
        jobs: Iterable[JobDefinition],
        rejected: Iterable[RejectedJob] = (),
    ):
        self._jobs: tuple[JobDefinition, ...] = tuple(jobs)
        self._rejected: tuple[RejectedJob, ...] = tuple(rejected)

    @classmethod
    def from_entries(cls, entries: Iterable[dict[str, Any]]) -> "JobRegistry":
        """Build a registry from raw config entries.

        Invalid entries are logged and recorded in `rejected`; they never
        prevent the remaining entries from loading.
        """
        jobs: list[JobDefinition] = []
        rejected: list[RejectedJob] = []
        for index, entry in enumerate(entries):
            try:
                jobs.append(JobDefinition.from_dict(entry))
            except ConfigurationError as e:
                logger.error(
                    "job_config_invalid",
                    extra={"job.index": index, "error.message": str(e)},
                )
                rejected.append(RejectedJob(index=index, entry=entry, error=e))
        logger.info(
            "job_registry_loaded",
            extra={"jobs.count": len(jobs), "jobs.rejected": len(rejected)},
        )
        return cls(jobs, rejected)

    @property
    def jobs(self) -> tuple[JobDefinition, ...]:
        return self._jobs

    @property
    def rejected(self) -> tuple[RejectedJob, ...]:
        return self._rejected

    def __iter__(self) -> Iterator[JobDefinition]:
        return iter(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)
