"""Bounded exponential-backoff retry for outbound deliveries."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from reportcast.config.models import SchedulerConfig
from reportcast.errors import DeliveryFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff base for one delivery sequence."""

    max_retries: int = 3
    base_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    @classmethod
    def from_settings(cls, settings: SchedulerConfig) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            base_delay_seconds=settings.retry_base_delay_seconds,
        )


def backoff_delay(attempt: int, policy: RetryPolicy) -> float:
    """Seconds to wait before retrying after failed attempt `attempt` (0-indexed)."""
    return policy.base_delay_seconds * (2**attempt)


async def deliver_with_retry(
    action: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    operation_name: str = "delivery",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run an async action, retrying failures with exponential backoff.

    The action is invoked at most `max_retries + 1` times, always with the
    same arguments. Intermediate failures are logged as warnings.

    Args:
        action: Async callable performing one attempt.
        policy: Attempt budget and backoff base.
        operation_name: Name for logging.
        sleep: Awaitable used for backoff waits.

    Returns:
        Result of the first successful attempt.

    Raises:
        DeliveryFailed: If every attempt failed, chained from the last error.
    """
    attempt_count = 0
    while True:
        try:
            return await action()
        except Exception as e:
            last_error = e

        if attempt_count >= policy.max_retries:
            logger.error(
                "retry_exhausted",
                extra={
                    "operation": operation_name,
                    "attempts": attempt_count + 1,
                    "error.message": str(last_error),
                    "error.type": type(last_error).__name__,
                },
            )
            raise DeliveryFailed(last_error, attempts=attempt_count + 1) from last_error

        delay_s = backoff_delay(attempt_count, policy)
        logger.warning(
            "retry_attempt",
            extra={
                "operation": operation_name,
                "retry.attempt": attempt_count + 1,
                "retry.max_attempts": policy.max_retries + 1,
                "retry.delay_s": delay_s,
                "error.message": str(last_error),
                "error.type": type(last_error).__name__,
            },
        )
        await sleep(delay_s)
        attempt_count += 1
