"""Bounded async retry with a pluggable backoff.

Shared by the embedding and upsert clients. A policy describes how many
attempts to make and how long to sleep between them; the caller decides which
exceptions are retryable and which ``RetryExhausted`` subclass to raise once
the budget is spent.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

import structlog

from talkrag.errors import RetryExhausted

logger = structlog.get_logger()

T = TypeVar("T")


def linear_backoff(step_seconds: float) -> Callable[[int], float]:
    """Backoff that waits ``attempt * step_seconds`` after a failed attempt."""

    def backoff(attempt: int) -> float:
        return attempt * step_seconds

    return backoff


@dataclass(frozen=True)
class RetryPolicy:
    """How often to retry and how long to wait in between.

    Attributes:
        max_attempts: Total number of attempts, including the first one
        backoff: Maps the 1-based number of the failed attempt to a delay
        sleep: Awaitable sleep function (replaced in tests)
    """

    max_attempts: int = 5
    backoff: Callable[[int], float] = field(default_factory=lambda: linear_backoff(1.0))
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    retry_on: Tuple[Type[BaseException], ...],
    failure: Type[RetryExhausted],
    event: str,
    **log_context,
) -> T:
    """Run ``operation`` until it succeeds or the policy is exhausted.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Attempt budget and backoff
        retry_on: Exception types that trigger another attempt
        failure: Error raised after the last failed attempt
        event: Log event prefix, e.g. ``"embedding"``
        **log_context: Extra fields attached to every log line

    Returns:
        The result of the first successful attempt

    Raises:
        failure: When every attempt raised one of ``retry_on``
    """
    last_error: Optional[BaseException] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            last_error = e
            is_last = attempt == policy.max_attempts
            delay = 0.0 if is_last else policy.backoff(attempt)

            logger.warning(
                f"{event}_attempt_failed",
                attempt=attempt,
                max_attempts=policy.max_attempts,
                retry_in=None if is_last else delay,
                error=str(e),
                error_type=type(e).__name__,
                **log_context,
            )

            if not is_last:
                await policy.sleep(delay)

    logger.error(
        f"{event}_retries_exhausted",
        attempts=policy.max_attempts,
        error=str(last_error),
        **log_context,
    )
    raise failure(
        f"{event} failed after {policy.max_attempts} attempts: {last_error}",
        attempts=policy.max_attempts,
        cause=last_error,
    ) from last_error
