"""Coordinator for executing requests with automatic retries.

Implements exponential backoff with jitter for transient failures: network
errors, rate limits (429) and server errors (5xx). A server-supplied
Retry-After delay replaces the exponential base when present. Every other
failure is returned to the caller untouched on the first occurrence.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from linkpulse.domain.errors import ClassifiedFailure, Result
from linkpulse.domain.events.api_events import RetryScheduled
from linkpulse.infrastructure.monitoring.event_log import dispatch_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 500
DEFAULT_MAX_JITTER_MS = 250

SleepFn = Callable[[float], Awaitable[None]]


class RetryCoordinator:
    """Sole retry authority for every network operation of the SDK.

    Holds configuration only, so one instance can serve any number of
    concurrent callers.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        max_jitter_ms: int = DEFAULT_MAX_JITTER_MS,
        sleep: SleepFn = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        """Initializes the RetryCoordinator.

        Args:
            max_retries: Retries after the first attempt (total tries = max_retries + 1).
            base_delay_ms: Backoff base for the first retry, doubled on each attempt.
            max_jitter_ms: Exclusive upper bound of the random delay added to each wait.
            sleep: Awaitable sleep taking seconds; injectable for tests.
            rng: Random source for jitter; injectable for tests.
        """
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_jitter_ms = max_jitter_ms
        self._sleep = sleep
        self._rng = rng or random.Random()

        logger.debug(
            f"RetryCoordinator initialized: max_retries={max_retries}, "
            f"base_delay={base_delay_ms}ms, max_jitter={max_jitter_ms}ms"
        )

    def compute_delay_ms(self, failure: ClassifiedFailure, attempt: int) -> int:
        """Delay before the retry following ``attempt`` (0-based), jitter included."""
        if failure.retry_after_ms is not None and failure.retry_after_ms > 0:
            backoff_ms = failure.retry_after_ms
        else:
            backoff_ms = self.base_delay_ms * (2 ** attempt)
        jitter_ms = self._rng.randrange(self.max_jitter_ms) if self.max_jitter_ms > 0 else 0
        return backoff_ms + jitter_ms

    async def with_retry(
        self,
        attempt_fn: Callable[[], Awaitable[Result[T]]],
        operation: str = "request",
    ) -> Result[T]:
        """Runs ``attempt_fn`` until it succeeds, fails terminally or runs out of attempts.

        Args:
            attempt_fn: Zero-argument coroutine factory performing one attempt.
            operation: Label used in logs and events.

        Returns:
            The first successful result, or the last failure with its status
            code and retry-after metadata preserved.
        """
        result: Result[T] = Result.fail(ClassifiedFailure.network(f"{operation} was never attempted"))

        for attempt in range(self.max_retries + 1):
            result = await attempt_fn()
            if result.is_ok:
                if attempt > 0:
                    logger.debug(f"{operation} succeeded on attempt {attempt + 1}")
                return result

            failure = result.failure
            if not failure.is_retryable:
                logger.debug(f"Non-retryable failure for {operation}: {failure}")
                return result

            if attempt == self.max_retries:
                logger.warning(f"Max retries ({self.max_retries}) reached for {operation}. Last error: {failure}")
                return result

            delay_ms = self.compute_delay_ms(failure, attempt)
            logger.debug(
                f"Retry {attempt + 1}/{self.max_retries} for {operation} after {delay_ms}ms "
                f"({failure.kind.value}, status={failure.status_code})"
            )
            dispatch_event(RetryScheduled(
                operation=operation,
                attempt_number=attempt + 1,
                delay_ms=delay_ms,
                status_code=failure.status_code,
            ))
            await self._sleep(delay_ms / 1000)

        return result
