"""
Retry with exponential backoff for transient failures.

The retry loop is a plain coroutine parameterized by a :class:`RetryPolicy`
(attempt count, delay curve, retryability predicate) plus injectable
``sleep`` and ``random_fn`` callables, so tests can drive it with a fake
clock instead of real delays.

Typical usage::

    from depscout.utils.retry import STANDARD, retry_with_backoff

    response = await retry_with_backoff(
        lambda: client.get(url),
        STANDARD,
        on_retry=lambda exc, attempt, delay: logger.debug("retry %d", attempt),
    )
"""

from __future__ import annotations

import random
import asyncio
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from depscout.utils.logger import get_logger
from depscout.exceptions import RequestTimeoutError
from depscout.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY,
    JITTER_RATIO,
    RETRYABLE_STATUS_CODES,
)

logger = get_logger("retry")

T = TypeVar("T")

RetryPredicate = Callable[[BaseException, int], bool]
RetryCallback = Callable[[BaseException, int, float], None]
SleepFunc = Callable[[float], Awaitable[Any]]


def is_retryable_error(error: Optional[BaseException], attempt: int = 0) -> bool:
    """Decide whether ``error`` is transient enough to retry.

    - Timeouts are never retried; they fail fast to the caller.
    - Transport-level failures (connection refused, reset, DNS) are retried.
    - Errors carrying an HTTP status in 408/429/500/502/503/504 are retried,
      whether the status lives on the error or on an attached response.
    - Anything else is treated as permanent.

    Args:
        error: The exception raised by the attempt.
        attempt: 1-based attempt number (unused by the default rule).
    """
    if error is None:
        return False

    if isinstance(
        error, (RequestTimeoutError, httpx.TimeoutException, asyncio.TimeoutError)
    ):
        return False

    if isinstance(error, httpx.TransportError):
        return True

    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)

    if isinstance(status, int):
        return status in RETRYABLE_STATUS_CODES

    return False


def _is_transport_error(error: BaseException, attempt: int = 0) -> bool:
    return isinstance(error, httpx.TransportError) and not isinstance(
        error, httpx.TimeoutException
    )


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration.

    Attributes:
        max_attempts: Total attempts including the first call.
        initial_delay: Delay before the first retry, in seconds.
        max_delay: Upper bound for the exponential delay, in seconds.
        backoff_factor: Multiplier applied per attempt.
        use_jitter: Add 0-25% random jitter on top of each delay.
        should_retry: Predicate ``(error, attempt) -> bool``.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    initial_delay: float = DEFAULT_INITIAL_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    use_jitter: bool = True
    should_retry: RetryPredicate = is_retryable_error

    def with_overrides(self, **changes: Any) -> "RetryPolicy":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)


#: 2 attempts, 1s initial delay.
CONSERVATIVE = RetryPolicy(max_attempts=2, initial_delay=1.0, max_delay=5.0)

#: 3 attempts, 1s initial delay.
STANDARD = RetryPolicy()

#: 5 attempts, 0.5s initial delay.
AGGRESSIVE = RetryPolicy(max_attempts=5, initial_delay=0.5, max_delay=15.0)

#: Only retry transport failures, never HTTP statuses.
NETWORK_ONLY = RetryPolicy(should_retry=_is_transport_error)


def compute_delay(
    attempt: int,
    policy: RetryPolicy,
    random_fn: Callable[[], float] = random.random,
) -> float:
    """Delay to wait after failed ``attempt`` (1-based), in seconds.

    ``initial_delay * backoff_factor ** (attempt - 1)``, capped at
    ``max_delay``, plus up to 25% jitter when enabled.
    """
    delay = policy.initial_delay * (policy.backoff_factor ** (attempt - 1))
    delay = min(delay, policy.max_delay)

    if policy.use_jitter:
        delay += random_fn() * delay * JITTER_RATIO

    return delay


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy = STANDARD,
    *,
    on_retry: Optional[RetryCallback] = None,
    sleep: SleepFunc = asyncio.sleep,
    random_fn: Callable[[], float] = random.random,
) -> T:
    """Await ``fn()`` until it succeeds or the policy gives up.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt.
        policy: Attempt count, delay curve and retry predicate.
        on_retry: Invoked as ``(error, attempt, delay)`` before each wait.
        sleep: Awaitable sleep used between attempts.
        random_fn: Source of jitter in ``[0, 1)``.

    Returns:
        The first successful result of ``fn()``.

    Raises:
        Exception: The last error, unchanged, once attempts are exhausted
            or the predicate declines to retry.
    """
    attempt = 1
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt >= policy.max_attempts or not policy.should_retry(exc, attempt):
                raise

            delay = compute_delay(attempt, policy, random_fn)
            logger.debug(
                "Attempt %d/%d failed (%s); retrying in %.2fs",
                attempt,
                policy.max_attempts,
                exc,
                delay,
            )
            if on_retry is not None:
                on_retry(exc, attempt, delay)

            await sleep(delay)
            attempt += 1
