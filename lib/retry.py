# =============================================================================
# lib/retry.py - Retry With Backoff
# =============================================================================
# One reusable retry loop for the model channel. Callers choose:
# - max_attempts: total attempts including the first one
# - delay: a strategy mapping the retry number to seconds to wait
# - is_acceptable: a predicate deciding whether a result ends the loop
#
# Exceptions raised by the operation are NOT retried here; they propagate to
# the caller, which decides how to type them.
#
# Usage:
#   outcome = await retry_async(
#       lambda: client.generate(...),
#       max_attempts=3,
#       delay=exponential_delay(1.0),
#       is_acceptable=lambda r: bool(r and r.text),
#   )
#   if outcome.accepted: ...
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Maps the retry number (1 for the first retry) to a delay in seconds
DelayStrategy = Callable[[int], float]


@dataclass
class RetryOutcome(Generic[T]):
    """Result of a retry loop: the last value seen and how many attempts it took."""

    value: T | None
    attempts: int
    accepted: bool

    @property
    def retries(self) -> int:
        """Number of attempts after the first one."""
        return max(self.attempts - 1, 0)


def fixed_delay(seconds: float) -> DelayStrategy:
    """Same delay before every retry."""
    return lambda retry_number: seconds


def exponential_delay(
    base: float,
    factor: float = 2.0,
    max_delay: float | None = None,
) -> DelayStrategy:
    """
    Delay that grows by `factor` each retry: base, base*factor, base*factor^2...

    Example:
        exponential_delay(1.0)  # 1s, 2s, 4s, ...
    """
    def strategy(retry_number: int) -> float:
        delay = base * (factor ** (retry_number - 1))
        if max_delay is not None:
            delay = min(delay, max_delay)
        return delay

    return strategy


def _is_not_none(value: object) -> bool:
    return value is not None


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    delay: DelayStrategy,
    is_acceptable: Callable[[T | None], bool] = _is_not_none,
    label: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> RetryOutcome[T]:
    """
    Run `operation` until its result is acceptable or attempts run out.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total attempts (>= 1)
        delay: Strategy giving the wait before each retry
        is_acceptable: Predicate on the result; default accepts anything not None
        label: Name used in log lines
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        RetryOutcome with the last value, the attempt count and whether it was accepted
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    value: T | None = None
    for attempt in range(1, max_attempts + 1):
        value = await operation()
        if is_acceptable(value):
            if attempt > 1:
                logger.info(f"{label} succeeded on attempt {attempt}/{max_attempts}")
            return RetryOutcome(value=value, attempts=attempt, accepted=True)

        if attempt < max_attempts:
            wait = delay(attempt)
            logger.warning(
                f"{label} returned an unusable result (attempt {attempt}/{max_attempts}), "
                f"retrying in {wait:.1f}s"
            )
            await sleep(wait)

    logger.error(f"{label} still unusable after {max_attempts} attempts")
    return RetryOutcome(value=value, attempts=max_attempts, accepted=False)
