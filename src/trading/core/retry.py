"""Bounded retry returning a tagged outcome instead of raising."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    """
    Result of call_with_retry.

    Exactly one of value/error is meaningful: `succeeded` tells which.
    `exhausted` is True when the last error was transient, i.e. the
    operation failed only because it ran out of attempts.
    """

    value: Optional[T] = None
    error: Optional[Exception] = None
    attempts: int = 0
    exhausted: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None


def call_with_retry(
    operation: Callable[[], T],
    max_attempts: int,
    delay_seconds: float,
    is_transient: Callable[[BaseException], bool],
    sleep: Callable[[float], None] = time.sleep,
) -> RetryOutcome[T]:
    """
    Run operation up to max_attempts times.

    Transient errors (per is_transient) are retried after a fixed delay;
    any other error stops immediately. Never raises for errors raised by
    operation itself.
    """
    attempts = 0

    def _attempt() -> T:
        nonlocal attempts
        attempts += 1
        return operation()

    retryer = Retrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_fixed(delay_seconds),
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )

    try:
        value = retryer(_attempt)
    except Exception as exc:
        return RetryOutcome(error=exc, attempts=attempts, exhausted=is_transient(exc))

    return RetryOutcome(value=value, attempts=attempts)
