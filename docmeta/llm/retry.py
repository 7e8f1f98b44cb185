"""Retry policy and combinator for upstream calls."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from ..http import is_transient
from ..logging import get_logger

T = TypeVar("T")

logger = get_logger("llm.retry")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry, how long to wait, and which failures qualify.

    `max_retries` counts retries after the first attempt, so the call runs at most
    `max_retries + 1` times. Delays grow as `base_delay * multiplier ** n`.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    is_transient: Callable[[BaseException], bool] = field(default=is_transient)

    def delay_for(self, retry_number: int) -> float:
        """Return the wait before retry `retry_number` (1-based)."""
        return self.base_delay * (self.multiplier ** (retry_number - 1))


def retry_call(
    func: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    description: str = "call",
) -> T:
    """Invoke `func`, retrying transient failures according to `policy`."""
    retries = 0
    while True:
        try:
            return func()
        except Exception as exc:
            if not policy.is_transient(exc):
                raise
            if retries >= policy.max_retries:
                logger.warning("Giving up on %s after %d retries: %s", description, retries, exc)
                raise
            retries += 1
            delay = policy.delay_for(retries)
            logger.info(
                "Retry %d/%d for %s in %.1fs: %s",
                retries,
                policy.max_retries,
                description,
                delay,
                exc,
            )
            if on_retry is not None:
                on_retry(retries, exc)
            sleep(delay)


__all__ = ["RetryPolicy", "retry_call"]
