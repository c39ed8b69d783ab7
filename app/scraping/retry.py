"""
Bounded retry policy and timeout helpers shared by browser operations.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.scraping.errors import NetworkTimeout
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Explicit retry budget: max attempts plus exponential backoff.

    Only exceptions listed in `retry_on` are retried; anything else
    propagates on the first failure.
    """

    max_attempts: int = 1
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    retry_on: tuple[type[BaseException], ...] = (NetworkTimeout,)

    def backoff_seconds(self, attempt: int) -> float:
        """Delay to sleep after the given 1-based failed attempt."""

        return self.backoff_initial_seconds * (self.backoff_multiplier ** (attempt - 1))

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str) -> T:
        attempts = max(1, self.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except self.retry_on as exc:
                if attempt >= attempts:
                    raise
                delay = self.backoff_seconds(attempt)
                log_event(
                    logger,
                    logging.WARNING,
                    "operation_retry",
                    operation=label,
                    attempt=attempt,
                    max_attempts=attempts,
                    backoff_seconds=delay,
                    error=str(exc),
                )
                await asyncio.sleep(delay)
        raise RuntimeError(f"Retry loop for {label} exited without a result.")


NO_RETRY = RetryPolicy(max_attempts=1)


async def with_timeout(awaitable: Awaitable[T], *, seconds: float, label: str) -> T:
    """
    Await with a hard upper bound, mapping timeouts to NetworkTimeout.
    """

    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except (asyncio.TimeoutError, PlaywrightTimeoutError) as exc:
        raise NetworkTimeout(
            f"{label} exceeded {seconds:.1f}s",
            detail=str(exc) or None,
        ) from exc
