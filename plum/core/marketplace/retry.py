"""Bounded retries with exponential backoff for transient fetch failures."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from plum.core.marketplace.errors import RetryExhaustedError, is_retryable
from plum.utils.log import get_logger

logger = get_logger()

T = TypeVar("T")


def backoff_delay_seconds(attempt: int) -> float:
    """Delay after the zero-based ``attempt``: 1s, 2s, 4s, ..."""
    return float(1 << attempt)


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: Optional[str] = None) -> T:
        """Await ``operation()`` until it succeeds or a permanent error occurs.

        Only network errors, timeouts, 5xx and 429 are retried. Permanent errors
        propagate unchanged from the attempt that raised them.
        """
        attempts = max(1, int(self.max_attempts))

        for attempt in range(attempts):
            try:
                return await operation()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if not is_retryable(exc):
                    raise
                if attempt == attempts - 1:
                    raise RetryExhaustedError(attempts, exc) from exc
                delay = backoff_delay_seconds(attempt)
                logger.debug(
                    "[retry] Transient failure; retrying",
                    extra={
                        "label": label,
                        "attempt": attempt + 1,
                        "max_attempts": attempts,
                        "delay_seconds": delay,
                        "error": str(exc),
                    },
                )
                await self.sleep(delay)

        raise RuntimeError("retry loop exited without a result")


__all__ = ["RetryPolicy", "backoff_delay_seconds"]
