"""Minimum-interval Rate Limiter: spaces out dispatch starts.

Holds the instant of the last dispatch and suspends the caller until the
configured minimum interval has elapsed since then. Charged once per inbound
call, never per endpoint attempt: it protects the aggregate call rate to the
upstream provider.

Thread-safe via asyncio.Lock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class MinIntervalRateLimiter:
    """Enforces a minimum spacing between dispatch starts.

    Usage:
        limiter = MinIntervalRateLimiter(min_interval=0.5)

        # Once per inbound call, after the concurrency gate is held:
        waited = await limiter.wait_turn()
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        """
        Args:
            min_interval: Minimum seconds between successive dispatch starts
            clock: Monotonic clock returning seconds
            sleep: Coroutine used to suspend the caller
        """
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_dispatch: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_dispatch(self) -> float | None:
        return self._last_dispatch

    async def wait_turn(self) -> float:
        """Wait until the minimum interval has passed, then record now.

        The new timestamp is recorded unconditionally, whether or not the
        attempt that follows succeeds.

        Returns:
            Seconds spent waiting (0.0 if no wait was needed).
        """
        async with self._lock:
            waited = 0.0
            if self._last_dispatch is not None:
                elapsed = self._clock() - self._last_dispatch
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    logger.info("Rate limit: waiting %dms", int(waited * 1000))
                    await self._sleep(waited)
            self._last_dispatch = self._clock()
            return waited

    def get_stats(self) -> dict:
        """Get current rate limiter state."""
        since_last = None
        if self._last_dispatch is not None:
            since_last = round(self._clock() - self._last_dispatch, 3)
        return {
            "min_interval_seconds": self.min_interval,
            "seconds_since_last_dispatch": since_last,
        }
