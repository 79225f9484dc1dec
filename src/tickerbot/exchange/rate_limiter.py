"""Minimum-interval rate limiter for outbound exchange requests.

One limiter instance is shared by every caller of a client (command
handlers and the alert task alike). Callers that arrive before the interval
has elapsed are suspended with asyncio.sleep, so unrelated coroutines keep
running while they wait.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

from tickerbot.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Enforces a minimum spacing between request starts.

    The last request time is recorded when a slot is granted, i.e. right
    before the request is issued, so a request that later fails still
    consumes its window.

    Args:
        min_interval: Minimum seconds between two granted slots.
        clock: Monotonic time source (injectable for tests).
        sleep: Coroutine used to wait (injectable for tests).
    """

    def __init__(
        self,
        min_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: float | None = None
        self._lock = asyncio.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @property
    def last_request(self) -> float | None:
        """Clock value of the last granted slot, or None before the first."""
        return self._last_request

    async def acquire(self) -> float:
        """Wait until a request may start, then claim the slot.

        Concurrent callers are served one at a time in arrival order.

        Returns:
            Seconds this caller was suspended (0.0 if no wait was needed).
        """
        async with self._lock:
            waited = 0.0
            if self._last_request is not None:
                elapsed = self._clock() - self._last_request
                if elapsed < self._min_interval:
                    waited = self._min_interval - elapsed
                    logger.debug("rate_limit_wait", wait_seconds=round(waited, 3))
                    await self._sleep(waited)
            self._last_request = self._clock()
            return waited
