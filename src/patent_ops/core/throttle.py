"""Client-side fair-use throttling for OPS requests."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger("RequestThrottle")

WINDOW_SECONDS = 60.0


class RequestThrottle:
    """
    Apply simple minute-window throttling before each OPS request.

    Counts requests in the current one-minute window and, once the configured
    limit is reached, waits out the rest of the window. A limit of 0 disables
    throttling.
    """

    def __init__(
        self,
        max_requests_per_minute: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_requests_per_minute = max_requests_per_minute
        self._clock = clock
        self._sleep = sleep
        self._requests_made = 0
        self._window_start = clock()
        self._lock = asyncio.Lock()

    @property
    def requests_in_window(self) -> int:
        return self._requests_made

    async def acquire(self) -> None:
        if self.max_requests_per_minute <= 0:
            return

        async with self._lock:
            now = self._clock()
            if now - self._window_start > WINDOW_SECONDS:
                self._requests_made = 0
                self._window_start = now

            if self._requests_made >= self.max_requests_per_minute:
                sleep_time = WINDOW_SECONDS - (now - self._window_start)
                if sleep_time > 0:
                    logger.info("EPO rate window reached. Sleeping for %.1fs", sleep_time)
                    await self._sleep(sleep_time)
                self._requests_made = 0
                self._window_start = self._clock()

            self._requests_made += 1
