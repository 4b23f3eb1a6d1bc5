"""
Admission limiter for asyncio operations.

Keeps a sliding window of recent admission timestamps (same idea as a
per-IP request log): an operation is admitted only while fewer than
`rate_per_second` admissions happened in the last RATE_WINDOW seconds.
Admissions are FIFO; once admitted an operation runs for as long as it
needs, concurrently with everything else that was admitted.

Usage:
    limiter = RateLimiter(20)
    task = limiter.submit(lambda: fetch(session, url))
    status = await task
"""

import asyncio
import logging
import math
import time
from collections import deque

from settings import RATE_WINDOW
from validation import ConfigurationError

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(self, rate_per_second=None):
        self.rate_per_second = None
        self.admitted = 0
        self._capacity = None
        self._window = RATE_WINDOW
        self._admissions = deque()
        self._lock = None
        if rate_per_second is not None:
            self.configure(rate_per_second)

    def configure(self, rate_per_second):
        """
        Set the admission rate and reset the window.

        Fractional rates round down: 1.5/s admits 1 per second. Rates below
        1/s admit one operation per 1/rate seconds.
        """
        if (isinstance(rate_per_second, bool)
                or not isinstance(rate_per_second, (int, float))
                or not math.isfinite(rate_per_second)
                or rate_per_second <= 0):
            raise ConfigurationError(f"Invalid rate {rate_per_second!r}. Rate must be a positive number.")
        self.rate_per_second = rate_per_second
        if rate_per_second >= 1:
            self._capacity = math.floor(rate_per_second)
            self._window = RATE_WINDOW
        else:
            self._capacity = 1
            self._window = RATE_WINDOW / rate_per_second
        self._admissions = deque()
        self._lock = asyncio.Lock()
        self.admitted = 0
        logger.debug("Rate limiter configured: %s admissions per %.3fs", self._capacity, self._window)

    def submit(self, operation):
        """
        Queue `operation` (a zero-argument callable returning an awaitable).

        Returns an asyncio.Task that resolves with whatever the operation
        returns or raises. Must be called from inside a running event loop.
        """
        if self._capacity is None:
            raise ConfigurationError("Rate limiter is not configured. Call configure() first.")
        return asyncio.get_running_loop().create_task(self._run(operation))

    async def _run(self, operation):
        await self._admit()
        return await operation()

    async def _admit(self):
        # asyncio.Lock wakes waiters in arrival order, which keeps admission FIFO
        async with self._lock:
            while True:
                now = time.monotonic()
                # prune admissions that left the window
                while self._admissions and (now - self._admissions[0]) >= self._window:
                    self._admissions.popleft()
                if len(self._admissions) < self._capacity:
                    self._admissions.append(now)
                    self.admitted += 1
                    logger.debug("Admitted operation #%d", self.admitted)
                    return
                await asyncio.sleep(self._window - (now - self._admissions[0]))
