"""Per-credential request pacing.

One limiter is shared by every client that uses the same token, so
sequential syncs across repositories draw from one budget.
"""

from __future__ import annotations

import asyncio
import time


class RequestLimiter:
    """Spaces requests at least *min_interval* seconds apart."""

    def __init__(self, min_interval: float = 0.0) -> None:
        self.min_interval = min_interval
        self._lock = asyncio.Lock()
        self._last = 0.0
        self.acquired = 0

    async def acquire(self) -> None:
        async with self._lock:
            wait = self._last + self.min_interval - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last = time.monotonic()
            self.acquired += 1


class UnlimitedLimiter(RequestLimiter):
    """Never waits; counts acquisitions only."""

    def __init__(self) -> None:
        super().__init__(0.0)

    async def acquire(self) -> None:
        self.acquired += 1
