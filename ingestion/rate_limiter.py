"""
Async token bucket shared by every request to one upstream
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class TokenBucketLimiter:
    """
    Token bucket with ``capacity`` tokens refilled continuously at
    ``refill_per_hour``.

    ``acquire()`` callers are served one at a time, so concurrent callers
    wait in order instead of racing for refilled tokens.
    """

    def __init__(
        self,
        capacity: int = 100,
        refill_per_hour: int = 1000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if capacity <= 0 or refill_per_hour <= 0:
            raise ValueError("capacity and refill_per_hour must be positive")
        self.capacity = capacity
        self.refill_rate = refill_per_hour / 3600.0  # tokens per second
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._updated
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_rate)
        self._updated = now

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    async def acquire(self, timeout: Optional[float] = None) -> None:
        """
        Take one token, waiting for a refill if the bucket is empty.

        Raises:
            RateLimitError: If the wait would exceed ``timeout`` seconds
        """
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                wait = (1 - self._tokens) / self.refill_rate
                if timeout is not None and wait > timeout:
                    raise RateLimitError(
                        "Local request budget exhausted",
                        context={"wait_seconds": round(wait, 2), "timeout": timeout},
                        retry_after=wait
                    )
                logger.debug(f"Rate limit budget empty, waiting {wait:.2f}s")
                await self._sleep(wait)
                self._refill()
                # Clock may not have advanced in full under a patched sleep
                self._tokens = max(self._tokens, 1.0)
            self._tokens -= 1
