"""
Rate limiter for outbound scraping and analysis calls.

Enforces a minimum interval between the *start* of consecutive calls. The
clock and sleep functions are injectable so tests can run without real
wall-clock waits.
"""
import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Spaces out calls against one external endpoint.

    Usage:
        limiter = RateLimiter(min_interval=2.0)
        for url in urls:
            await limiter.acquire()
            await fetch(url)

    The first acquire() returns immediately; every later one waits until
    min_interval (+ optional jitter) has passed since the previous start.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        jitter: float = 0.0,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0 or jitter < 0:
            raise ValueError("min_interval and jitter must be >= 0")
        self.min_interval = min_interval
        self.jitter = jitter
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._last_start: Optional[float] = None
        self._calls = 0
        self._waited = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the next call is allowed to start."""
        async with self._lock:
            now = self._clock()
            if self._last_start is not None:
                interval = self.min_interval
                if self.jitter:
                    interval += random.uniform(0, self.jitter)
                wait_time = self._last_start + interval - now
                if wait_time > 0:
                    logger.debug(f"Rate limited on {self.name}, waiting {wait_time:.2f}s")
                    await self._sleep(wait_time)
                    self._waited += wait_time
                    now = self._clock()
            self._last_start = now
            self._calls += 1

    def get_usage(self) -> Dict[str, float]:
        """Return usage stats for this limiter."""
        return {
            "calls": self._calls,
            "waited_seconds": round(self._waited, 3),
            "min_interval": self.min_interval,
        }
