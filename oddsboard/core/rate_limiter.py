# core/rate_limiter.py
import asyncio
import time
from typing import Awaitable, Callable, Optional

from .logger import get_logger, log_event

BOARD_MIN_INTERVAL = 2.0    # seconds between board-level requests
DETAIL_MIN_INTERVAL = 1.5   # seconds between match-detail requests

logger = get_logger("oddsboard.rate_limiter")


class RateLimiter:
    """
    Minimum-spacing gate for outbound requests.

    acquire() suspends until `min_interval` seconds have passed since the previous
    grant, then records the new grant time. Waiters are served one at a time in
    arrival order.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: str = "upstream",
    ):
        self.min_interval = max(0.0, float(min_interval))
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._lock: Optional[asyncio.Lock] = None
        self.last_acquired: Optional[float] = None
        self.waits = 0

    def _get_lock(self) -> asyncio.Lock:
        # created lazily so the limiter can be built outside a running loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def acquire(self) -> float:
        """Returns the number of seconds the caller was held back."""
        async with self._get_lock():
            waited = 0.0
            if self.last_acquired is not None:
                wait = self.min_interval - (self._clock() - self.last_acquired)
                if wait > 0:
                    self.waits += 1
                    log_event(logger, "rate_limit_wait", level="debug", limiter=self.name, wait_ms=int(wait * 1000))
                    await self._sleep(wait)
                    waited = wait
            self.last_acquired = self._clock()
            return waited

    def reset(self) -> None:
        self.last_acquired = None
