# shipsync/limits.py
from __future__ import annotations

import asyncio
import time
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class MonotonicClock:
    """Wall clock: time.monotonic + asyncio.sleep."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)


class RateLimiter(Protocol):
    async def acquire(self) -> None: ...


class FixedIntervalLimiter:
    """
    Minimum spacing between consecutive acquisitions.

    - first acquire() never waits;
    - later calls sleep until `interval` seconds have passed since the previous one.

    Used for "N ms between orders" pacing (Shopify ~2 rps, ShipStation tag writes).
    """

    def __init__(self, interval: float, clock: Optional[Clock] = None) -> None:
        self.interval = max(0.0, float(interval))
        self.clock = clock or MonotonicClock()
        self._last: Optional[float] = None

    async def acquire(self) -> None:
        if self._last is not None:
            gap = self.clock.now() - self._last
            if gap < self.interval:
                await self.clock.sleep(self.interval - gap)
        self._last = self.clock.now()


class TokenBucket:
    """Simple token bucket: capacity tokens, refilled at fill_rate per second."""

    def __init__(self, capacity: int, fill_rate: float, clock: Optional[Clock] = None):
        self.capacity = max(1, int(capacity))
        self.fill_rate = float(fill_rate)
        self.clock = clock or MonotonicClock()
        self.tokens = float(self.capacity)
        self.ts = self.clock.now()

    def _refill(self) -> None:
        now = self.clock.now()
        self.tokens = min(self.capacity, self.tokens + (now - self.ts) * self.fill_rate)
        self.ts = now

    def allow(self, n: int = 1) -> bool:
        self._refill()
        if self.tokens >= n:
            self.tokens -= n
            return True
        return False

    async def acquire(self, n: int = 1) -> None:
        while not self.allow(n):
            if self.fill_rate <= 0:
                raise ValueError("token bucket with fill_rate<=0 can never refill")
            await self.clock.sleep((n - self.tokens) / self.fill_rate)
