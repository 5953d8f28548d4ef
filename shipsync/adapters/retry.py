# shipsync/adapters/retry.py
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from shipsync.limits import Clock, MonotonicClock
from shipsync.metrics import UPSTREAM_RATE_LIMITED
from shipsync.services.errors import PermanentError, RateLimitedError

logger = logging.getLogger("shipsync.adapters")

T = TypeVar("T")


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 2.0,
    clock: Optional[Clock] = None,
    service: str = "upstream",
) -> T:
    """
    Retry `fn` on RateLimitedError only.

    - delay = base_delay * 2**attempt (2s, 4s, ... with the defaults);
    - the last attempt does not sleep: it raises PermanentError chained from the 429;
    - every other exception propagates untouched on the first occurrence.
    """
    clock = clock or MonotonicClock()
    attempts = max(1, int(attempts))

    for attempt in range(attempts):
        try:
            return await fn()
        except RateLimitedError as exc:
            UPSTREAM_RATE_LIMITED.labels(service).inc()
            if attempt >= attempts - 1:
                raise PermanentError(
                    f"{service}: still rate limited after {attempts} attempts: {exc}",
                    status_code=429,
                ) from exc
            delay = base_delay * (2**attempt)
            logger.warning(
                "%s rate limited, waiting %.1fs before retry (%d/%d)",
                service,
                delay,
                attempt + 1,
                attempts - 1,
            )
            await clock.sleep(delay)

    # attempts >= 1 guarantees the loop returned or raised
    raise AssertionError("unreachable")
