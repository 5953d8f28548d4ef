# shipsync/services/errors.py
from __future__ import annotations

from typing import Optional


class ShipsyncError(Exception):
    pass


class ConfigError(ShipsyncError):
    """Missing / unusable credentials or settings."""


class NotFoundError(ShipsyncError):
    """Counterpart order, order or tag does not exist upstream."""


class RateLimitedError(ShipsyncError):
    """HTTP 429 from an upstream API; retryable."""

    def __init__(self, message: str, *, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class PermanentError(ShipsyncError):
    """Non-429 upstream failure, or rate limiting that outlived the retries."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TagAlreadyAppliedError(PermanentError):
    pass


class JobAlreadyRunning(ShipsyncError):
    pass
