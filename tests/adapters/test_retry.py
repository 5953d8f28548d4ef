import pytest

pytestmark = pytest.mark.grp_adapters

from shipsync.adapters.retry import retry_with_backoff
from shipsync.services.errors import NotFoundError, PermanentError, RateLimitedError
from tests.helpers.fakes import FakeClock


class Flaky:
    def __init__(self, failures: int, exc=None):
        self.failures = failures
        self.calls = 0
        self.exc = exc or RateLimitedError("429: slow down")

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return "ok"


@pytest.mark.asyncio
async def test_recovers_after_rate_limit():
    clock = FakeClock()
    fn = Flaky(2)
    assert await retry_with_backoff(fn, attempts=3, base_delay=2.0, clock=clock) == "ok"
    assert fn.calls == 3
    assert clock.sleeps == [2.0, 4.0]


@pytest.mark.asyncio
async def test_exhausted_retries_become_permanent():
    clock = FakeClock()
    fn = Flaky(5)
    with pytest.raises(PermanentError) as ei:
        await retry_with_backoff(fn, attempts=3, base_delay=2.0, clock=clock, service="shopify")
    assert fn.calls == 3
    assert clock.sleeps == [2.0, 4.0]
    assert ei.value.status_code == 429
    assert isinstance(ei.value.__cause__, RateLimitedError)
    assert "shopify" in str(ei.value)


@pytest.mark.asyncio
async def test_other_errors_propagate_immediately():
    clock = FakeClock()
    fn = Flaky(1, exc=NotFoundError("gone"))
    with pytest.raises(NotFoundError):
        await retry_with_backoff(fn, attempts=3, clock=clock)
    assert fn.calls == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_single_attempt_never_sleeps():
    clock = FakeClock()
    with pytest.raises(PermanentError):
        await retry_with_backoff(Flaky(1), attempts=1, clock=clock)
    assert clock.sleeps == []
