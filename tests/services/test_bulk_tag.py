import pytest

pytestmark = pytest.mark.grp_scan

from shipsync.limits import FixedIntervalLimiter
from shipsync.services.errors import PermanentError, TagAlreadyAppliedError
from shipsync.services.order_scan_service import ReconciliationScanner, is_already_applied
from tests.helpers.fakes import FakeClock, FakeOrderSource, FakeStorefront, FakeTagService


def make(failures=None):
    clock = FakeClock()
    ts = FakeTagService({"ORDER CHANGE": 77}, failures=failures)
    sc = ReconciliationScanner(
        FakeOrderSource(),
        FakeStorefront(),
        ts,
        storefront_limiter=FixedIntervalLimiter(0.55, clock),
        tag_limiter=FixedIntervalLimiter(0.15, clock),
    )
    return sc, ts, clock


@pytest.mark.asyncio
async def test_already_tagged_counts_as_skipped():
    sc, ts, clock = make({2: PermanentError("Order already has this tag")})

    res = await sc.bulk_tag([1, 2, 3], 77)

    assert res.success == 2
    assert res.skipped == 1
    assert res.failed == 0
    assert res.errors == []
    assert res.tag_id == 77
    assert ts.added == [(1, 77), (3, 77)]
    assert clock.sleeps == [0.15, 0.15]


@pytest.mark.asyncio
async def test_failures_recorded_in_caller_order():
    sc, ts, _clock = make(
        {
            5: PermanentError("shipstation: 500 server error", status_code=500),
            3: TagAlreadyAppliedError("duplicate"),
            9: RuntimeError("socket closed"),
        }
    )

    res = await sc.bulk_tag([9, 3, 4, 5], 77)

    assert (res.success, res.skipped, res.failed) == (1, 1, 2)
    assert res.errors == [
        {"order_id": 9, "error": "socket closed"},
        {"order_id": 5, "error": "shipstation: 500 server error"},
    ]
    assert ts.added == [(4, 77)]


@pytest.mark.asyncio
async def test_tag_order_raises_on_failure():
    sc, ts, _ = make({8: PermanentError("boom")})
    await sc.tag_order(7, 77)
    assert ts.added == [(7, 77)]
    with pytest.raises(PermanentError):
        await sc.tag_order(8, 77)


@pytest.mark.asyncio
async def test_resolve_tag_id_defaults_to_reconciliation_tag():
    sc, ts, _ = make()
    assert await sc.resolve_tag_id() == 77
    assert await sc.resolve_tag_id("NOPE") is None
    assert ts.lookups == ["ORDER CHANGE", "NOPE"]


@pytest.mark.parametrize(
    "exc,expected",
    [
        (TagAlreadyAppliedError("dup"), True),
        (PermanentError("Tag ALREADY applied"), True),
        (PermanentError("not found"), False),
    ],
)
def test_is_already_applied(exc, expected):
    assert is_already_applied(exc) is expected
