import pytest

pytestmark = pytest.mark.grp_scan

from datetime import datetime, timezone

from shipsync.limits import FixedIntervalLimiter
from shipsync.services.errors import PermanentError
from shipsync.services.order_scan_service import ReconciliationScanner, storefront_order_number
from shipsync.services.order_scan_types import ScanFilter
from tests.helpers.fakes import (
    FakeClock,
    FakeOrderSource,
    FakeStorefront,
    FakeTagService,
    shop_item,
    shop_order,
    ss_item,
    ss_order,
)


def make_scanner(orders, shop_orders, *, tags=None, errors=None, clock=None, **kw):
    clock = clock or FakeClock()
    src = FakeOrderSource(orders)
    sf = FakeStorefront(shop_orders, errors)
    ts = FakeTagService(tags if tags is not None else {"ORDER CHANGE": 77})
    sc = ReconciliationScanner(
        src,
        sf,
        ts,
        storefront_limiter=FixedIntervalLimiter(0.55, clock),
        tag_limiter=FixedIntervalLimiter(0.15, clock),
        **kw,
    )
    return sc, src, sf, ts, clock


@pytest.mark.parametrize(
    "raw,expected",
    [("1001", "#1001"), ("#1001", "#1001"), ("EU-7", "EU-7"), (1002, "#1002"), (" 1003 ", "#1003")],
)
def test_storefront_order_number(raw, expected):
    assert storefront_order_number(raw) == expected


def test_storefront_order_number_custom_prefix():
    assert storefront_order_number("55", prefix="SHOP-") == "SHOP-55"
    assert storefront_order_number("55", prefix="") == "55"


@pytest.mark.asyncio
async def test_scan_statuses_in_fetch_order():
    orders = [
        ss_order(1, "1001", [ss_item("A", 2), ss_item("B", 1)], tag_ids=[77]),
        ss_order(2, "1002", [ss_item("A", 1)]),
        ss_order(3, "1003", [ss_item("A", 1)]),
        ss_order(4, "1004", [ss_item("A", 1)]),
    ]
    shop = {
        "#1001": shop_order([shop_item("A", 2), shop_item("C", 1)]),
        "#1002": shop_order([shop_item("A", 1)]),
        "#1004": shop_order([shop_item("A", 1)]),
    }
    sc, _src, sf, ts, clock = make_scanner(
        orders, shop, errors={"#1004": PermanentError("shopify: 500 boom", status_code=500)}
    )

    summary = await sc.scan(ScanFilter(max_orders=10))

    assert [o.order_number for o in summary.outcomes] == ["1001", "1002", "1003", "1004"]
    assert [o.status for o in summary.outcomes] == [
        "has_changes",
        "no_changes",
        "no_counterpart_match",
        "no_counterpart_match",
    ]
    assert summary.counts == {"has_changes": 1, "no_changes": 1, "no_counterpart_match": 2, "error": 0}
    assert summary.total_scanned == 4

    (report,) = summary.reports
    assert report.order_id == 1
    assert report.order_key == "key-1"
    assert report.customer_name == "Customer 1"
    assert [(c.kind, c.sku) for c in report.changes] == [("removed", "C"), ("added", "B")]
    assert report.source_item_count == 2
    assert report.mirror_item_count == 2
    assert report.has_reconciliation_tag is True
    assert summary.tag_id == 77
    assert summary.orders_already_tagged == 1

    # storefront pacing: one acquisition per order, first free
    assert sf.lookups == ["#1001", "#1002", "#1003", "#1004"]
    assert clock.sleeps == [0.55, 0.55, 0.55]
    # a scan never writes tags
    assert ts.added == []


@pytest.mark.asyncio
async def test_unexpected_error_is_contained():
    orders = [
        ss_order(1, "1001", [ss_item("A", 1)]),
        ss_order(2, "1002", [ss_item("A", 1)]),
    ]
    broken = shop_order([shop_item("A", 1)])
    broken["line_items"] = 5  # not iterable
    shop = {"#1001": broken, "#1002": shop_order([shop_item("A", 1)])}
    sc, *_ = make_scanner(orders, shop)

    summary = await sc.scan(ScanFilter())
    first, second = summary.outcomes
    assert first.status == "error"
    assert first.counterpart_found is True
    assert first.error
    assert second.status == "no_changes"


@pytest.mark.asyncio
async def test_fetch_pages_until_short_page():
    orders = [ss_order(i, str(1000 + i), [ss_item("A", 1)]) for i in range(1, 8)]
    sc, src, *_ = make_scanner(orders, {})
    since = datetime(2026, 10, 1, tzinfo=timezone.utc)

    got = await sc.fetch_candidates(ScanFilter(created_since=since, max_orders=50, page_size=3))

    assert len(got) == 7
    assert [c["page"] for c in src.search_calls] == [1, 2, 3]
    call = src.search_calls[0]
    assert call["status"] == "awaiting_shipment"
    assert call["created_since"] == since
    assert call["sort_by"] == "OrderDate"
    assert call["sort_dir"] == "DESC"


@pytest.mark.asyncio
async def test_fetch_respects_max_orders_and_max_pages():
    orders = [ss_order(i, str(1000 + i), []) for i in range(1, 11)]
    sc, src, *_ = make_scanner(orders, {})

    got = await sc.fetch_candidates(ScanFilter(max_orders=4, page_size=3))
    assert [o["orderId"] for o in got] == [1, 2, 3, 4]
    assert len(src.search_calls) == 2

    src.search_calls.clear()
    got = await sc.fetch_candidates(ScanFilter(max_orders=100, page_size=2, max_pages=2))
    assert len(got) == 4
    assert len(src.search_calls) == 2


@pytest.mark.asyncio
async def test_promo_filter_applies_when_enabled():
    orders = [ss_order(1, "1001", [ss_item("A", 1)])]
    shop = {"#1001": shop_order([shop_item("A", 1), shop_item("ELIZA10", 1, price="0.00")])}

    plain, *_ = make_scanner(orders, shop)
    filtered, *_ = make_scanner(orders, shop, exclude_promotional_items=True)

    assert (await plain.scan()).outcomes[0].status == "has_changes"
    assert (await filtered.scan()).outcomes[0].status == "no_changes"


@pytest.mark.asyncio
async def test_tag_enrichment_failure_leaves_flags_false():
    orders = [ss_order(1, "1001", [ss_item("A", 2)], tag_ids=[77])]
    shop = {"#1001": shop_order([shop_item("A", 1)])}
    sc, _src, _sf, ts, _clock = make_scanner(orders, shop)
    ts.lookup_error = PermanentError("shipstation: 500")

    summary = await sc.scan()
    assert summary.reports[0].has_reconciliation_tag is False
    assert summary.tag_id is None


@pytest.mark.asyncio
async def test_tag_lookup_skipped_without_changes():
    orders = [ss_order(1, "1001", [ss_item("A", 1)])]
    shop = {"#1001": shop_order([shop_item("A", 1)])}
    sc, _src, _sf, ts, _clock = make_scanner(orders, shop)

    await sc.scan()
    assert ts.lookups == []


@pytest.mark.asyncio
async def test_missing_tag_leaves_tag_id_none():
    orders = [ss_order(1, "1001", [ss_item("A", 2)], tag_ids=[77])]
    shop = {"#1001": shop_order([shop_item("A", 1)])}
    sc, *_ = make_scanner(orders, shop, tags={})

    summary = await sc.scan()
    assert summary.tag_id is None
    assert summary.orders_already_tagged == 0
