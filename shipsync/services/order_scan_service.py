# shipsync/services/order_scan_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from shipsync.limits import FixedIntervalLimiter, RateLimiter
from shipsync.metrics import ORDERS_SCANNED, TAG_WRITES
from shipsync.ports import Order, OrderSource, StorefrontSource, TagService
from shipsync.services.errors import TagAlreadyAppliedError
from shipsync.services.line_items import (
    filter_fulfillment_products,
    filter_storefront_products,
    from_fulfillment_order,
    from_storefront_order,
    norm_int,
)
from shipsync.services.order_diff_service import OrderItemDiffer
from shipsync.services.order_scan_types import (
    BulkTagResult,
    OrderChangeReport,
    ScanFilter,
    ScanOutcome,
    ScanSummary,
)

logger = logging.getLogger("shipsync.scan")

PROGRESS_EVERY = 10


def storefront_order_number(number: Any, prefix: str = "#") -> str:
    """'1001' → '#1001'; '#1001' and non-numeric numbers ('EU-7') pass through."""
    s = str(number or "").strip()
    if prefix and s.isdigit():
        return f"{prefix}{s}"
    return s


def is_already_applied(exc: BaseException) -> bool:
    return isinstance(exc, TagAlreadyAppliedError) or "already" in str(exc).lower()


def _customer_name(order: Order) -> str:
    ship_to = order.get("shipTo") or {}
    return str(ship_to.get("name") or "Unknown")


def _tag_ids(order: Order) -> List[int]:
    out: List[int] = []
    for t in order.get("tagIds") or []:
        n = norm_int(t)
        if n is not None:
            out.append(n)
    return out


class ReconciliationScanner:
    """
    Fulfillment orders (ShipStation) vs their storefront counterparts (Shopify).

    Per order:
      fetch → match (storefront lookup, paced) → compare → outcome
    Terminal statuses: has_changes / no_changes / no_counterpart_match / error.

    A scan never writes tags; tagging is a separate, explicit call.
    """

    def __init__(
        self,
        order_source: OrderSource,
        storefront: StorefrontSource,
        tag_service: TagService,
        *,
        differ: Optional[OrderItemDiffer] = None,
        storefront_limiter: Optional[RateLimiter] = None,
        tag_limiter: Optional[RateLimiter] = None,
        order_number_prefix: str = "#",
        exclude_promotional_items: bool = False,
        reconciliation_tag_name: str = "ORDER CHANGE",
    ) -> None:
        self.order_source = order_source
        self.storefront = storefront
        self.tag_service = tag_service
        self.differ = differ or OrderItemDiffer()
        self.storefront_limiter = storefront_limiter or FixedIntervalLimiter(0.55)
        self.tag_limiter = tag_limiter or FixedIntervalLimiter(0.15)
        self.order_number_prefix = order_number_prefix
        self.exclude_promotional_items = exclude_promotional_items
        self.reconciliation_tag_name = reconciliation_tag_name

    # ---------------- fetch ----------------

    async def fetch_candidates(self, flt: ScanFilter) -> List[Order]:
        max_orders = max(0, int(flt.max_orders))
        page_size = max(1, int(flt.page_size))
        collected: List[Order] = []
        page = 1
        while len(collected) < max_orders and page <= flt.max_pages:
            batch = await self.order_source.search_orders(
                status=flt.status,
                created_since=flt.created_since,
                page=page,
                page_size=page_size,
                sort_by=flt.sort_by,
                sort_dir=flt.sort_dir,
            )
            collected.extend(batch)
            logger.debug("fetched page=%d size=%d total=%d", page, len(batch), len(collected))
            if len(batch) < page_size:
                break
            page += 1
        return collected[:max_orders]

    # ---------------- match + compare ----------------

    async def _lookup_counterpart(self, order_number: str) -> Optional[Order]:
        await self.storefront_limiter.acquire()
        number = storefront_order_number(order_number, self.order_number_prefix)
        try:
            return await self.storefront.get_order_by_number(number)
        except Exception as e:
            logger.warning("storefront lookup failed order_number=%s: %s", number, e)
            return None

    async def _scan_one(self, order: Order) -> tuple[ScanOutcome, Optional[OrderChangeReport]]:
        order_number = str(order.get("orderNumber") or "")
        outcome = ScanOutcome(
            order_id=norm_int(order.get("orderId")),
            order_number=order_number,
            status="error",
            customer_name=_customer_name(order),
            order_date=order.get("orderDate"),
        )
        try:
            counterpart = await self._lookup_counterpart(order_number)
            if not counterpart:
                logger.info("no storefront counterpart for order_number=%s", order_number)
                outcome.status = "no_counterpart_match"
                return outcome, None

            outcome.counterpart_found = True
            source_items = from_storefront_order(counterpart)
            mirror_items = from_fulfillment_order(order)
            if self.exclude_promotional_items:
                source_items = filter_storefront_products(source_items)
                mirror_items = filter_fulfillment_products(mirror_items)

            result = self.differ.compare(source_items, mirror_items)
            outcome.change_count = len(result.changes)
            if not result.has_changes:
                outcome.status = "no_changes"
                return outcome, None

            outcome.status = "has_changes"
            report = OrderChangeReport(
                order_id=outcome.order_id,
                order_number=order_number,
                order_key=order.get("orderKey"),
                order_date=order.get("orderDate"),
                customer_name=outcome.customer_name,
                customer_email=order.get("customerEmail"),
                changes=list(result.changes),
                change_count=len(result.changes),
                source_item_count=result.counts.source_count,
                mirror_item_count=result.counts.mirror_count,
                current_tag_ids=_tag_ids(order),
            )
            return outcome, report
        except Exception as e:
            logger.exception("scan failed order_number=%s", order_number)
            outcome.status = "error"
            outcome.error = str(e)
            return outcome, None

    async def scan(self, flt: Optional[ScanFilter] = None) -> ScanSummary:
        flt = flt or ScanFilter()
        orders = await self.fetch_candidates(flt)
        total = len(orders)
        logger.info("scan start: %d candidate orders", total)

        summary = ScanSummary()
        for idx, order in enumerate(orders, start=1):
            outcome, report = await self._scan_one(order)
            summary.outcomes.append(outcome)
            ORDERS_SCANNED.labels(status=outcome.status).inc()
            if report is not None:
                summary.reports.append(report)
            if idx % PROGRESS_EVERY == 0:
                logger.info("scan progress: %d/%d orders checked", idx, total)

        if summary.reports:
            await self._enrich_tag_status(summary)

        logger.info(
            "scan complete: scanned=%d changes=%d already_tagged=%d",
            summary.total_scanned,
            len(summary.reports),
            summary.orders_already_tagged,
        )
        return summary

    async def _enrich_tag_status(self, summary: ScanSummary) -> None:
        try:
            tag_id = await self.tag_service.get_tag_id_by_name(self.reconciliation_tag_name)
        except Exception as e:
            logger.warning("tag lookup failed name=%s: %s", self.reconciliation_tag_name, e)
            return
        if tag_id is None:
            logger.info("tag %r does not exist yet", self.reconciliation_tag_name)
            return
        summary.tag_id = tag_id
        for r in summary.reports:
            r.has_reconciliation_tag = tag_id in r.current_tag_ids

    # ---------------- tagging ----------------

    async def resolve_tag_id(self, name: Optional[str] = None) -> Optional[int]:
        return await self.tag_service.get_tag_id_by_name(name or self.reconciliation_tag_name)

    async def tag_order(self, order_id: int, tag_id: int) -> None:
        await self.tag_limiter.acquire()
        await self.tag_service.add_tag(order_id, tag_id)
        TAG_WRITES.labels(result="success").inc()

    async def bulk_tag(self, order_ids: Sequence[int], tag_id: int) -> BulkTagResult:
        result = BulkTagResult(tag_id=tag_id)
        for order_id in order_ids:
            await self.tag_limiter.acquire()
            try:
                await self.tag_service.add_tag(order_id, tag_id)
            except Exception as e:
                if is_already_applied(e):
                    result.skipped += 1
                    TAG_WRITES.labels(result="skipped").inc()
                    continue
                logger.warning("tag failed order_id=%s: %s", order_id, e)
                result.failed += 1
                result.errors.append({"order_id": order_id, "error": str(e)})
                TAG_WRITES.labels(result="failed").inc()
                continue
            result.success += 1
            TAG_WRITES.labels(result="success").inc()
        logger.info(
            "bulk tag done: success=%d skipped=%d failed=%d",
            result.success,
            result.skipped,
            result.failed,
        )
        return result


def report_to_dict(report: OrderChangeReport) -> Dict[str, Any]:
    return {
        "order_id": report.order_id,
        "order_number": report.order_number,
        "order_key": report.order_key,
        "order_date": report.order_date,
        "customer_name": report.customer_name,
        "customer_email": report.customer_email,
        "changes": [c.to_dict() for c in report.changes],
        "change_count": report.change_count,
        "source_item_count": report.source_item_count,
        "mirror_item_count": report.mirror_item_count,
        "current_tag_ids": list(report.current_tag_ids),
        "has_reconciliation_tag": report.has_reconciliation_tag,
    }
