# shipsync/api/routers/order_changes.py
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from shipsync.api.deps import get_app_settings, get_order_change_job, get_scanner
from shipsync.api.routers.order_changes_schemas import (
    BulkTagIn,
    BulkTagOut,
    JobStatusOut,
    OrderChangeOut,
    RunJobOut,
    RunStatsOut,
    ScanCounts,
    ScanOutcomeOut,
    ScanResponse,
    TagOrderIn,
    TagOrderOut,
)
from shipsync.core.config import AppSettings
from shipsync.services.errors import TagAlreadyAppliedError
from shipsync.services.order_change_job import OrderChangeJob
from shipsync.services.order_scan_service import ReconciliationScanner, report_to_dict
from shipsync.services.order_scan_types import ScanFilter

router = APIRouter(prefix="/order-changes", tags=["order-changes"])


async def _require_tag_id(scanner: ReconciliationScanner, name: str) -> int:
    tag_id = await scanner.resolve_tag_id(name)
    if tag_id is None:
        raise HTTPException(
            status_code=400,
            detail=f'Tag "{name}" does not exist in ShipStation. Please create it first.',
        )
    return tag_id


@router.get("/scan", response_model=ScanResponse)
async def scan_order_changes(
    days: Optional[int] = Query(None, ge=1, le=365),
    max_orders: Optional[int] = Query(None, ge=1, le=5000),
    settings: AppSettings = Depends(get_app_settings),
    scanner: ReconciliationScanner = Depends(get_scanner),
) -> ScanResponse:
    days = days or settings.SCAN_DAYS
    flt = ScanFilter(
        status=settings.SCAN_ORDER_STATUS,
        created_since=datetime.now(timezone.utc) - timedelta(days=days),
        max_orders=max_orders or settings.SCAN_MAX_ORDERS,
        page_size=settings.SCAN_PAGE_SIZE,
        max_pages=settings.SCAN_MAX_PAGES,
    )
    summary = await scanner.scan(flt)
    counts = summary.counts
    return ScanResponse(
        total_scanned=summary.total_scanned,
        orders_with_changes=len(summary.reports),
        orders_already_tagged=summary.orders_already_tagged,
        tag_id=summary.tag_id,
        orders=[OrderChangeOut(**report_to_dict(r)) for r in summary.reports],
        scan_summary=ScanCounts(
            has_changes=counts["has_changes"],
            no_changes=counts["no_changes"],
            no_counterpart_match=counts["no_counterpart_match"],
            errors=counts["error"],
        ),
        outcomes=[ScanOutcomeOut(**asdict(o)) for o in summary.outcomes],
    )


@router.post("/tag-order", response_model=TagOrderOut)
async def tag_order(
    body: TagOrderIn,
    settings: AppSettings = Depends(get_app_settings),
    scanner: ReconciliationScanner = Depends(get_scanner),
) -> TagOrderOut:
    tag_id = await _require_tag_id(scanner, settings.RECONCILIATION_TAG_NAME)
    try:
        await scanner.tag_order(body.order_id, tag_id)
    except TagAlreadyAppliedError:
        return TagOrderOut(order_id=body.order_id, tag_id=tag_id, already_tagged=True)
    return TagOrderOut(order_id=body.order_id, tag_id=tag_id)


@router.post("/bulk-tag", response_model=BulkTagOut)
async def bulk_tag(
    body: BulkTagIn,
    settings: AppSettings = Depends(get_app_settings),
    scanner: ReconciliationScanner = Depends(get_scanner),
) -> BulkTagOut:
    tag_id = await _require_tag_id(scanner, settings.RECONCILIATION_TAG_NAME)
    res = await scanner.bulk_tag(body.order_ids, tag_id)
    return BulkTagOut(
        tag_id=tag_id,
        tagged=res.success,
        skipped=res.skipped,
        failed=res.failed,
        errors=res.errors,
    )


@router.get("/job-status", response_model=JobStatusOut)
async def job_status(job: OrderChangeJob = Depends(get_order_change_job)) -> JobStatusOut:
    return JobStatusOut(**job.stats())


@router.post("/run-job", response_model=RunJobOut)
async def run_job(job: OrderChangeJob = Depends(get_order_change_job)) -> RunJobOut:
    stats = await job.run()
    return RunJobOut(stats=RunStatsOut(**asdict(stats)))
