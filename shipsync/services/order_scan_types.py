# shipsync/services/order_scan_types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from shipsync.services.order_diff_types import ChangeRecord

ScanStatus = Literal["has_changes", "no_changes", "no_counterpart_match", "error"]

SCAN_STATUSES: tuple = ("has_changes", "no_changes", "no_counterpart_match", "error")


@dataclass
class ScanFilter:
    status: Optional[str] = "awaiting_shipment"
    created_since: Optional[datetime] = None
    max_orders: int = 200
    page_size: int = 500
    max_pages: int = 10
    sort_by: str = "OrderDate"
    sort_dir: str = "DESC"


@dataclass
class ScanOutcome:
    order_id: Optional[int]
    order_number: str
    status: ScanStatus
    customer_name: str = "Unknown"
    order_date: Optional[str] = None
    counterpart_found: bool = False
    change_count: int = 0
    error: Optional[str] = None


@dataclass
class OrderChangeReport:
    order_id: Optional[int]
    order_number: str
    order_key: Optional[str]
    order_date: Optional[str]
    customer_name: str
    customer_email: Optional[str]
    changes: List[ChangeRecord]
    change_count: int
    source_item_count: int
    mirror_item_count: int
    current_tag_ids: List[int] = field(default_factory=list)
    has_reconciliation_tag: bool = False


@dataclass
class ScanSummary:
    outcomes: List[ScanOutcome] = field(default_factory=list)
    reports: List[OrderChangeReport] = field(default_factory=list)
    tag_id: Optional[int] = None

    @property
    def total_scanned(self) -> int:
        return len(self.outcomes)

    @property
    def counts(self) -> Dict[str, int]:
        out = {s: 0 for s in SCAN_STATUSES}
        for o in self.outcomes:
            out[o.status] += 1
        return out

    @property
    def orders_already_tagged(self) -> int:
        return sum(1 for r in self.reports if r.has_reconciliation_tag)


@dataclass
class BulkTagResult:
    tag_id: Optional[int]
    success: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
