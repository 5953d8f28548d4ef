# shipsync/api/routers/order_changes_schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChangeOut(BaseModel):
    type: str = Field(..., description="added / removed / quantity_changed")
    sku: str
    name: str
    description: str
    quantity: Optional[int] = None
    source_quantity: Optional[int] = None
    mirror_quantity: Optional[int] = None
    difference: Optional[int] = None
    change_type: Optional[str] = Field(None, description="increased / decreased")


class OrderChangeOut(BaseModel):
    order_id: Optional[int] = None
    order_number: str
    order_key: Optional[str] = None
    order_date: Optional[str] = None
    customer_name: str
    customer_email: Optional[str] = None
    changes: List[ChangeOut] = Field(default_factory=list)
    change_count: int
    source_item_count: int
    mirror_item_count: int
    current_tag_ids: List[int] = Field(default_factory=list)
    has_reconciliation_tag: bool = False


class ScanOutcomeOut(BaseModel):
    order_id: Optional[int] = None
    order_number: str
    status: str
    customer_name: str
    order_date: Optional[str] = None
    counterpart_found: bool = False
    change_count: int = 0
    error: Optional[str] = None


class ScanCounts(BaseModel):
    has_changes: int = 0
    no_changes: int = 0
    no_counterpart_match: int = 0
    errors: int = 0


class ScanResponse(BaseModel):
    success: bool = True
    total_scanned: int
    orders_with_changes: int
    orders_already_tagged: int
    tag_id: Optional[int] = None
    orders: List[OrderChangeOut] = Field(default_factory=list)
    scan_summary: ScanCounts
    outcomes: List[ScanOutcomeOut] = Field(default_factory=list)


class TagOrderIn(BaseModel):
    order_id: int


class TagOrderOut(BaseModel):
    success: bool = True
    order_id: int
    tag_id: int
    already_tagged: bool = False


class BulkTagIn(BaseModel):
    order_ids: List[int] = Field(..., min_length=1)


class BulkTagError(BaseModel):
    order_id: int
    error: str


class BulkTagOut(BaseModel):
    success: bool = True
    tag_id: int
    tagged: int
    skipped: int
    failed: int
    errors: List[BulkTagError] = Field(default_factory=list)


class JobStatusOut(BaseModel):
    total_runs: int
    last_run_at: Optional[datetime] = None
    last_run_duration: float = 0.0
    orders_scanned: int = 0
    changes_detected: int = 0
    orders_tagged: int = 0
    last_errors: List[Dict[str, Any]] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)
    is_running: bool = False
    next_run_at: Optional[datetime] = None


class RunStatsOut(BaseModel):
    orders_scanned: int
    changes_detected: int
    orders_tagged: int
    tag_skipped: int
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class RunJobOut(BaseModel):
    success: bool = True
    stats: RunStatsOut
