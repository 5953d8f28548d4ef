# shipsync/api/routers/customs_schemas.py
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class CustomsItemOut(BaseModel):
    description: str
    quantity: int
    value: float
    harmonizedTariffCode: str
    countryOfOrigin: str
    customsItemId: Optional[int] = None


class CustomsPreviewOut(BaseModel):
    order_id: Optional[int] = None
    order_number: str
    customs_items: List[CustomsItemOut] = Field(default_factory=list)


class CustomsUpdateOut(BaseModel):
    success: bool = True
    order_number: str
    customs_count: int


class ComplimentaryItemIn(BaseModel):
    """Any field left out falls back to the configured complimentary item."""

    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class AddItemOut(BaseModel):
    success: bool = True
    status: str = Field(..., description="success / skipped")
    message: str
    items_count: int
    customs_count: int


class BatchAddIn(BaseModel):
    order_numbers: List[str] = Field(..., min_length=1)
    item: Optional[ComplimentaryItemIn] = None


class BatchAddDetail(BaseModel):
    order_number: str
    status: str
    message: Optional[str] = None
    error: Optional[str] = None
    items_count: Optional[int] = None
    customs_count: Optional[int] = None


class BatchAddOut(BaseModel):
    total: int
    successful: int
    skipped: int
    failed: int
    details: List[BatchAddDetail] = Field(default_factory=list)
