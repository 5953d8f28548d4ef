# shipsync/api/routers/customs.py
from __future__ import annotations

from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, Body, Depends

from shipsync.api.deps import get_complimentary_service
from shipsync.api.routers.customs_schemas import (
    AddItemOut,
    BatchAddIn,
    BatchAddOut,
    ComplimentaryItemIn,
    CustomsPreviewOut,
    CustomsUpdateOut,
)
from shipsync.services.complimentary_item_service import ComplimentaryItemService, ExtraItem

router = APIRouter(prefix="/customs", tags=["customs"])


def _merge_item(
    svc: ComplimentaryItemService, body: Optional[ComplimentaryItemIn]
) -> Optional[ExtraItem]:
    if body is None:
        return None
    overrides = body.model_dump(exclude_none=True)
    if not overrides:
        return None
    return replace(svc.default_item, **overrides)


@router.get(
    "/orders/{order_number}/preview",
    response_model=CustomsPreviewOut,
    response_model_exclude_none=True,
)
async def preview_customs(
    order_number: str,
    svc: ComplimentaryItemService = Depends(get_complimentary_service),
) -> CustomsPreviewOut:
    return CustomsPreviewOut(**await svc.preview_customs(order_number))


@router.post("/orders/{order_number}/update", response_model=CustomsUpdateOut)
async def update_customs(
    order_number: str,
    svc: ComplimentaryItemService = Depends(get_complimentary_service),
) -> CustomsUpdateOut:
    return CustomsUpdateOut(**await svc.update_customs(order_number))


@router.post("/orders/{order_number}/complimentary-item", response_model=AddItemOut)
async def add_complimentary_item(
    order_number: str,
    body: Optional[ComplimentaryItemIn] = Body(None),
    svc: ComplimentaryItemService = Depends(get_complimentary_service),
) -> AddItemOut:
    res = await svc.add_item(order_number, _merge_item(svc, body))
    return AddItemOut(**res)


@router.post(
    "/complimentary-item/batch",
    response_model=BatchAddOut,
    response_model_exclude_none=True,
)
async def batch_add_complimentary_item(
    body: BatchAddIn,
    svc: ComplimentaryItemService = Depends(get_complimentary_service),
) -> BatchAddOut:
    res = await svc.batch_add_item(body.order_numbers, _merge_item(svc, body.item))
    return BatchAddOut(**res)
