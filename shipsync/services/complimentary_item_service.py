# shipsync/services/complimentary_item_service.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from shipsync.limits import FixedIntervalLimiter, RateLimiter
from shipsync.ports import Order
from shipsync.services.customs_payload import get_payload_builder
from shipsync.services.customs_service import CustomsLineSynthesizer, DeclarationLine
from shipsync.services.errors import NotFoundError
from shipsync.services.line_items import norm_decimal

logger = logging.getLogger("shipsync.customs")


class FulfillmentOrders(Protocol):
    """OrderSource.get_order_by_number + OrderUpdater.submit_order (ShipStation)."""

    async def get_order_by_number(self, number: str) -> Optional[Order]: ...

    async def submit_order(self, payload: Dict[str, Any]) -> Order: ...


@dataclass(frozen=True)
class ExtraItem:
    sku: str = "LIST-DEF"
    name: str = "Complimentary stickers"
    quantity: int = 1
    unit_price: Decimal = Decimal("1.00")
    weight_oz: float = 0.1

    def to_order_item(self, line_item_key: str) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "lineItemKey": line_item_key,
            "sku": self.sku,
            "name": self.name,
            "quantity": self.quantity,
            "unitPrice": float(self.unit_price),
            "taxAmount": 0,
            "shippingAmount": 0,
            "adjustment": False,
            "options": [],
            "fulfillmentSku": self.sku,
        }
        if self.weight_oz > 0:
            item["weight"] = {"value": self.weight_oz, "units": "ounces"}
        return item


class ComplimentaryItemService:
    """
    Fulfillment-side order edits:
    - customs preview / refresh from the tariff catalog
    - append a complimentary line (and rebuild customs) with a full order replace
    """

    def __init__(
        self,
        orders: FulfillmentOrders,
        synthesizer: CustomsLineSynthesizer,
        *,
        default_item: Optional[ExtraItem] = None,
        batch_limiter: Optional[RateLimiter] = None,
        payload_version: str = "v1",
        now_ms: Optional[Callable[[], int]] = None,
    ) -> None:
        self.orders = orders
        self.synthesizer = synthesizer
        self.default_item = default_item or ExtraItem()
        self.batch_limiter = batch_limiter or FixedIntervalLimiter(1.0)
        self.builder = get_payload_builder(payload_version)
        self._now_ms = now_ms or (lambda: int(time.time() * 1000))

    async def _get_order(self, order_number: str) -> Order:
        order = await self.orders.get_order_by_number(order_number)
        if not order:
            raise NotFoundError(f"Order {order_number} not found")
        return order

    def _lines_for(self, items: Sequence[Dict[str, Any]]) -> List[DeclarationLine]:
        return self.synthesizer.sanitize(self.synthesizer.synthesize(items))

    # ---------------- customs ----------------

    async def preview_customs(self, order_number: str) -> Dict[str, Any]:
        order = await self._get_order(order_number)
        lines = self._lines_for(order.get("items") or [])
        return {
            "order_id": order.get("orderId"),
            "order_number": order.get("orderNumber") or order_number,
            "customs_items": [ln.to_payload() for ln in lines],
        }

    async def update_customs(self, order_number: str) -> Dict[str, Any]:
        order = await self._get_order(order_number)
        lines = self._lines_for(order.get("items") or [])
        payload = self.builder.build_customs_update(order, lines)
        await self.orders.submit_order(payload)
        logger.info("customs updated order_number=%s lines=%d", order_number, len(lines))
        return {
            "success": True,
            "order_number": order.get("orderNumber") or order_number,
            "customs_count": len(lines),
        }

    # ---------------- complimentary item ----------------

    async def add_item(self, order_number: str, item: Optional[ExtraItem] = None) -> Dict[str, Any]:
        extra = item or self.default_item
        order = await self._get_order(order_number)
        existing = list(order.get("items") or [])

        if any(it.get("sku") == extra.sku and it.get("name") == extra.name for it in existing):
            logger.info("order_number=%s already has %s", order_number, extra.name)
            return {
                "success": True,
                "status": "skipped",
                "message": "Item already exists in order",
                "items_count": len(existing),
                "customs_count": 0,
            }

        new_item = extra.to_order_item(f"{extra.sku}-{self._now_ms()}")
        items = existing + [new_item]
        lines = self._lines_for(items)

        total = norm_decimal(order.get("orderTotal")) + extra.unit_price * extra.quantity
        updated = {**order, "orderTotal": float(total)}
        note = f"Added {extra.quantity} x {extra.name} ({extra.sku})"
        payload = self.builder.build_order_replace(updated, items, lines, note=note)
        await self.orders.submit_order(payload)

        logger.info(
            "added %s to order_number=%s items=%d customs=%d",
            extra.sku,
            order_number,
            len(items),
            len(lines),
        )
        return {
            "success": True,
            "status": "success",
            "message": f"Added {extra.name} to order {order_number}",
            "items_count": len(items),
            "customs_count": len(lines),
        }

    async def batch_add_item(
        self, order_numbers: Sequence[str], item: Optional[ExtraItem] = None
    ) -> Dict[str, Any]:
        results: Dict[str, Any] = {
            "total": len(order_numbers),
            "successful": 0,
            "skipped": 0,
            "failed": 0,
            "details": [],
        }
        for number in order_numbers:
            await self.batch_limiter.acquire()
            try:
                res = await self.add_item(number, item)
            except Exception as e:
                logger.warning("add item failed order_number=%s: %s", number, e)
                results["failed"] += 1
                results["details"].append(
                    {"order_number": number, "status": "error", "error": str(e)}
                )
                continue
            if res["status"] == "skipped":
                results["skipped"] += 1
            else:
                results["successful"] += 1
            results["details"].append(
                {
                    "order_number": number,
                    "status": res["status"],
                    "message": res["message"],
                    "items_count": res["items_count"],
                    "customs_count": res["customs_count"],
                }
            )
        return results
