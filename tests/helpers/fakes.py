# tests/helpers/fakes.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional


class FakeClock:
    """Virtual clock: sleep() records the delay and advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.t = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.t

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(round(seconds, 6))
        self.t += seconds

    def advance(self, seconds: float) -> None:
        self.t += seconds


class FakeOrderSource:
    """ShipStation side: paged search + lookup by number + createorder."""

    def __init__(self, orders: Optional[List[Dict[str, Any]]] = None) -> None:
        self.orders = list(orders or [])
        self.search_calls: List[Dict[str, Any]] = []
        self.submitted: List[Dict[str, Any]] = []

    async def search_orders(
        self,
        *,
        status: Optional[str] = None,
        created_since: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 100,
        sort_by: str = "OrderDate",
        sort_dir: str = "DESC",
    ) -> List[Dict[str, Any]]:
        self.search_calls.append(
            {
                "status": status,
                "created_since": created_since,
                "page": page,
                "page_size": page_size,
                "sort_by": sort_by,
                "sort_dir": sort_dir,
            }
        )
        start = (page - 1) * page_size
        return self.orders[start : start + page_size]

    async def get_order_by_number(self, number: str) -> Optional[Dict[str, Any]]:
        for o in self.orders:
            if str(o.get("orderNumber")) == str(number):
                return o
        return None

    async def submit_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.submitted.append(payload)
        return {"orderId": payload.get("orderId")}


class FakeStorefront:
    def __init__(
        self,
        orders: Optional[Dict[str, Dict[str, Any]]] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.orders = dict(orders or {})
        self.errors = dict(errors or {})
        self.lookups: List[str] = []

    async def get_order_by_number(self, number: str) -> Optional[Dict[str, Any]]:
        self.lookups.append(number)
        if number in self.errors:
            raise self.errors[number]
        return self.orders.get(number)


class FakeTagService:
    def __init__(
        self,
        tags: Optional[Dict[str, int]] = None,
        failures: Optional[Dict[int, Exception]] = None,
        lookup_error: Optional[Exception] = None,
    ) -> None:
        self.tags = dict(tags or {})
        self.failures = dict(failures or {})
        self.lookup_error = lookup_error
        self.added: List[tuple] = []
        self.lookups: List[str] = []

    async def get_tag_id_by_name(self, name: str) -> Optional[int]:
        self.lookups.append(name)
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.tags.get(name)

    async def add_tag(self, order_id: int, tag_id: int) -> None:
        if order_id in self.failures:
            raise self.failures[order_id]
        self.added.append((order_id, tag_id))


# ---------------- payload factories ----------------


def ss_order(
    order_id: int,
    number: str,
    items: List[Dict[str, Any]],
    *,
    tag_ids: Optional[List[int]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    order = {
        "orderId": order_id,
        "orderNumber": number,
        "orderKey": f"key-{order_id}",
        "orderDate": "2026-10-01T10:00:00.0000000",
        "orderStatus": "awaiting_shipment",
        "customerEmail": f"c{order_id}@example.com",
        "shipTo": {"name": f"Customer {order_id}"},
        "items": items,
        "tagIds": tag_ids,
    }
    order.update(extra)
    return order


def ss_item(sku: str, qty: int, *, name: Optional[str] = None, price: float = 10.0, item_id: Optional[int] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"sku": sku, "name": name or f"Item {sku}", "quantity": qty, "unitPrice": price}
    if item_id is not None:
        out["orderItemId"] = item_id
    return out


def shop_order(items: List[Dict[str, Any]], name: str = "#1001") -> Dict[str, Any]:
    return {"name": name, "line_items": items}


def shop_item(sku: str, qty: int, *, name: Optional[str] = None, price: str = "10.00", product_id: Optional[int] = 1) -> Dict[str, Any]:
    return {
        "sku": sku,
        "name": name or f"Item {sku}",
        "quantity": qty,
        "price": price,
        "product_id": product_id,
        "gift_card": False,
    }
