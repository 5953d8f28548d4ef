# shipsync/ports.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

Order = Dict[str, Any]


class OrderSource(Protocol):
    """Fulfillment-side orders (ShipStation)."""

    async def search_orders(
        self,
        *,
        status: Optional[str] = None,
        created_since: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 100,
        sort_by: str = "OrderDate",
        sort_dir: str = "DESC",
    ) -> List[Order]: ...

    async def get_order_by_number(self, number: str) -> Optional[Order]: ...


class StorefrontSource(Protocol):
    """Storefront-side orders (Shopify)."""

    async def get_order_by_number(self, number: str) -> Optional[Order]: ...


class TagService(Protocol):
    async def get_tag_id_by_name(self, name: str) -> Optional[int]: ...

    async def add_tag(self, order_id: int, tag_id: int) -> None: ...


class OrderUpdater(Protocol):
    async def submit_order(self, payload: Dict[str, Any]) -> Order: ...
