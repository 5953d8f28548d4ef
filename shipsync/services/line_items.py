# shipsync/services/line_items.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from shipsync.services.promo_filter import is_discount_or_promo_code


@dataclass(frozen=True)
class LineItem:
    """
    One order line, storefront or fulfillment flavor.

    key = sku, or name when sku is empty (see comparison_key).
    unit_price is None when the upstream line carries no price.
    """

    sku: str
    name: str
    quantity: int
    unit_price: Optional[Decimal] = None
    line_id: Optional[int] = None
    product_id: Optional[int] = None
    gift_card: bool = False

    @property
    def comparison_key(self) -> str:
        return self.sku if self.sku else self.name


# --------------------- value coercion ---------------------


def norm_int(val: Any, default: Optional[int] = None) -> Optional[int]:
    if val is None or val == "" or isinstance(val, bool):
        return default
    try:
        return int(val)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(str(val)))
        except (TypeError, ValueError, OverflowError):
            return default


def norm_decimal(val: Any, default: Decimal = Decimal("0")) -> Decimal:
    if val is None or val == "" or isinstance(val, bool):
        return default
    try:
        d = Decimal(str(val).strip())
    except (InvalidOperation, ValueError):
        return default
    if not d.is_finite():
        return default
    return d


def _text(val: Any) -> str:
    return "" if val is None else str(val).strip()


def _first_present(d: Dict[str, Any], keys: Iterable[str]) -> Any:
    for k in keys:
        if d.get(k) not in (None, ""):
            return d[k]
    return None


def _price(val: Any) -> Optional[Decimal]:
    if val is None or val == "":
        return None
    return max(Decimal("0"), norm_decimal(val))


# --------------------- normalizers ---------------------


def from_storefront_order(order: Dict[str, Any]) -> List[LineItem]:
    """Shopify order → LineItems (line_items[].sku/name/quantity/price/product_id/gift_card)."""
    out: List[LineItem] = []
    for raw in order.get("line_items") or []:
        if not isinstance(raw, dict):
            continue
        out.append(
            LineItem(
                sku=_text(raw.get("sku")),
                name=_text(raw.get("name") or raw.get("title")),
                quantity=max(0, norm_int(raw.get("quantity"), 0) or 0),
                unit_price=_price(raw.get("price")),
                line_id=norm_int(raw.get("id")),
                product_id=norm_int(raw.get("product_id")),
                gift_card=raw.get("gift_card") is True,
            )
        )
    return out


def from_fulfillment_order(order: Dict[str, Any]) -> List[LineItem]:
    """ShipStation order → LineItems (items[].sku/name/quantity/unitPrice/orderItemId)."""
    out: List[LineItem] = []
    for raw in order.get("items") or []:
        if not isinstance(raw, dict):
            continue
        out.append(
            LineItem(
                sku=_text(raw.get("sku")),
                name=_text(raw.get("name")),
                quantity=max(0, norm_int(raw.get("quantity"), 0) or 0),
                unit_price=_price(_first_present(raw, ("unitPrice", "price"))),
                line_id=norm_int(raw.get("orderItemId")),
                product_id=norm_int(raw.get("productId")),
            )
        )
    return out


# --------------------- product-only filters ---------------------


def filter_storefront_products(items: Iterable[LineItem]) -> List[LineItem]:
    """
    Keep real products only:
    - must carry a product_id (discount lines / tips have none)
    - no gift cards
    - no discount / promo code lines
    """
    return [
        it
        for it in items
        if it.product_id
        and not it.gift_card
        and not is_discount_or_promo_code(it.sku, it.name, it.unit_price)
    ]


def filter_fulfillment_products(items: Iterable[LineItem]) -> List[LineItem]:
    return [
        it
        for it in items
        if it.name.strip() and not is_discount_or_promo_code(it.sku, it.name, it.unit_price)
    ]
