# shipsync/services/customs_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from shipsync.metrics import CUSTOMS_LINES
from shipsync.services.line_items import LineItem, norm_decimal, norm_int
from shipsync.services.tariff_catalog import (
    DEFAULT_COUNTRY,
    DEFAULT_DESCRIPTION,
    DEFAULT_TARIFF_CODE,
    TariffCatalog,
)

logger = logging.getLogger("shipsync.customs")

ItemLike = Union[LineItem, Mapping[str, Any]]


@dataclass(frozen=True)
class DeclarationLine:
    description: str
    quantity: int
    value: Decimal
    tariff_code: str
    country_of_origin: str
    line_id: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "description": self.description,
            "quantity": self.quantity,
            "value": float(self.value),
            "harmonizedTariffCode": self.tariff_code,
            "countryOfOrigin": self.country_of_origin,
        }
        if self.line_id is not None:
            out["customsItemId"] = self.line_id
        return out


def _positive_id(val: Any) -> Optional[int]:
    n = norm_int(val)
    return n if n is not None and n > 0 else None


def _item_fields(item: ItemLike) -> Dict[str, Any]:
    """LineItem / raw ShipStation item → (sku, quantity, price, line_id) in raw form."""
    if isinstance(item, LineItem):
        return {
            "sku": item.sku,
            "quantity": item.quantity,
            "price": item.unit_price,
            "line_id": item.line_id,
        }
    price = item.get("unitPrice")
    if price in (None, ""):
        price = item.get("price")
    return {
        "sku": item.get("sku") or item.get("lineItemKey") or "",
        "quantity": item.get("quantity"),
        "price": price,
        "line_id": item.get("orderItemId"),
    }


class CustomsLineSynthesizer:
    """Order items → customs declaration lines via the tariff catalog."""

    def __init__(self, catalog: TariffCatalog) -> None:
        self.catalog = catalog

    def synthesize(self, items: Iterable[ItemLike]) -> List[DeclarationLine]:
        lines: List[DeclarationLine] = []
        for item in items:
            f = _item_fields(item)
            rec = self.catalog.lookup(str(f["sku"]))
            qty = norm_int(f["quantity"])
            lines.append(
                DeclarationLine(
                    description=rec.description or DEFAULT_DESCRIPTION,
                    quantity=qty if qty else 1,
                    value=norm_decimal(f["price"]),
                    tariff_code=rec.tariff_code or DEFAULT_TARIFF_CODE,
                    country_of_origin=rec.country_of_origin or DEFAULT_COUNTRY,
                    line_id=_positive_id(f["line_id"]),
                )
            )
        CUSTOMS_LINES.inc(len(lines))
        logger.debug("synthesized %d customs lines", len(lines))
        return lines

    @staticmethod
    def sanitize(
        lines: Iterable[Union[DeclarationLine, Mapping[str, Any]]],
    ) -> List[DeclarationLine]:
        """Clamp every field into a value ShipStation accepts. Idempotent."""
        out: List[DeclarationLine] = []
        for ln in lines:
            if isinstance(ln, DeclarationLine):
                ln = {**ln.to_payload(), "value": ln.value}
            desc = str(ln.get("description") or "").strip() or DEFAULT_DESCRIPTION
            code = str(ln.get("harmonizedTariffCode") or "").strip() or DEFAULT_TARIFF_CODE
            country = str(ln.get("countryOfOrigin") or "").strip().upper() or DEFAULT_COUNTRY
            qty = norm_int(ln.get("quantity"))
            out.append(
                DeclarationLine(
                    description=desc,
                    quantity=max(1, qty or 1),
                    value=max(Decimal("0"), norm_decimal(ln.get("value"))),
                    tariff_code=code,
                    country_of_origin=country,
                    line_id=_positive_id(ln.get("customsItemId")),
                )
            )
        return out
