# shipsync/services/order_diff_service.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from shipsync.services.line_items import LineItem
from shipsync.services.order_diff_types import ChangeRecord, ComparisonResult, ItemCounts

__all__ = [
    "ChangeRecord",
    "ComparisonResult",
    "OrderItemDiffer",
    "compare_order_items",
]


@dataclass
class _Aggregate:
    name: str
    quantity: int


def _aggregate(items: Iterable[LineItem]) -> Dict[str, _Aggregate]:
    """key → summed quantity; first-seen name wins. dict keeps first-seen key order."""
    out: Dict[str, _Aggregate] = {}
    for it in items:
        key = it.comparison_key
        agg = out.get(key)
        if agg is None:
            out[key] = _Aggregate(name=it.name, quantity=int(it.quantity))
        else:
            agg.quantity += int(it.quantity)
    return out


class OrderItemDiffer:
    """
    Storefront (source, authoritative) vs fulfillment (mirror) line-item diff.

    - removed:          key in source only (full source qty)
    - quantity_changed: key on both sides, aggregated qty differs
    - added:            key in mirror only
    Prices never take part; zero quantities do.
    """

    def compare(
        self,
        source_items: Sequence[LineItem],
        mirror_items: Sequence[LineItem],
    ) -> ComparisonResult:
        source = _aggregate(source_items)
        mirror = _aggregate(mirror_items)

        changes: List[ChangeRecord] = []

        for key, src in source.items():
            mir = mirror.get(key)
            if mir is None:
                changes.append(
                    ChangeRecord(
                        kind="removed",
                        sku=key,
                        name=src.name,
                        quantity=src.quantity,
                        description=(
                            f'Item "{src.name}" (SKU: {key}) was removed from ShipStation '
                            f"({src.quantity} units)"
                        ),
                    )
                )
            elif mir.quantity != src.quantity:
                diff = mir.quantity - src.quantity
                direction = "increased" if diff > 0 else "decreased"
                changes.append(
                    ChangeRecord(
                        kind="quantity_changed",
                        sku=key,
                        name=src.name,
                        source_quantity=src.quantity,
                        mirror_quantity=mir.quantity,
                        difference=diff,
                        direction=direction,
                        description=(
                            f'Item "{src.name}" (SKU: {key}) quantity {direction} '
                            f"from {src.quantity} to {mir.quantity}"
                        ),
                    )
                )

        for key, mir in mirror.items():
            if key not in source:
                changes.append(
                    ChangeRecord(
                        kind="added",
                        sku=key,
                        name=mir.name,
                        quantity=mir.quantity,
                        description=(
                            f'Item "{mir.name}" (SKU: {key}) was added to ShipStation '
                            f"({mir.quantity} units)"
                        ),
                    )
                )

        return ComparisonResult(
            has_changes=bool(changes),
            changes=changes,
            counts=ItemCounts(source_count=len(source_items), mirror_count=len(mirror_items)),
        )


def compare_order_items(
    source_items: Sequence[LineItem], mirror_items: Sequence[LineItem]
) -> ComparisonResult:
    return OrderItemDiffer().compare(source_items, mirror_items)
