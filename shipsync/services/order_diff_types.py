# shipsync/services/order_diff_types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

ChangeKind = Literal["added", "removed", "quantity_changed"]
Direction = Literal["increased", "decreased"]


@dataclass(frozen=True)
class ChangeRecord:
    kind: ChangeKind
    sku: str
    name: str
    description: str
    quantity: Optional[int] = None  # added / removed
    source_quantity: Optional[int] = None
    mirror_quantity: Optional[int] = None
    difference: Optional[int] = None  # signed, mirror - source
    direction: Optional[Direction] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.kind,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
        }
        if self.kind == "quantity_changed":
            out.update(
                source_quantity=self.source_quantity,
                mirror_quantity=self.mirror_quantity,
                difference=self.difference,
                change_type=self.direction,
            )
        else:
            out["quantity"] = self.quantity
        return out


@dataclass(frozen=True)
class ItemCounts:
    source_count: int
    mirror_count: int


@dataclass
class ComparisonResult:
    has_changes: bool
    changes: List[ChangeRecord] = field(default_factory=list)
    counts: ItemCounts = field(default_factory=lambda: ItemCounts(0, 0))
