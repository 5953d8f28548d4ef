# shipsync/services/customs_payload.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from shipsync.services.customs_service import CustomsLineSynthesizer, DeclarationLine

DEFAULT_CONTENTS = "merchandise"
DEFAULT_NON_DELIVERY = "return_to_sender"


class PayloadBuilder(Protocol):
    def build_customs_update(
        self, order: Mapping[str, Any], lines: Iterable[DeclarationLine]
    ) -> Dict[str, Any]: ...

    def build_order_replace(
        self,
        order: Mapping[str, Any],
        items: Iterable[Mapping[str, Any]],
        lines: Iterable[DeclarationLine],
        note: Optional[str] = None,
    ) -> Dict[str, Any]: ...


def _international_options(order: Mapping[str, Any], lines: Iterable[DeclarationLine]) -> Dict[str, Any]:
    current = order.get("internationalOptions") or {}
    return {
        "contents": current.get("contents") or DEFAULT_CONTENTS,
        "nonDelivery": current.get("nonDelivery") or DEFAULT_NON_DELIVERY,
        "customsItems": [ln.to_payload() for ln in CustomsLineSynthesizer.sanitize(lines)],
    }


def _item_payload(item: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "lineItemKey": item.get("lineItemKey") or "",
        "sku": item.get("sku") or "",
        "name": item.get("name") or "",
        "imageUrl": item.get("imageUrl") or "",
        "weight": item.get("weight") or {},
        "quantity": item.get("quantity") or 1,
        "unitPrice": item.get("unitPrice") or 0,
        "taxAmount": item.get("taxAmount") or 0,
        "shippingAmount": item.get("shippingAmount") or 0,
        "warehouseLocation": item.get("warehouseLocation") or "",
        "options": item.get("options") or [],
        "fulfillmentSku": item.get("fulfillmentSku") or "",
        "adjustment": bool(item.get("adjustment")),
        "upc": item.get("upc") or "",
    }
    # ShipStation wants these absent rather than null
    if item.get("orderItemId"):
        out["orderItemId"] = item["orderItemId"]
    if item.get("productId"):
        out["productId"] = item["productId"]
    return out


class V1PayloadBuilder:
    """ShipStation /orders/createorder payloads (create-or-replace by orderKey)."""

    version = "v1"

    def build_customs_update(
        self, order: Mapping[str, Any], lines: Iterable[DeclarationLine]
    ) -> Dict[str, Any]:
        return {
            "orderId": order.get("orderId"),
            "orderKey": order.get("orderKey") or "",
            "orderNumber": order.get("orderNumber") or "",
            "internationalOptions": _international_options(order, lines),
        }

    def build_order_replace(
        self,
        order: Mapping[str, Any],
        items: Iterable[Mapping[str, Any]],
        lines: Iterable[DeclarationLine],
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        internal_notes = order.get("internalNotes") or ""
        if note:
            internal_notes = f"{internal_notes}\n{note}" if internal_notes else note

        payload: Dict[str, Any] = {
            "orderId": order.get("orderId"),
            "orderKey": order.get("orderKey") or "",
            "orderNumber": order.get("orderNumber") or "",
            "orderDate": order.get("orderDate") or "",
            "paymentDate": order.get("paymentDate") or order.get("orderDate") or "",
            "shipByDate": order.get("shipByDate") or "",
            "orderStatus": order.get("orderStatus") or "",
            "customerUsername": order.get("customerUsername") or "",
            "customerEmail": order.get("customerEmail") or "",
            "billTo": order.get("billTo") or {},
            "shipTo": order.get("shipTo") or {},
            "orderTotal": order.get("orderTotal") or 0,
            "amountPaid": order.get("amountPaid") or 0,
            "taxAmount": order.get("taxAmount") or 0,
            "shippingAmount": order.get("shippingAmount") or 0,
            "customerNotes": order.get("customerNotes") or "",
            "internalNotes": internal_notes,
            "gift": bool(order.get("gift")),
            "giftMessage": order.get("giftMessage") or "",
            "paymentMethod": order.get("paymentMethod") or "",
            "requestedShippingService": order.get("requestedShippingService") or "",
            "carrierCode": order.get("carrierCode") or "",
            "serviceCode": order.get("serviceCode") or "",
            "packageCode": order.get("packageCode") or "",
            "confirmation": order.get("confirmation") or "",
            "shipDate": order.get("shipDate") or "",
            "weight": order.get("weight") or {},
            "dimensions": order.get("dimensions") or {},
            "insuranceOptions": order.get("insuranceOptions") or {},
            "advancedOptions": order.get("advancedOptions") or {},
            "tagIds": list(order.get("tagIds") or []),
            "items": [_item_payload(it) for it in items],
            "internationalOptions": _international_options(order, lines),
        }
        if order.get("customerId"):
            payload["customerId"] = order["customerId"]
        return payload


_BUILDERS: Dict[str, PayloadBuilder] = {
    "v1": V1PayloadBuilder(),
}

CURRENT_VERSION = "v1"


def get_payload_builder(version: str = CURRENT_VERSION) -> PayloadBuilder:
    key = (version or "").lower()
    if key not in _BUILDERS:
        raise ValueError(f"unknown payload version: {version!r}")
    return _BUILDERS[key]


def available_versions() -> List[str]:
    return sorted(_BUILDERS)
