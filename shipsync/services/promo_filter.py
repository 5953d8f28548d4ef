# shipsync/services/promo_filter.py
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

DISCOUNT_KEYWORDS = ("discount", "referral", "affiliate", "promo", "coupon", "code", "voucher")
NAME_LIKE_WORDS = ("FAVORITES", "FAVOURITES", "PICK", "CHOICE", "SPECIAL")

_NAME_PLUS_NUMBER = re.compile(r"^[A-Z]{2,15}\d{1,4}$")  # ELIZA10, AMANDA20
_GENERATED = re.compile(r"^[A-Z0-9]{6,10}$")  # WH4WW9Z7, PS7GB8N8
_ALTERNATING = re.compile(r"([A-Z]\d|\d[A-Z])")
_ALL_CAPS_WORD = re.compile(r"^[A-Z]{4,20}$")  # AMANDASFAVORITES, AIKA


def _price_is_free(price: Any) -> bool:
    if price is None or price == "":
        return False
    try:
        return Decimal(str(price)) <= 0
    except (InvalidOperation, ValueError):
        return False


def is_discount_or_promo_code(sku: Optional[str], name: Optional[str], price: Any = None) -> bool:
    """
    True when a line looks like a discount / referral / promo code rather than a product.

    Signals, any one is enough:
      1. price <= 0
      2. a discount keyword in name or sku
      3. sku shaped like a code: NAME+digits, random alphanumeric, or a bare all-caps name
    """
    if _price_is_free(price):
        return True

    text = f"{name or ''} {sku or ''}".lower()
    if any(k in text for k in DISCOUNT_KEYWORDS):
        return True

    sku_upper = (sku or "").strip().upper()
    if not sku_upper:
        return False

    if _NAME_PLUS_NUMBER.match(sku_upper):
        return True

    if (
        _GENERATED.match(sku_upper)
        and re.search(r"[A-Z]", sku_upper)
        and re.search(r"\d", sku_upper)
        and _ALTERNATING.search(sku_upper)
    ):
        return True

    if _ALL_CAPS_WORD.match(sku_upper):
        if any(w in sku_upper for w in NAME_LIKE_WORDS):
            return True
        if 4 <= len(sku_upper) <= 12:
            return True

    return False
