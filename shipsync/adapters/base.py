# shipsync/adapters/base.py
from __future__ import annotations

from typing import Any, Iterable, List, Optional

import httpx

from shipsync.services.errors import NotFoundError, PermanentError, RateLimitedError

_ListKeys = ("orders", "results", "items", "list")


def extract_list(data: Any, keys: Iterable[str] = _ListKeys) -> List[Any]:
    """
    Tolerant list extraction: {orders|results|items|list: [...]} or a bare list.
    Anything else → [].
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for k in keys:
            v = data.get(k)
            if isinstance(v, list):
                return v
    return []


def _retry_after(resp: httpx.Response) -> Optional[float]:
    raw = resp.headers.get("Retry-After") or resp.headers.get("X-Rate-Limit-Reset")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def error_message(resp: httpx.Response) -> str:
    """Best-effort message from an error body (ShipStation: Message/ExceptionMessage, Shopify: errors)."""
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip() or f"HTTP {resp.status_code}"

    if isinstance(body, dict):
        for k in ("ExceptionMessage", "Message", "message", "errors", "error"):
            v = body.get(k)
            if v:
                return str(v)
    return str(body) if body else f"HTTP {resp.status_code}"


def raise_for_upstream(resp: httpx.Response, service: str) -> None:
    """
    Map an HTTP response onto the error taxonomy:
      429 → RateLimitedError, 404 → NotFoundError, other >=400 → PermanentError.
    """
    code = resp.status_code
    if code < 400:
        return
    msg = error_message(resp)
    if code == 429:
        raise RateLimitedError(f"{service} 429: {msg}", retry_after=_retry_after(resp))
    if code == 404:
        raise NotFoundError(f"{service} 404: {msg}")
    raise PermanentError(f"{service} {code}: {msg}", status_code=code)
