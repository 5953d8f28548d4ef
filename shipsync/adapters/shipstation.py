# shipsync/adapters/shipstation.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from shipsync.adapters.base import extract_list, raise_for_upstream
from shipsync.adapters.retry import retry_with_backoff
from shipsync.core.config import AppSettings
from shipsync.limits import Clock, MonotonicClock
from shipsync.services.errors import ConfigError, PermanentError, TagAlreadyAppliedError

logger = logging.getLogger("shipsync.adapters")

SERVICE = "shipstation"


class ShipStationAdapter:
    """
    ShipStation v1 REST client.

    Implements OrderSource / TagService / OrderUpdater from shipsync.ports.
    Every call goes through retry_with_backoff (429 only).
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        base_url: str = "https://ssapi.shipstation.com",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        retry_attempts: int = 3,
        retry_base: float = 2.0,
        clock: Optional[Clock] = None,
    ) -> None:
        if not (api_key and api_secret):
            raise ConfigError(
                "Missing ShipStation credentials. Set SHIPSTATION_API_KEY and SHIPSTATION_API_SECRET"
            )
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            auth=httpx.BasicAuth(api_key, api_secret),
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
        self._retry_attempts = retry_attempts
        self._retry_base = retry_base
        self._clock = clock or MonotonicClock()

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ShipStationAdapter":
        return cls(
            settings.SHIPSTATION_API_KEY or "",
            settings.SHIPSTATION_API_SECRET or "",
            base_url=settings.SHIPSTATION_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            retry_attempts=settings.RETRY_ATTEMPTS,
            retry_base=settings.RETRY_BASE_SECONDS,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---------- transport ----------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async def _once() -> Any:
            resp = await self._client.request(method, path, **kwargs)
            raise_for_upstream(resp, SERVICE)
            if not resp.content:
                return None
            return resp.json()

        return await retry_with_backoff(
            _once,
            attempts=self._retry_attempts,
            base_delay=self._retry_base,
            clock=self._clock,
            service=SERVICE,
        )

    # ---------- orders ----------

    async def search_orders(
        self,
        *,
        status: Optional[str] = None,
        created_since: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 100,
        sort_by: str = "OrderDate",
        sort_dir: str = "DESC",
        **extra: Any,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "page": page,
            "pageSize": page_size,
            "sortBy": sort_by,
            "sortDir": sort_dir,
        }
        if status:
            params["orderStatus"] = status
        if created_since is not None:
            params["createDateStart"] = created_since.strftime("%Y-%m-%d %H:%M:%S")
        params.update({k: v for k, v in extra.items() if v is not None})

        data = await self._request("GET", "/orders", params=params)
        return extract_list(data)

    async def get_order_by_number(self, number: str) -> Optional[Dict[str, Any]]:
        data = await self._request("GET", "/orders", params={"orderNumber": str(number)})
        orders = extract_list(data)
        return orders[0] if orders else None

    async def submit_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """createorder with an orderId updates that order in place (full replace)."""
        data = await self._request("POST", "/orders/createorder", json=payload)
        return data or {}

    # ---------- tags ----------

    async def list_tags(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/accounts/listtags")
        return data if isinstance(data, list) else []

    async def get_tag_id_by_name(self, name: str) -> Optional[int]:
        tags = await self.list_tags()
        wanted = (name or "").strip()
        for t in tags:
            if str(t.get("name") or "") == wanted:
                return int(t["tagId"])
        for t in tags:
            if str(t.get("name") or "").strip().lower() == wanted.lower():
                return int(t["tagId"])
        return None

    async def add_tag(self, order_id: int, tag_id: int) -> None:
        try:
            data = await self._request(
                "POST", "/orders/addtag", json={"orderId": order_id, "tagId": tag_id}
            )
        except PermanentError as exc:
            if "already" in str(exc).lower():
                raise TagAlreadyAppliedError(str(exc), status_code=exc.status_code) from exc
            raise

        # addtag answers 200 {"success": false, "message": ...} for some rejections
        if isinstance(data, dict) and data.get("success") is False:
            msg = str(data.get("message") or "addtag rejected")
            if "already" in msg.lower():
                raise TagAlreadyAppliedError(msg)
            raise PermanentError(msg)
        logger.debug("tagged order_id=%s tag_id=%s", order_id, tag_id)
