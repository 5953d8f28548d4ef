# shipsync/adapters/shopify.py
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from shipsync.adapters.base import extract_list, raise_for_upstream
from shipsync.adapters.retry import retry_with_backoff
from shipsync.core.config import AppSettings
from shipsync.limits import Clock, MonotonicClock
from shipsync.services.errors import ConfigError

SERVICE = "shopify"


class ShopifyAdapter:
    """Shopify Admin REST client (StorefrontSource)."""

    def __init__(
        self,
        store: str,
        access_token: str,
        *,
        api_version: str = "2024-01",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        retry_attempts: int = 3,
        retry_base: float = 2.0,
        clock: Optional[Clock] = None,
    ) -> None:
        if not (store and access_token):
            raise ConfigError("Missing Shopify credentials. Set SHOPIFY_STORE and SHOPIFY_ACCESS_TOKEN")
        self._client = client or httpx.AsyncClient(
            base_url=f"https://{store}/admin/api/{api_version}",
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )
        self._retry_attempts = retry_attempts
        self._retry_base = retry_base
        self._clock = clock or MonotonicClock()

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ShopifyAdapter":
        return cls(
            settings.SHOPIFY_STORE or "",
            settings.SHOPIFY_ACCESS_TOKEN or "",
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            retry_attempts=settings.RETRY_ATTEMPTS,
            retry_base=settings.RETRY_BASE_SECONDS,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_order_by_number(self, number: str) -> Optional[Dict[str, Any]]:
        """
        Look up an order by its display name.

        `number` is passed as-is ("#1001" style); the caller applies the prefix.
        """

        async def _once() -> Any:
            resp = await self._client.get(
                "/orders.json", params={"name": str(number), "status": "any"}
            )
            raise_for_upstream(resp, SERVICE)
            return resp.json()

        data = await retry_with_backoff(
            _once,
            attempts=self._retry_attempts,
            base_delay=self._retry_base,
            clock=self._clock,
            service=SERVICE,
        )
        orders = extract_list(data, keys=("orders",))
        return orders[0] if orders else None
