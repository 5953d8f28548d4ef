# shipsync/api/deps.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import AsyncGenerator, List, Optional

from fastapi import Depends, Request

from shipsync.adapters.shipstation import ShipStationAdapter
from shipsync.adapters.shopify import ShopifyAdapter
from shipsync.core.config import AppSettings, get_settings
from shipsync.limits import FixedIntervalLimiter
from shipsync.services.complimentary_item_service import ComplimentaryItemService, ExtraItem
from shipsync.services.customs_service import CustomsLineSynthesizer
from shipsync.services.order_change_job import OrderChangeJob
from shipsync.services.order_scan_service import ReconciliationScanner
from shipsync.services.tariff_catalog import TariffCatalog

logger = logging.getLogger("shipsync.api")


# ---------------------------
# scanner wiring (shared by routes and the background job)
# ---------------------------


def build_scanner(
    settings: AppSettings,
    shipstation: ShipStationAdapter,
    shopify: ShopifyAdapter,
    *,
    exclude_promotional_items: bool = False,
) -> ReconciliationScanner:
    return ReconciliationScanner(
        shipstation,
        shopify,
        shipstation,
        storefront_limiter=FixedIntervalLimiter(settings.STOREFRONT_INTERVAL_SECONDS),
        tag_limiter=FixedIntervalLimiter(settings.TAG_INTERVAL_SECONDS),
        order_number_prefix=settings.ORDER_NUMBER_PREFIX,
        exclude_promotional_items=exclude_promotional_items,
        reconciliation_tag_name=settings.RECONCILIATION_TAG_NAME,
    )


class JobScannerFactory:
    """
    Lazily builds the job's scanner (promo filtering on) on first run and
    keeps its adapters for the app lifetime. Missing credentials raise
    ConfigError on every call until they are configured.
    """

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self._scanner: Optional[ReconciliationScanner] = None
        self._adapters: List = []

    def __call__(self) -> ReconciliationScanner:
        if self._scanner is None:
            shipstation = ShipStationAdapter.from_settings(self.settings)
            shopify = ShopifyAdapter.from_settings(self.settings)
            self._adapters = [shipstation, shopify]
            self._scanner = build_scanner(
                self.settings, shipstation, shopify, exclude_promotional_items=True
            )
        return self._scanner

    async def aclose(self) -> None:
        for adapter in self._adapters:
            await adapter.aclose()
        self._adapters = []
        self._scanner = None


# ---------------------------
# request-scoped dependencies
# ---------------------------


def get_app_settings() -> AppSettings:
    return get_settings()


def get_catalog(request: Request) -> TariffCatalog:
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        # app started without lifespan (e.g. bare router mount); heuristics only
        catalog = TariffCatalog()
        request.app.state.catalog = catalog
    return catalog


async def get_shipstation(
    settings: AppSettings = Depends(get_app_settings),
) -> AsyncGenerator[ShipStationAdapter, None]:
    adapter = ShipStationAdapter.from_settings(settings)
    try:
        yield adapter
    finally:
        await adapter.aclose()


async def get_shopify(
    settings: AppSettings = Depends(get_app_settings),
) -> AsyncGenerator[ShopifyAdapter, None]:
    adapter = ShopifyAdapter.from_settings(settings)
    try:
        yield adapter
    finally:
        await adapter.aclose()


def get_scanner(
    settings: AppSettings = Depends(get_app_settings),
    shipstation: ShipStationAdapter = Depends(get_shipstation),
    shopify: ShopifyAdapter = Depends(get_shopify),
) -> ReconciliationScanner:
    return build_scanner(settings, shipstation, shopify)


def get_order_change_job(request: Request) -> OrderChangeJob:
    return request.app.state.order_change_job


def get_complimentary_service(
    settings: AppSettings = Depends(get_app_settings),
    shipstation: ShipStationAdapter = Depends(get_shipstation),
    catalog: TariffCatalog = Depends(get_catalog),
) -> ComplimentaryItemService:
    return ComplimentaryItemService(
        shipstation,
        CustomsLineSynthesizer(catalog),
        default_item=default_item_from_settings(settings),
        batch_limiter=FixedIntervalLimiter(settings.BATCH_UPDATE_INTERVAL_SECONDS),
    )


def default_item_from_settings(settings: AppSettings) -> ExtraItem:
    return ExtraItem(
        sku=settings.COMPLIMENTARY_SKU,
        name=settings.COMPLIMENTARY_NAME,
        unit_price=Decimal(str(settings.COMPLIMENTARY_UNIT_PRICE)),
    )
