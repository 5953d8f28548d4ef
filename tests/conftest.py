# tests/conftest.py
from __future__ import annotations

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from shipsync.api.deps import (
    get_app_settings,
    get_catalog,
    get_complimentary_service,
    get_order_change_job,
    get_scanner,
)
from shipsync.core.config import AppSettings
from shipsync.limits import FixedIntervalLimiter
from shipsync.main import create_app
from shipsync.services.complimentary_item_service import ComplimentaryItemService
from shipsync.services.customs_service import CustomsLineSynthesizer
from shipsync.services.order_change_job import JobConfig, OrderChangeJob
from shipsync.services.order_scan_service import ReconciliationScanner
from shipsync.services.tariff_catalog import TariffCatalog
from tests.helpers.fakes import FakeClock, FakeOrderSource, FakeStorefront, FakeTagService

CATALOG_CSV = [
    "sku,description,tariffCode,countryOfOrigin",
    "DLP-A5,Dated weekly planner,4820102010,CA",
    "NB-DOT,Dot grid notebook,4820102020,CA",
    "PEN-GEL,Gel ink pen,9608100000,jp",
]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        SHIPSTATION_API_KEY="key",
        SHIPSTATION_API_SECRET="secret",
        SHOPIFY_STORE="test-shop.myshopify.com",
        SHOPIFY_ACCESS_TOKEN="token",
        TARIFF_CATALOG_PATH="does-not-exist.csv",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> TariffCatalog:
    c = TariffCatalog()
    assert c.load(CATALOG_CSV)
    return c


@pytest.fixture
def order_source() -> FakeOrderSource:
    return FakeOrderSource()


@pytest.fixture
def storefront() -> FakeStorefront:
    return FakeStorefront()


@pytest.fixture
def tag_service() -> FakeTagService:
    return FakeTagService(tags={"ORDER CHANGE": 77})


@pytest.fixture
def scanner(order_source, storefront, tag_service, clock) -> ReconciliationScanner:
    return ReconciliationScanner(
        order_source,
        storefront,
        tag_service,
        storefront_limiter=FixedIntervalLimiter(0.55, clock),
        tag_limiter=FixedIntervalLimiter(0.15, clock),
    )


@pytest.fixture
def complimentary_service(order_source, catalog, clock) -> ComplimentaryItemService:
    return ComplimentaryItemService(
        order_source,
        CustomsLineSynthesizer(catalog),
        batch_limiter=FixedIntervalLimiter(1.0, clock),
        now_ms=lambda: 1700000000000,
    )


@pytest.fixture
def order_change_job(order_source, storefront, tag_service, clock) -> OrderChangeJob:
    def factory() -> ReconciliationScanner:
        return ReconciliationScanner(
            order_source,
            storefront,
            tag_service,
            storefront_limiter=FixedIntervalLimiter(0.55, clock),
            tag_limiter=FixedIntervalLimiter(0.15, clock),
            exclude_promotional_items=True,
        )

    return OrderChangeJob(factory, JobConfig(enabled=False, auto_tag=True), clock=clock)


# =========================================
# FastAPI / httpx AsyncClient
# =========================================
@pytest.fixture
def app(settings, catalog, scanner, complimentary_service, order_change_job) -> FastAPI:
    application = create_app(settings)
    application.state.catalog = catalog
    application.state.order_change_job = order_change_job
    application.dependency_overrides[get_app_settings] = lambda: settings
    application.dependency_overrides[get_catalog] = lambda: catalog
    application.dependency_overrides[get_scanner] = lambda: scanner
    application.dependency_overrides[get_complimentary_service] = lambda: complimentary_service
    application.dependency_overrides[get_order_change_job] = lambda: order_change_job
    return application


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        timeout=httpx.Timeout(10.0, connect=5.0, read=10.0, write=5.0, pool=5.0),
    ) as c:
        yield c
