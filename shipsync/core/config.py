# shipsync/core/config.py
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Global settings (env vars or .env).

    Credentials are optional at load time; the adapter factories raise
    ConfigError when they are missing.
    """

    # runtime
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")
    LOG_MODULE_LEVELS: str = Field(default="", description="e.g. shipsync.adapters=DEBUG,shipsync.services=INFO")
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0)

    # ShipStation (fulfillment side)
    SHIPSTATION_API_KEY: Optional[str] = Field(default=None)
    SHIPSTATION_API_SECRET: Optional[str] = Field(default=None)
    SHIPSTATION_BASE_URL: str = Field(default="https://ssapi.shipstation.com")

    # Shopify (storefront side)
    SHOPIFY_STORE: Optional[str] = Field(default=None, description="e.g. my-shop.myshopify.com")
    SHOPIFY_ACCESS_TOKEN: Optional[str] = Field(default=None)
    SHOPIFY_API_VERSION: str = Field(default="2024-01")

    # tariff catalog (CUSMA export)
    TARIFF_CATALOG_PATH: str = Field(default="data/CUSMA.csv")

    # reconciliation
    RECONCILIATION_TAG_NAME: str = Field(default="ORDER CHANGE")
    ORDER_NUMBER_PREFIX: str = Field(default="#")
    SCAN_ORDER_STATUS: str = Field(default="awaiting_shipment")
    SCAN_DAYS: int = Field(default=30)
    SCAN_MAX_ORDERS: int = Field(default=200)
    SCAN_PAGE_SIZE: int = Field(default=500)
    SCAN_MAX_PAGES: int = Field(default=10)

    # pacing (seconds between requests) / retry
    STOREFRONT_INTERVAL_SECONDS: float = Field(default=0.55)
    TAG_INTERVAL_SECONDS: float = Field(default=0.15)
    BATCH_UPDATE_INTERVAL_SECONDS: float = Field(default=1.0)
    RETRY_ATTEMPTS: int = Field(default=3)
    RETRY_BASE_SECONDS: float = Field(default=2.0)

    # background change detection
    ORDER_CHANGE_DETECTOR_ENABLED: bool = Field(default=False)
    ORDER_CHANGE_DETECTOR_INTERVAL: int = Field(default=15, description="minutes")
    ORDER_CHANGE_DETECTOR_HOURS: int = Field(default=24)
    ORDER_CHANGE_DETECTOR_AUTO_TAG: bool = Field(default=False)
    ORDER_CHANGE_DETECTOR_MAX_ORDERS: int = Field(default=500)

    # complimentary item (gift-add flow)
    COMPLIMENTARY_SKU: str = Field(default="LIST-DEF")
    COMPLIMENTARY_NAME: str = Field(default="Complimentary stickers")
    COMPLIMENTARY_UNIT_PRICE: float = Field(default=1.00)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> AppSettings:
    """Process-wide settings entry point."""
    return AppSettings()
