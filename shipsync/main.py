# shipsync/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shipsync import __version__
from shipsync.api.deps import JobScannerFactory
from shipsync.api.errors import install_error_handlers
from shipsync.api.routers.customs import router as customs_router
from shipsync.api.routers.order_changes import router as order_changes_router
from shipsync.core.config import AppSettings, get_settings
from shipsync.core.logging import parse_module_levels, setup_logging
from shipsync.core.scheduler import init_scheduler, shutdown_scheduler
from shipsync.metrics import router as metrics_router
from shipsync.services.customs_payload import available_versions
from shipsync.services.order_change_job import JobConfig, OrderChangeJob
from shipsync.services.tariff_catalog import TariffCatalog

logger = logging.getLogger("shipsync")


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        catalog = TariffCatalog()
        if not catalog.load(settings.TARIFF_CATALOG_PATH):
            logger.warning(
                "tariff catalog unavailable (%s); using keyword rules only",
                settings.TARIFF_CATALOG_PATH,
            )
        app.state.catalog = catalog

        scanner_factory = JobScannerFactory(settings)
        job = OrderChangeJob(
            scanner_factory,
            JobConfig.from_settings(settings),
            scan_status=settings.SCAN_ORDER_STATUS,
        )
        app.state.order_change_job = job
        scheduler = init_scheduler(job)
        try:
            yield
        finally:
            shutdown_scheduler(scheduler)
            await scanner_factory.aclose()

    app = FastAPI(
        title="shipsync",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://127.0.0.1:5173",
            "http://localhost:5173",
            "http://127.0.0.1:8000",
            "http://localhost:8000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def _unhandled_exc(_req: Request, exc: Exception):
        logger.exception("UNHANDLED_EXC: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "INTERNAL_ERROR"})

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(_req: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"detail": exc.errors()})

    @app.exception_handler(HTTPException)
    async def _http_exc(_req: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    install_error_handlers(app)

    app.include_router(order_changes_router)
    app.include_router(customs_router)
    app.include_router(metrics_router)

    @app.get("/")
    async def root():
        return {"name": "shipsync", "version": __version__}

    @app.get("/health")
    async def health(request: Request):
        catalog = getattr(request.app.state, "catalog", None)
        return {
            "status": "ok",
            "catalog_loaded": catalog is not None and catalog.loaded,
            "catalog_records": len(catalog) if catalog is not None else 0,
            "payload_versions": available_versions(),
        }

    return app


_settings = get_settings()
setup_logging(_settings.LOG_LEVEL, parse_module_levels(_settings.LOG_MODULE_LEVELS))
app = create_app()
