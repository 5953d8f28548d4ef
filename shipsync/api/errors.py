# shipsync/api/errors.py
from __future__ import annotations

import logging
from typing import Dict, Tuple, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shipsync.services.errors import (
    ConfigError,
    JobAlreadyRunning,
    NotFoundError,
    PermanentError,
    ShipsyncError,
)

logger = logging.getLogger("shipsync.api")

# most specific first
_STATUS: Tuple[Tuple[Type[ShipsyncError], int, str], ...] = (
    (NotFoundError, 404, "NOT_FOUND"),
    (ConfigError, 503, "CONFIG_ERROR"),
    (JobAlreadyRunning, 409, "JOB_ALREADY_RUNNING"),
    (PermanentError, 502, "UPSTREAM_ERROR"),
)


def status_for(exc: ShipsyncError) -> Tuple[int, str]:
    for cls, status, code in _STATUS:
        if isinstance(exc, cls):
            return status, code
    return 500, "INTERNAL_ERROR"


def error_body(code: str, message: str) -> Dict[str, Dict[str, str]]:
    return {"error": {"code": code, "message": message}}


async def shipsync_error_handler(_req: Request, exc: ShipsyncError) -> JSONResponse:
    status, code = status_for(exc)
    if status >= 500:
        logger.error("%s: %s", code, exc)
    return JSONResponse(status_code=status, content=error_body(code, str(exc)))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShipsyncError, shipsync_error_handler)
