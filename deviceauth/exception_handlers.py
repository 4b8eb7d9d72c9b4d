"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain exceptions to
JSON responses the CLI and browser page can branch on.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from deviceauth.exceptions import DeviceAuthException

logger = logging.getLogger(__name__)


async def _device_auth_exception_handler(request: Request, exc: DeviceAuthException) -> JSONResponse:
    """Return {"error": code, "detail": message} with the exception's status code."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc.error_code, request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500 without leaking internals."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app. Call once after creating the app."""
    app.add_exception_handler(DeviceAuthException, _device_auth_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
