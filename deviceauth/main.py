"""
Device auth FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from deviceauth import config, db
from deviceauth.exception_handlers import register_exception_handlers
from deviceauth.routes import cli_sessions as cli_session_routes
from deviceauth.routes import device_auth as device_auth_routes
from deviceauth.services import device_auth

logging.basicConfig(
    level=config.settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def cleanup_task():
    """
    Background task to garbage-collect long-expired device auth codes.

    Runs every CLEANUP_INTERVAL_SECONDS.
    """
    while True:
        try:
            deleted_count = await device_auth.delete_expired_codes()
            if deleted_count > 0:
                logger.info("Cleaned up %d expired device auth codes", deleted_count)
        except Exception:
            logger.exception("Error in cleanup task")

        await asyncio.sleep(config.settings.CLEANUP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Initialize database pool
    - Start background cleanup task
    - Close database pool on shutdown
    """
    await db.init_pool()
    logger.info("Database pool initialized")

    cleanup_task_handle = asyncio.create_task(cleanup_task())
    logger.info("Background cleanup task started")

    yield

    cleanup_task_handle.cancel()
    try:
        await cleanup_task_handle
    except asyncio.CancelledError:
        logger.info("Background cleanup task stopped")

    await db.close_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="Device Auth",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Register routes
app.include_router(device_auth_routes.router)
app.include_router(cli_session_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
