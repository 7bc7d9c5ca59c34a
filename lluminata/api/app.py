# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the application factory for the offline sync service.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lluminata import __version__
from lluminata.api.dependencies import close_offline, init_offline
from lluminata.api.v1 import router as v1_router
from lluminata.core.config import get_settings
from lluminata.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes and cleans up:
    - Local SQLite store
    - Remote authority client
    - APScheduler jobs for reconciliation and retention

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting offline sync service",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    # The service cannot run without its local store
    await init_offline(app, settings)
    logger.info("Local store opened at %s", settings.local_store.path)

    try:
        await app.state.scheduler.start()
        logger.info("Offline scheduler started")
    except Exception as e:
        logger.warning("Failed to start offline scheduler: %s", str(e))

    logger.info("Offline sync service started successfully")

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    logger.info("Shutting down offline sync service")

    try:
        await close_offline(app)
        logger.info("Offline components closed")
    except Exception as e:
        logger.warning("Error closing offline components: %s", str(e))

    logger.info("Offline sync service shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Lluminata Offline Sync",
        description="Local cache and sync queue for offline learning",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # =========================================================================
    # Middleware
    # =========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(v1_router)

    return app
