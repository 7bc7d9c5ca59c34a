# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

The offline components are built once at startup by init_offline() and
kept on ``app.state``. Dependencies hand them to endpoints:

Example:
    @router.get("/queue")
    async def list_pending(
        queue: SyncQueueManager = Depends(get_queue_manager),
    ):
        ...
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status

from lluminata.core.config.settings import Settings
from lluminata.domains.offline import (
    LocalStore,
    OfflineCacheLoader,
    ReconciliationClient,
    RetentionSweeper,
    SyncQueueManager,
)
from lluminata.infrastructure.background import OfflineScheduler, build_offline_scheduler
from lluminata.infrastructure.database import LocalDatabase
from lluminata.infrastructure.remote import HTTPRemoteAuthority

logger = logging.getLogger(__name__)


async def init_offline(app: FastAPI, settings: Settings) -> None:
    """Open the local database and wire the offline components onto app.state.

    Args:
        app: Application to attach the components to.
        settings: Application settings.

    Raises:
        StorageUnavailableError: If the local database cannot be opened.
    """
    database = LocalDatabase.from_settings(settings.local_store)
    await database.open()

    store = LocalStore(database, retention_days=settings.sync.retention_days)
    authority = HTTPRemoteAuthority(settings.remote)
    reconciliation = ReconciliationClient(
        store,
        authority,
        batch_size=settings.sync.batch_size,
    )
    sweeper = RetentionSweeper(store)

    app.state.database = database
    app.state.store = store
    app.state.queue = SyncQueueManager(store)
    app.state.authority = authority
    app.state.reconciliation = reconciliation
    app.state.sweeper = sweeper
    app.state.loader = OfflineCacheLoader(store, authority)
    app.state.scheduler = build_offline_scheduler(settings.sync, reconciliation, sweeper)


async def close_offline(app: FastAPI) -> None:
    """Stop the scheduler and release the remote client and local database.

    Each step runs even if an earlier one raises. A failure is
    re-raised once everything has been released.
    """
    scheduler: OfflineScheduler | None = getattr(app.state, "scheduler", None)
    authority: HTTPRemoteAuthority | None = getattr(app.state, "authority", None)
    database: LocalDatabase | None = getattr(app.state, "database", None)

    try:
        if scheduler:
            await scheduler.stop()
    finally:
        try:
            if authority and hasattr(authority, "close"):
                await authority.close()
        finally:
            if database:
                await database.close()


def _get_component(request: Request, name: str) -> Any:
    """Get a component from app.state.

    Raises:
        HTTPException: 503 if the offline components were not initialized.
    """
    component = getattr(request.app.state, name, None)
    if component is None:
        logger.error("Offline component not initialized: %s", name)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Offline store not initialized",
        )
    return component


def get_store(request: Request) -> LocalStore:
    """Get the local store."""
    return _get_component(request, "store")


def get_queue_manager(request: Request) -> SyncQueueManager:
    """Get the sync queue manager."""
    return _get_component(request, "queue")


def get_reconciliation_client(request: Request) -> ReconciliationClient:
    """Get the reconciliation client."""
    return _get_component(request, "reconciliation")


def get_sweeper(request: Request) -> RetentionSweeper:
    """Get the retention sweeper."""
    return _get_component(request, "sweeper")


def get_loader(request: Request) -> OfflineCacheLoader:
    """Get the offline cache loader."""
    return _get_component(request, "loader")
