# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Offline cache and sync domain.

Components:
    LocalStore: Cached students, cached lessons and the sync queue.
    SyncQueueManager: Classifies and validates mutations before queueing.
    ReconciliationClient: Drains the queue against the remote authority.
    RetentionSweeper: Prunes queue entries past the retention horizon.
    OfflineCacheLoader: Fills the cache from the remote authority.
"""

from lluminata.domains.offline.exceptions import (
    CachedRecordNotFoundError,
    InvalidSyncPayloadError,
    OfflineSyncError,
    UnknownSyncKindError,
)
from lluminata.domains.offline.loader import OfflineCacheLoader, RefreshResult
from lluminata.domains.offline.queue import SyncQueueManager, validate_payload
from lluminata.domains.offline.reconciliation import (
    ReconciliationClient,
    ReconciliationResult,
    SyncStatus,
)
from lluminata.domains.offline.retention import RetentionSweeper
from lluminata.domains.offline.store import RETENTION_DAYS, LocalStore

__all__ = [
    # Services
    "LocalStore",
    "SyncQueueManager",
    "ReconciliationClient",
    "RetentionSweeper",
    "OfflineCacheLoader",
    # Results
    "ReconciliationResult",
    "SyncStatus",
    "RefreshResult",
    # Helpers
    "RETENTION_DAYS",
    "validate_payload",
    # Exceptions
    "OfflineSyncError",
    "UnknownSyncKindError",
    "InvalidSyncPayloadError",
    "CachedRecordNotFoundError",
]
