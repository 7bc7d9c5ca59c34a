# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Retention sweeper for the sync queue.

Deletes queue entries older than the retention horizon, synced or not.
An entry that could not reach the remote authority for a whole horizon
is lost. There is no dead-letter copy.
"""

import logging
from datetime import datetime

from lluminata.domains.offline.store import LocalStore
from lluminata.infrastructure.database.connection import StorageUnavailableError
from lluminata.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Prunes expired sync queue entries.

    Attributes:
        last_swept_at: When the last sweep completed.
        total_deleted: Entries deleted by this sweeper since creation.
    """

    def __init__(self, store: LocalStore) -> None:
        """Initialize the sweeper.

        Args:
            store: Local store owning the sync queue.
        """
        self._store = store
        self.last_swept_at: datetime | None = None
        self.total_deleted = 0

    async def sweep(self) -> int:
        """Delete queue entries older than the retention horizon.

        Returns:
            Number of deleted entries.

        Raises:
            StorageUnavailableError: If the store cannot be written.
        """
        try:
            deleted = await self._store.clear_old_data()
        except StorageUnavailableError as e:
            logger.error("Retention sweep failed: %s", str(e))
            raise

        self.last_swept_at = utc_now()
        self.total_deleted += deleted
        logger.info(
            "Retention sweep completed: deleted=%d, horizon=%dd",
            deleted,
            self._store.retention_days,
        )
        return deleted
