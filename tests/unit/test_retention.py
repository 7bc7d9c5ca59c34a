# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the retention sweeper."""

from unittest.mock import AsyncMock

import pytest

from lluminata.domains.offline import RetentionSweeper
from lluminata.infrastructure.database import StorageUnavailableError
from lluminata.infrastructure.database.models.offline import SyncKind


class TestRetentionSweeper:
    """Tests for RetentionSweeper.sweep."""

    @pytest.mark.asyncio
    async def test_sweep_deletes_expired_entries(self, store, clock):
        """Test that entries past the horizon are deleted, pending or not."""
        await store.add_to_sync_queue(SyncKind.PROGRESS, {"student_id": "a"})
        clock.advance_days(10)
        await store.add_to_sync_queue(SyncKind.PROGRESS, {"student_id": "b"})
        sweeper = RetentionSweeper(store)

        deleted = await sweeper.sweep()

        assert deleted == 1
        assert await store.count_pending_sync() == 1
        assert sweeper.total_deleted == 1
        assert sweeper.last_swept_at is not None

    @pytest.mark.asyncio
    async def test_sweep_accumulates_totals(self, store, clock):
        """Test that totals add up across sweeps."""
        sweeper = RetentionSweeper(store)
        await store.add_to_sync_queue(SyncKind.PROGRESS, {"student_id": "a"})
        clock.advance_days(8)
        await sweeper.sweep()
        await store.add_to_sync_queue(SyncKind.PROGRESS, {"student_id": "b"})
        clock.advance_days(8)

        await sweeper.sweep()

        assert sweeper.total_deleted == 2

    @pytest.mark.asyncio
    async def test_sweep_propagates_storage_failure(self):
        """Test that a storage failure reaches the caller."""
        store = AsyncMock()
        store.clear_old_data.side_effect = StorageUnavailableError("locked")
        sweeper = RetentionSweeper(store)

        with pytest.raises(StorageUnavailableError):
            await sweeper.sweep()

        assert sweeper.last_swept_at is None
