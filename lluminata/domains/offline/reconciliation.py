# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reconciliation of the sync queue against the remote authority.

A reconciliation pass:
1. Reads every pending entry, oldest first
2. Submits the entries one at a time, in order, awaiting each
3. Marks acknowledged entries synced in batches
4. Leaves failed entries pending for the next pass

One entry failing never stops the pass. The pass reports how many entries
succeeded and failed so the caller can decide whether to retry, back off
or show a "not fully synced" indicator.

Passes never overlap. A pass requested while another is still running
returns immediately with ``skipped=True``, so the same entry is never
submitted twice concurrently.

Example:
    >>> client = ReconciliationClient(store, authority)
    >>> result = await client.reconcile()
    >>> result.succeeded, result.failed
    (2, 1)
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import uuid4

from lluminata.domains.offline.schemas import QueuedMutation
from lluminata.domains.offline.store import LocalStore
from lluminata.infrastructure.remote.client import RemoteAuthority
from lluminata.infrastructure.remote.exceptions import (
    RemoteRejectedError,
    RemoteUnreachableError,
)
from lluminata.utils.datetime import utc_now
from lluminata.utils.logging import bound_context, get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 50

RejectionHook = Callable[[QueuedMutation, RemoteRejectedError], Awaitable[None] | None]


@dataclass
class ReconciliationResult:
    """Result of a reconciliation pass.

    Attributes:
        skipped: True if another pass was already running.
        attempted: Entries submitted to the remote authority.
        succeeded: Entries acknowledged and marked synced.
        failed: Entries left pending.
        rejected: Failed entries the remote authority refused.
        unreachable: Failed entries that hit transient failures.
        failed_ids: Local ids of the entries left pending.
        started_at: When the pass started.
        completed_at: When the pass completed.
    """

    skipped: bool = False
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    rejected: int = 0
    unreachable: int = 0
    failed_ids: list[int] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def fully_synced(self) -> bool:
        """Whether the pass ran and left nothing behind."""
        return not self.skipped and self.failed == 0

    @property
    def duration_seconds(self) -> float | None:
        """Get pass duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "skipped": self.skipped,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "rejected": self.rejected,
            "unreachable": self.unreachable,
            "failed_ids": list(self.failed_ids),
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class SyncStatus:
    """Snapshot of the sync state for user-facing indicators.

    Attributes:
        pending: Entries still waiting for acknowledgment.
        in_progress: Whether a pass is running.
        last_sync_at: Completion time of the last pass that left nothing pending.
        last_result: Result of the last pass that ran.
    """

    pending: int
    in_progress: bool
    last_sync_at: datetime | None = None
    last_result: ReconciliationResult | None = None


class ReconciliationClient:
    """Drains the sync queue against the remote authority.

    Attributes:
        batch_size: Acknowledged entries marked synced per store write.
    """

    def __init__(
        self,
        store: LocalStore,
        authority: RemoteAuthority,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_rejected: RejectionHook | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            store: Local store owning the sync queue.
            authority: Remote system of record.
            batch_size: Acknowledged entries marked synced per store write.
            on_rejected: Called for every entry the remote authority refuses.
                Rejected entries stay pending either way; the hook is where a
                retry limit or dead-letter policy can be plugged in.
        """
        self._store = store
        self._authority = authority
        self.batch_size = max(1, batch_size)
        self._on_rejected = on_rejected
        self._lock = asyncio.Lock()
        self._last_result: ReconciliationResult | None = None
        self._last_sync_at: datetime | None = None

    @property
    def in_progress(self) -> bool:
        """Whether a pass is currently running."""
        return self._lock.locked()

    @property
    def last_result(self) -> ReconciliationResult | None:
        """Result of the last pass that ran."""
        return self._last_result

    async def reconcile(self) -> ReconciliationResult:
        """Run one reconciliation pass.

        Returns:
            Aggregate result of the pass, or ``skipped=True`` when another
            pass is running.

        Raises:
            StorageUnavailableError: If the queue cannot be read or
                acknowledged entries cannot be marked synced.
        """
        if self._lock.locked():
            logger.info("reconciliation_skipped", reason="pass already in progress")
            return ReconciliationResult(skipped=True)

        async with self._lock:
            with bound_context(pass_id=uuid4().hex[:12]):
                result = await self._run_pass()

        self._last_result = result
        if result.fully_synced:
            self._last_sync_at = result.completed_at
        return result

    async def _run_pass(self) -> ReconciliationResult:
        """Submit pending entries in order and record the outcome."""
        result = ReconciliationResult(started_at=utc_now())
        pending = await self._store.get_pending_sync()

        logger.info("reconciliation_started", pending=len(pending))

        acknowledged: list[int] = []
        for entry in pending:
            result.attempted += 1

            if await self._submit(entry, result):
                acknowledged.append(entry.id)
                result.succeeded += 1
            else:
                result.failed += 1
                result.failed_ids.append(entry.id)

            if len(acknowledged) >= self.batch_size:
                await self._store.mark_as_synced(acknowledged)
                acknowledged = []

        if acknowledged:
            await self._store.mark_as_synced(acknowledged)

        result.completed_at = utc_now()
        logger.info(
            "reconciliation_completed",
            attempted=result.attempted,
            succeeded=result.succeeded,
            failed=result.failed,
            rejected=result.rejected,
            unreachable=result.unreachable,
            duration_seconds=result.duration_seconds,
        )
        return result

    async def _submit(self, entry: QueuedMutation, result: ReconciliationResult) -> bool:
        """Submit one entry, recording any failure on ``result``.

        Returns:
            True if the remote authority acknowledged the entry.
        """
        try:
            await self._authority.submit(entry.kind, entry.payload)
            return True
        except RemoteRejectedError as e:
            result.rejected += 1
            logger.warning(
                "entry_rejected",
                entry_id=entry.id,
                kind=entry.kind.value,
                status_code=e.status_code,
                error=str(e),
            )
            await self._notify_rejected(entry, e)
        except RemoteUnreachableError as e:
            result.unreachable += 1
            logger.warning(
                "entry_unreachable",
                entry_id=entry.id,
                kind=entry.kind.value,
                error=str(e),
            )
        except Exception as e:
            logger.error(
                "entry_failed",
                entry_id=entry.id,
                kind=entry.kind.value,
                error=str(e),
                exc_info=True,
            )
        return False

    async def _notify_rejected(self, entry: QueuedMutation, error: RemoteRejectedError) -> None:
        """Invoke the rejection hook without letting it break the pass."""
        if self._on_rejected is None:
            return
        try:
            outcome = self._on_rejected(entry, error)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error("rejection_hook_failed", entry_id=entry.id, error=str(e))

    async def status(self) -> SyncStatus:
        """Report pending count and the outcome of the last pass.

        Raises:
            StorageUnavailableError: If the queue cannot be read.
        """
        return SyncStatus(
            pending=await self._store.count_pending_sync(),
            in_progress=self.in_progress,
            last_sync_at=self._last_sync_at,
            last_result=self._last_result,
        )
