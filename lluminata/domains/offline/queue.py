# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sync queue manager.

Every locally originated mutation goes through SyncQueueManager before it
reaches the local store. The manager:

1. Classifies the intent as exactly one SyncKind, rejecting anything else
2. Validates the payload against the kind's schema
3. Appends the normalized payload to the sync queue

Pending entries are exposed oldest first. Timestamps are not guaranteed
unique; ties fall back to insertion order.

Example:
    >>> manager = SyncQueueManager(store)
    >>> await manager.enqueue("progress", {"student_id": "s-1", "reading_level": 3})
    >>> await manager.pending_count()
    1
"""

import logging
from typing import Any

from pydantic import ValidationError

from lluminata.domains.offline.exceptions import InvalidSyncPayloadError
from lluminata.domains.offline.schemas import PAYLOAD_MODELS, QueuedMutation
from lluminata.domains.offline.store import LocalStore, coerce_sync_kind
from lluminata.infrastructure.database.models.offline import SyncKind

logger = logging.getLogger(__name__)


def validate_payload(kind: SyncKind, payload: dict[str, Any]) -> dict[str, Any]:
    """Validate and normalize a payload for its kind.

    Datetimes are normalized to ISO 8601 strings and unset optional fields
    are dropped. Extra keys pass through.

    Args:
        kind: Mutation kind.
        payload: Raw payload.

    Returns:
        JSON-ready payload.

    Raises:
        InvalidSyncPayloadError: If the payload does not match the schema.
    """
    model = PAYLOAD_MODELS[kind]
    try:
        validated = model.model_validate(payload)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise InvalidSyncPayloadError(kind.value, errors) from e
    return validated.model_dump(mode="json", exclude_none=True)


class SyncQueueManager:
    """Classifies, validates and queues local mutations."""

    def __init__(self, store: LocalStore) -> None:
        """Initialize the manager.

        Args:
            store: Local store owning the sync queue.
        """
        self._store = store

    async def enqueue(self, kind: SyncKind | str, payload: dict[str, Any]) -> QueuedMutation:
        """Queue a mutation for the remote authority.

        Args:
            kind: Mutation kind or its string value.
            payload: Mutation payload.

        Returns:
            The stored queue entry.

        Raises:
            UnknownSyncKindError: If ``kind`` is not supported.
            InvalidSyncPayloadError: If the payload is invalid for ``kind``.
            StorageUnavailableError: If the entry could not be written.
        """
        sync_kind = coerce_sync_kind(kind)
        normalized = validate_payload(sync_kind, payload)
        entry = await self._store.add_to_sync_queue(sync_kind, normalized)

        logger.info("Queued %s mutation (id=%d)", sync_kind.value, entry.id)
        return entry

    async def enqueue_lesson_completion(
        self,
        lesson_uuid: str,
        payload: dict[str, Any],
    ) -> QueuedMutation:
        """Queue a lesson completion and annotate the cached lesson.

        The queue entry and the annotation are written in one transaction.
        The completion is queued even when the lesson is not cached; the
        local annotation is then skipped.

        Args:
            lesson_uuid: UUID of the completed lesson.
            payload: Completion payload. A ``lesson_id`` in it must equal
                ``lesson_uuid``; when absent it is set from ``lesson_uuid``.

        Returns:
            The stored queue entry.

        Raises:
            InvalidSyncPayloadError: If the payload is invalid or names a
                different lesson.
            StorageUnavailableError: If the store cannot be written.
        """
        given = payload.get("lesson_id")
        if given is not None and given != lesson_uuid:
            raise InvalidSyncPayloadError(
                SyncKind.LESSON_COMPLETION.value,
                [f"lesson_id: does not match lesson {lesson_uuid}"],
            )

        normalized = validate_payload(
            SyncKind.LESSON_COMPLETION,
            {**payload, "lesson_id": lesson_uuid},
        )
        entry, annotated = await self._store.queue_lesson_completion(lesson_uuid, normalized)

        if not annotated:
            logger.debug("Lesson %s not cached, completion queued only", lesson_uuid)
        logger.info("Queued lesson completion for %s (id=%d)", lesson_uuid, entry.id)
        return entry

    async def pending(self) -> list[QueuedMutation]:
        """List pending entries, oldest first."""
        return await self._store.get_pending_sync()

    async def pending_count(self) -> int:
        """Count pending entries."""
        return await self._store.count_pending_sync()
