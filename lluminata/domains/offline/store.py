# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local store for cached entities and the sync queue.

The LocalStore is the only component that touches the students, lessons
and sync_queue tables. Each operation runs in its own session and
transaction, so every call is durable once it returns.

Concurrency policy: students and lessons are upserted by UUID with
SQLite's ``INSERT ... ON CONFLICT DO UPDATE``. Concurrent writers to one
UUID never fail; the last writer wins. There is no version check to
detect lost updates.

Example:
    >>> store = LocalStore(database)
    >>> await store.cache_student(StudentRecord(uuid="s-1", name="Ana"))
    >>> entry = await store.add_to_sync_queue(SyncKind.PROGRESS, {"student_id": "s-1"})
    >>> [e.id for e in await store.get_pending_sync()]
    [1]
"""

import json
import logging
from typing import Any, Callable, Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncSession

from lluminata.domains.offline.exceptions import (
    CachedRecordNotFoundError,
    UnknownSyncKindError,
)
from lluminata.domains.offline.schemas import (
    LessonRecord,
    LessonSnapshot,
    QueuedMutation,
    StudentRecord,
    StudentSnapshot,
)
from lluminata.infrastructure.database.connection import LocalDatabase
from lluminata.infrastructure.database.models.offline import (
    CachedLesson,
    CachedStudent,
    SyncKind,
    SyncQueueEntry,
)
from lluminata.utils.datetime import (
    days_ago_millis,
    epoch_millis,
    format_iso,
    from_epoch_millis,
)

logger = logging.getLogger(__name__)

# Queue entries older than this are pruned whether or not they synced
RETENTION_DAYS = 7

# Keeps IN (...) lists under SQLite's bound parameter limit
_MARK_CHUNK_SIZE = 500


def coerce_sync_kind(kind: SyncKind | str) -> SyncKind:
    """Resolve a kind value to SyncKind.

    Args:
        kind: SyncKind member or its string value.

    Returns:
        The matching SyncKind.

    Raises:
        UnknownSyncKindError: If the value is not a supported kind.
    """
    if isinstance(kind, SyncKind):
        return kind
    try:
        return SyncKind(kind)
    except ValueError as e:
        raise UnknownSyncKindError(kind) from e


class LocalStore:
    """Durable local persistence for cached entities and the sync queue.

    Attributes:
        retention_days: Age in days after which queue entries are pruned.
    """

    def __init__(
        self,
        database: LocalDatabase,
        clock: Callable[[], int] = epoch_millis,
        retention_days: int = RETENTION_DAYS,
    ) -> None:
        """Initialize the store.

        Args:
            database: Opened local database.
            clock: Returns the current time in epoch milliseconds.
            retention_days: Retention horizon for the sync queue.
        """
        self._db = database
        self._clock = clock
        self.retention_days = retention_days

    # =========================================================================
    # Students
    # =========================================================================

    async def cache_student(self, record: StudentRecord) -> StudentSnapshot:
        """Insert or fully replace the cached student with ``record.uuid``.

        Args:
            record: Student record, including the pending flag to store.

        Returns:
            The stored student.

        Raises:
            StorageUnavailableError: If the store cannot be written.
        """
        values = {
            "uuid": record.uuid,
            "name": record.name,
            "progress": record.progress,
            "pending_sync": record.pending_sync,
        }
        stmt = insert(CachedStudent).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[CachedStudent.uuid],
            set_={
                "name": stmt.excluded.name,
                "progress": stmt.excluded.progress,
                "pending_sync": stmt.excluded.pending_sync,
            },
        )

        async with self._db.session() as session:
            await session.execute(stmt)
            result = await session.execute(
                select(CachedStudent).where(CachedStudent.uuid == record.uuid)
            )
            student = result.scalar_one()
            snapshot = StudentSnapshot.model_validate(student)

        logger.debug(
            "Cached student %s (pending_sync=%s)", record.uuid, record.pending_sync
        )
        return snapshot

    async def get_cached_student(self, uuid: str) -> StudentSnapshot | None:
        """Look up a cached student by UUID.

        Returns:
            The cached student, or None if not cached.
        """
        async with self._db.session() as session:
            result = await session.execute(
                select(CachedStudent).where(CachedStudent.uuid == uuid)
            )
            student = result.scalar_one_or_none()
            return StudentSnapshot.model_validate(student) if student else None

    async def get_students_pending_sync(self) -> list[StudentSnapshot]:
        """List cached students flagged with unacknowledged local edits."""
        async with self._db.session() as session:
            result = await session.execute(
                select(CachedStudent)
                .where(CachedStudent.pending_sync.is_(True))
                .order_by(CachedStudent.id)
            )
            return [StudentSnapshot.model_validate(s) for s in result.scalars().all()]

    # =========================================================================
    # Lessons
    # =========================================================================

    async def cache_lesson(self, record: LessonRecord) -> LessonSnapshot:
        """Insert or fully replace the cached lesson with ``record.uuid``.

        Local completions of a previously cached copy are reset to empty.

        Args:
            record: Lesson record with canonical server content.

        Returns:
            The stored lesson.

        Raises:
            StorageUnavailableError: If the store cannot be written.
        """
        stmt = insert(CachedLesson).values(
            uuid=record.uuid,
            title=record.title,
            content=record.content,
            completions=[],
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CachedLesson.uuid],
            set_={
                "title": stmt.excluded.title,
                "content": stmt.excluded.content,
                "completions": stmt.excluded.completions,
            },
        )

        async with self._db.session() as session:
            await session.execute(stmt)
            result = await session.execute(
                select(CachedLesson).where(CachedLesson.uuid == record.uuid)
            )
            snapshot = LessonSnapshot.model_validate(result.scalar_one())

        logger.debug("Cached lesson %s", record.uuid)
        return snapshot

    async def get_cached_lessons(self) -> list[LessonSnapshot]:
        """List every cached lesson in insertion order."""
        async with self._db.session() as session:
            result = await session.execute(select(CachedLesson).order_by(CachedLesson.id))
            return [LessonSnapshot.model_validate(lesson) for lesson in result.scalars().all()]

    async def get_cached_lesson(self, uuid: str) -> LessonSnapshot | None:
        """Look up a cached lesson by UUID.

        Returns:
            The cached lesson, or None if not cached.
        """
        async with self._db.session() as session:
            result = await session.execute(
                select(CachedLesson).where(CachedLesson.uuid == uuid)
            )
            lesson = result.scalar_one_or_none()
            return LessonSnapshot.model_validate(lesson) if lesson else None

    async def record_lesson_completion(
        self,
        lesson_uuid: str,
        completion: dict[str, Any],
    ) -> LessonSnapshot:
        """Append a local completion record to a cached lesson.

        Args:
            lesson_uuid: UUID of the cached lesson.
            completion: JSON-ready completion record to append.

        Returns:
            The updated lesson.

        Raises:
            CachedRecordNotFoundError: If the lesson is not cached.
            StorageUnavailableError: If the store cannot be written.
        """
        async with self._db.session() as session:
            if not await self._append_completion(session, lesson_uuid, completion):
                raise CachedRecordNotFoundError("lesson", lesson_uuid)

            result = await session.execute(
                select(CachedLesson).where(CachedLesson.uuid == lesson_uuid)
            )
            snapshot = LessonSnapshot.model_validate(result.scalar_one())

        logger.debug(
            "Recorded completion for lesson %s (%d total)",
            lesson_uuid,
            len(snapshot.completions),
        )
        return snapshot

    async def _append_completion(
        self,
        session: AsyncSession,
        lesson_uuid: str,
        completion: dict[str, Any],
    ) -> bool:
        """Append to a lesson's completions in a single UPDATE.

        The array is extended inside SQLite, so concurrent appends to one
        lesson never overwrite each other.

        Returns:
            False if the lesson is not cached.
        """
        result = await session.execute(
            update(CachedLesson)
            .where(CachedLesson.uuid == lesson_uuid)
            .values(
                completions=func.json_insert(
                    CachedLesson.completions,
                    "$[#]",
                    func.json(json.dumps(completion)),
                )
            )
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    # =========================================================================
    # Sync Queue
    # =========================================================================

    async def add_to_sync_queue(
        self,
        kind: SyncKind | str,
        payload: dict[str, Any],
    ) -> QueuedMutation:
        """Append a pending mutation stamped with the current time.

        Args:
            kind: Mutation kind.
            payload: Already validated mutation payload.

        Returns:
            The stored queue entry.

        Raises:
            UnknownSyncKindError: If ``kind`` is not supported.
            StorageUnavailableError: If the entry could not be written. The
                mutation is then not durable and will not sync.
        """
        sync_kind = coerce_sync_kind(kind)

        async with self._db.session() as session:
            queued = await self._insert_queue_entry(session, sync_kind, payload)

        logger.debug(
            "Queued %s mutation id=%d at %d", sync_kind.value, queued.id, queued.timestamp
        )
        return queued

    async def queue_lesson_completion(
        self,
        lesson_uuid: str,
        completion: dict[str, Any],
    ) -> tuple[QueuedMutation, bool]:
        """Queue a lesson completion and append it to the cached lesson.

        Both writes share one transaction: either the completion is queued
        and annotated, or nothing is written. A lesson that is not cached
        only gets the queue entry.

        Args:
            lesson_uuid: UUID of the completed lesson.
            completion: Already validated completion payload.

        Returns:
            The stored queue entry and whether the cached lesson was annotated.

        Raises:
            StorageUnavailableError: If the store cannot be written. Neither
                write is then durable.
        """
        async with self._db.session() as session:
            queued = await self._insert_queue_entry(
                session, SyncKind.LESSON_COMPLETION, completion
            )
            annotated = await self._append_completion(session, lesson_uuid, completion)

        logger.debug(
            "Queued completion for lesson %s id=%d (annotated=%s)",
            lesson_uuid,
            queued.id,
            annotated,
        )
        return queued, annotated

    async def _insert_queue_entry(
        self,
        session: AsyncSession,
        kind: SyncKind,
        payload: dict[str, Any],
    ) -> QueuedMutation:
        """Insert a pending entry stamped with the clock time."""
        entry = SyncQueueEntry(
            kind=kind.value,
            payload=payload,
            timestamp=self._clock(),
            synced=False,
        )
        session.add(entry)
        await session.flush()
        return QueuedMutation.model_validate(entry)

    async def get_pending_sync(self) -> list[QueuedMutation]:
        """List unsynced entries, oldest first.

        Timestamp ties fall back to insertion order.
        """
        async with self._db.session() as session:
            result = await session.execute(
                select(SyncQueueEntry)
                .where(SyncQueueEntry.synced.is_(False))
                .order_by(SyncQueueEntry.timestamp, SyncQueueEntry.id)
            )
            return [QueuedMutation.model_validate(e) for e in result.scalars().all()]

    async def count_pending_sync(self) -> int:
        """Count unsynced entries."""
        async with self._db.session() as session:
            result = await session.execute(
                select(func.count())
                .select_from(SyncQueueEntry)
                .where(SyncQueueEntry.synced.is_(False))
            )
            return int(result.scalar_one())

    async def mark_as_synced(self, ids: Iterable[int]) -> int:
        """Flag entries as acknowledged by the remote authority.

        Ids that are absent or already synced are ignored.

        Args:
            ids: Local identities of the acknowledged entries.

        Returns:
            Number of entries flipped from pending to synced.

        Raises:
            StorageUnavailableError: If the store cannot be written.
        """
        id_list = sorted(set(ids))
        if not id_list:
            return 0

        changed = 0
        async with self._db.session() as session:
            for start in range(0, len(id_list), _MARK_CHUNK_SIZE):
                chunk = id_list[start : start + _MARK_CHUNK_SIZE]
                result = await session.execute(
                    update(SyncQueueEntry)
                    .where(
                        SyncQueueEntry.id.in_(chunk),
                        SyncQueueEntry.synced.is_(False),
                    )
                    .values(synced=True)
                    .execution_options(synchronize_session=False)
                )
                changed += result.rowcount or 0

        logger.debug("Marked %d of %d queue entries synced", changed, len(id_list))
        return changed

    async def clear_old_data(self) -> int:
        """Delete queue entries older than the retention horizon.

        Unsynced entries are deleted too: a mutation that could not reach
        the remote authority within the horizon is dropped.

        Returns:
            Number of deleted entries.

        Raises:
            StorageUnavailableError: If the store cannot be written.
        """
        cutoff = days_ago_millis(self.retention_days, now_millis=self._clock())

        async with self._db.session() as session:
            result = await session.execute(
                delete(SyncQueueEntry)
                .where(SyncQueueEntry.timestamp < cutoff)
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount or 0

        if deleted:
            logger.info(
                "Pruned %d sync queue entries created before %s",
                deleted,
                format_iso(from_epoch_millis(cutoff)),
            )
        return deleted
