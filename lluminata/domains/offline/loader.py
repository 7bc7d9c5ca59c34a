# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Offline cache loader.

Downloads a student's offline bundle from the remote authority and writes
it to the local store, so the student and their lessons are available
without connectivity.

Example:
    >>> loader = OfflineCacheLoader(store, authority)
    >>> result = await loader.refresh("550e8400-e29b-41d4-a716-446655440001")
    >>> result.lessons_cached
    20
"""

import logging
from dataclasses import dataclass

from lluminata.domains.offline.schemas import LessonRecord, StudentRecord
from lluminata.domains.offline.store import LocalStore
from lluminata.infrastructure.remote.client import RemoteAuthority

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Result of a cache refresh.

    Attributes:
        student_uuid: Student the bundle was fetched for.
        students_cached: Student records written (0 or 1).
        lessons_cached: Lesson records written.
    """

    student_uuid: str
    students_cached: int = 0
    lessons_cached: int = 0


class OfflineCacheLoader:
    """Populates the local store from the remote authority."""

    def __init__(self, store: LocalStore, authority: RemoteAuthority) -> None:
        """Initialize the loader.

        Args:
            store: Local store to write to.
            authority: Remote authority to download from.
        """
        self._store = store
        self._authority = authority

    async def refresh(self, student_uuid: str) -> RefreshResult:
        """Download and cache a student's offline bundle.

        The student is cached with ``pending_sync=False`` and every lesson
        is re-cached, which resets its local completions.

        Args:
            student_uuid: Platform student UUID.

        Returns:
            Counts of cached records.

        Raises:
            RemoteRejectedError: If the remote authority refused the request.
            RemoteUnreachableError: If the remote authority is unreachable.
            StorageUnavailableError: If the store cannot be written.
        """
        logger.info("Refreshing offline cache for student %s", student_uuid)
        bundle = await self._authority.fetch_offline_bundle(student_uuid)
        result = RefreshResult(student_uuid=student_uuid)

        student = bundle.get("student") or {}
        if student.get("id"):
            await self._store.cache_student(StudentRecord.from_remote(student))
            result.students_cached = 1

        for lesson in bundle.get("lessons") or []:
            if not lesson.get("id"):
                logger.warning("Skipping lesson without id in offline bundle")
                continue
            await self._store.cache_lesson(LessonRecord.from_remote(lesson))
            result.lessons_cached += 1

        logger.info(
            "Offline cache refreshed for %s: students=%d, lessons=%d",
            student_uuid,
            result.students_cached,
            result.lessons_cached,
        )
        return result
