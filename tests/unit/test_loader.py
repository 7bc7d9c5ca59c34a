# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the offline cache loader."""

from unittest.mock import AsyncMock

import pytest

from lluminata.domains.offline import OfflineCacheLoader
from lluminata.domains.offline.schemas import LessonRecord
from lluminata.infrastructure.remote import RemoteUnreachableError


@pytest.fixture
def bundle(sample_student_id, sample_lesson_id):
    """Provide an offline bundle as returned by the platform."""
    return {
        "student": {"id": sample_student_id, "name": "Ana", "readingLevel": 3},
        "lessons": [
            {"id": sample_lesson_id, "title": "Fractions", "isOfflineAvailable": True},
            {"id": "l-2", "title": "Decimals"},
            {"title": "No id"},
        ],
    }


class TestOfflineCacheLoader:
    """Tests for OfflineCacheLoader.refresh."""

    @pytest.mark.asyncio
    async def test_refresh_caches_student_and_lessons(
        self, store, bundle, sample_student_id, sample_lesson_id
    ):
        """Test that the bundle lands in the local store."""
        authority = AsyncMock()
        authority.fetch_offline_bundle.return_value = bundle
        loader = OfflineCacheLoader(store, authority)

        result = await loader.refresh(sample_student_id)

        authority.fetch_offline_bundle.assert_awaited_once_with(sample_student_id)
        assert result.students_cached == 1
        assert result.lessons_cached == 2

        student = await store.get_cached_student(sample_student_id)
        assert student.name == "Ana"
        assert student.progress["readingLevel"] == 3
        assert student.pending_sync is False

        lesson = await store.get_cached_lesson(sample_lesson_id)
        assert lesson.title == "Fractions"
        assert lesson.content["isOfflineAvailable"] is True

    @pytest.mark.asyncio
    async def test_refresh_resets_local_completions(
        self, store, bundle, sample_student_id, sample_lesson_id
    ):
        """Test that refreshed lessons drop local completions."""
        await store.cache_lesson(LessonRecord(uuid=sample_lesson_id, title="Old"))
        await store.record_lesson_completion(sample_lesson_id, {"score": 1})
        authority = AsyncMock()
        authority.fetch_offline_bundle.return_value = bundle

        await OfflineCacheLoader(store, authority).refresh(sample_student_id)

        lesson = await store.get_cached_lesson(sample_lesson_id)
        assert lesson.completions == []

    @pytest.mark.asyncio
    async def test_refresh_with_empty_bundle(self, store, sample_student_id):
        """Test a bundle without a student or lessons."""
        authority = AsyncMock()
        authority.fetch_offline_bundle.return_value = {"student": {}, "lessons": []}

        result = await OfflineCacheLoader(store, authority).refresh(sample_student_id)

        assert (result.students_cached, result.lessons_cached) == (0, 0)

    @pytest.mark.asyncio
    async def test_refresh_propagates_remote_failure(self, store, sample_student_id):
        """Test that remote failures reach the caller and nothing is cached."""
        authority = AsyncMock()
        authority.fetch_offline_bundle.side_effect = RemoteUnreachableError("offline")

        with pytest.raises(RemoteUnreachableError):
            await OfflineCacheLoader(store, authority).refresh(sample_student_id)

        assert await store.get_cached_student(sample_student_id) is None
