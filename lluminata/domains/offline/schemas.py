# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Offline cache and sync queue schemas.

This module defines:
- Write models for caching students and lessons
- Read snapshots returned by the local store
- Per-kind payload models validated before a mutation is queued
- API request/response schemas for the offline endpoints

Payload models accept extra keys: the remote authority owns the payload
format, so only the fields every consumer relies on are enforced.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lluminata.infrastructure.database.models.offline import SyncKind


# =============================================================================
# Cache Write Models
# =============================================================================


class StudentRecord(BaseModel):
    """Student record to cache.

    The whole record replaces any cached record with the same UUID.
    """

    uuid: str = Field(min_length=1, description="Platform student UUID")
    name: str = Field(description="Display name")
    progress: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque progress payload owned by the platform",
    )
    pending_sync: bool = Field(
        default=False,
        description="Whether the record carries local edits not yet acknowledged",
    )

    @classmethod
    def from_remote(cls, data: dict[str, Any], pending_sync: bool = False) -> "StudentRecord":
        """Build a record from a student object returned by the platform.

        The platform object becomes the progress payload as-is.

        Args:
            data: Student object with at least ``id`` and ``name``.
            pending_sync: Pending flag to store.

        Returns:
            StudentRecord ready to cache.
        """
        return cls(
            uuid=str(data["id"]),
            name=data.get("name", ""),
            progress=data,
            pending_sync=pending_sync,
        )


class LessonRecord(BaseModel):
    """Lesson record to cache.

    Caching represents canonical server content, so local completions of a
    previously cached copy are discarded.
    """

    uuid: str = Field(min_length=1, description="Platform lesson UUID")
    title: str = Field(description="Lesson title")
    content: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque lesson content payload",
    )

    @classmethod
    def from_remote(cls, data: dict[str, Any]) -> "LessonRecord":
        """Build a record from a lesson object returned by the platform.

        Args:
            data: Lesson object with at least ``id`` and ``title``.

        Returns:
            LessonRecord ready to cache.
        """
        return cls(
            uuid=str(data["id"]),
            title=data.get("title", ""),
            content=data,
        )


# =============================================================================
# Store Read Snapshots
# =============================================================================


class StudentSnapshot(BaseModel):
    """Cached student as stored locally."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: str
    name: str
    progress: dict[str, Any]
    pending_sync: bool


class LessonSnapshot(BaseModel):
    """Cached lesson as stored locally."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: str
    title: str
    content: dict[str, Any]
    completions: list[dict[str, Any]]


class QueuedMutation(BaseModel):
    """Sync queue entry as stored locally."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: SyncKind
    payload: dict[str, Any]
    timestamp: int = Field(description="Creation time in epoch milliseconds")
    synced: bool


# =============================================================================
# Mutation Payloads
# =============================================================================


class LessonCompletionPayload(BaseModel):
    """Payload of a ``lesson_completion`` mutation."""

    model_config = ConfigDict(extra="allow")

    student_id: str = Field(min_length=1)
    lesson_id: str = Field(min_length=1)
    completed_at: datetime
    started_at: datetime | None = None
    time_spent: int | None = Field(default=None, ge=0, description="Seconds")
    score: float | None = Field(default=None, ge=0)


class AssessmentPayload(BaseModel):
    """Payload of an ``assessment`` mutation."""

    model_config = ConfigDict(extra="allow")

    student_id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    score: float = Field(ge=0)
    details: dict[str, Any] | None = None
    strengths: list[str] | None = None
    weaknesses: list[str] | None = None
    recommendations: dict[str, Any] | None = None


class ProgressPayload(BaseModel):
    """Payload of a ``progress`` mutation."""

    model_config = ConfigDict(extra="allow")

    student_id: str = Field(min_length=1)
    reading_level: int | None = None
    cognitive_level: int | None = None


PAYLOAD_MODELS: dict[SyncKind, type[BaseModel]] = {
    SyncKind.LESSON_COMPLETION: LessonCompletionPayload,
    SyncKind.ASSESSMENT: AssessmentPayload,
    SyncKind.PROGRESS: ProgressPayload,
}


# =============================================================================
# API Schemas
# =============================================================================


class StudentCacheRequest(BaseModel):
    """Request to cache a student record."""

    name: str
    progress: dict[str, Any] = Field(default_factory=dict)
    pending_sync: bool = False


class LessonCacheRequest(BaseModel):
    """Request to cache a lesson record."""

    title: str
    content: dict[str, Any] = Field(default_factory=dict)


class EnqueueRequest(BaseModel):
    """Request to queue a mutation."""

    kind: str = Field(description="lesson_completion, assessment or progress")
    payload: dict[str, Any] = Field(default_factory=dict)


class CompletionRequest(BaseModel):
    """Request to record a lesson completion locally and queue it."""

    student_id: str = Field(min_length=1)
    completed_at: datetime
    started_at: datetime | None = None
    time_spent: int | None = Field(default=None, ge=0)
    score: float | None = Field(default=None, ge=0)


class PendingQueueResponse(BaseModel):
    """Pending sync queue listing."""

    items: list[QueuedMutation]
    total: int


class ReconciliationResponse(BaseModel):
    """Outcome of a reconciliation pass."""

    skipped: bool
    attempted: int
    succeeded: int
    failed: int
    rejected: int
    unreachable: int
    failed_ids: list[int]
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_seconds: float | None = None


class SyncStatusResponse(BaseModel):
    """Current sync status for "N items pending sync" indicators."""

    pending: int
    in_progress: bool
    last_sync_at: datetime | None = None
    last_result: ReconciliationResponse | None = None


class SweepResponse(BaseModel):
    """Outcome of a retention sweep."""

    deleted: int


class RefreshResponse(BaseModel):
    """Outcome of refreshing the local cache from the platform."""

    student_uuid: str
    students_cached: int
    lessons_cached: int
