# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Offline cache and sync API endpoints.

This module provides endpoints for the local cache and sync queue:
- GET /status - Pending count and last reconciliation outcome
- GET /queue - List pending mutations
- POST /queue - Queue a mutation
- POST /reconcile - Run a reconciliation pass
- POST /sweep - Run the retention sweep
- PUT /students/{uuid} - Cache a student
- GET /students/{uuid} - Get a cached student
- GET /lessons - List cached lessons
- PUT /lessons/{uuid} - Cache a lesson
- GET /lessons/{uuid} - Get a cached lesson
- POST /lessons/{uuid}/completions - Record and queue a lesson completion
- POST /refresh/{student_uuid} - Refresh the cache from the platform
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from lluminata.api.dependencies import (
    get_loader,
    get_queue_manager,
    get_reconciliation_client,
    get_store,
    get_sweeper,
)
from lluminata.domains.offline import (
    InvalidSyncPayloadError,
    LocalStore,
    OfflineCacheLoader,
    ReconciliationClient,
    RetentionSweeper,
    SyncQueueManager,
    UnknownSyncKindError,
)
from lluminata.domains.offline.reconciliation import ReconciliationResult
from lluminata.domains.offline.schemas import (
    CompletionRequest,
    EnqueueRequest,
    LessonCacheRequest,
    LessonRecord,
    LessonSnapshot,
    PendingQueueResponse,
    QueuedMutation,
    ReconciliationResponse,
    RefreshResponse,
    StudentCacheRequest,
    StudentRecord,
    StudentSnapshot,
    SweepResponse,
    SyncStatusResponse,
)
from lluminata.infrastructure.database import StorageUnavailableError
from lluminata.infrastructure.remote import RemoteAuthorityError

logger = logging.getLogger(__name__)

router = APIRouter()


def _storage_unavailable(e: StorageUnavailableError) -> HTTPException:
    """Build the 503 response for a storage failure."""
    logger.error("Local store unavailable: %s", str(e))
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Local store unavailable",
    )


def _to_response(result: ReconciliationResult) -> ReconciliationResponse:
    """Convert a reconciliation result to its API response."""
    return ReconciliationResponse(**result.to_dict())


# =============================================================================
# Sync Queue
# =============================================================================


@router.get(
    "/status",
    response_model=SyncStatusResponse,
    summary="Get sync status",
    description="Pending mutation count and the outcome of the last reconciliation pass.",
)
async def get_sync_status(
    reconciliation: ReconciliationClient = Depends(get_reconciliation_client),
) -> SyncStatusResponse:
    """Get the current sync status."""
    try:
        sync_status = await reconciliation.status()
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)

    return SyncStatusResponse(
        pending=sync_status.pending,
        in_progress=sync_status.in_progress,
        last_sync_at=sync_status.last_sync_at,
        last_result=_to_response(sync_status.last_result) if sync_status.last_result else None,
    )


@router.get(
    "/queue",
    response_model=PendingQueueResponse,
    summary="List pending mutations",
    description="Mutations not yet acknowledged by the platform, oldest first.",
)
async def list_pending(
    queue: SyncQueueManager = Depends(get_queue_manager),
) -> PendingQueueResponse:
    """List pending sync queue entries."""
    try:
        items = await queue.pending()
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)

    return PendingQueueResponse(items=items, total=len(items))


@router.post(
    "/queue",
    response_model=QueuedMutation,
    status_code=status.HTTP_201_CREATED,
    summary="Queue a mutation",
    description="Validate and queue a mutation for the platform.",
)
async def enqueue_mutation(
    data: EnqueueRequest,
    queue: SyncQueueManager = Depends(get_queue_manager),
) -> QueuedMutation:
    """Queue a mutation.

    Args:
        data: Mutation kind and payload.
        queue: Sync queue manager.

    Returns:
        The stored queue entry.

    Raises:
        HTTPException: 422 on unknown kind or invalid payload, 503 when the
            local store cannot be written.
    """
    try:
        return await queue.enqueue(data.kind, data.payload)
    except UnknownSyncKindError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    except InvalidSyncPayloadError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.message, "errors": e.validation_errors},
        )
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)


@router.post(
    "/reconcile",
    response_model=ReconciliationResponse,
    summary="Run reconciliation",
    description="Submit pending mutations to the platform in creation order.",
)
async def run_reconciliation(
    reconciliation: ReconciliationClient = Depends(get_reconciliation_client),
) -> ReconciliationResponse:
    """Run one reconciliation pass.

    A pass requested while another is running returns ``skipped=true``.
    """
    try:
        result = await reconciliation.reconcile()
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)

    return _to_response(result)


@router.post(
    "/sweep",
    response_model=SweepResponse,
    summary="Run retention sweep",
    description="Delete queue entries older than the retention horizon.",
)
async def run_sweep(
    sweeper: RetentionSweeper = Depends(get_sweeper),
) -> SweepResponse:
    """Run the retention sweep."""
    try:
        deleted = await sweeper.sweep()
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)

    return SweepResponse(deleted=deleted)


# =============================================================================
# Cached Students
# =============================================================================


@router.put(
    "/students/{student_uuid}",
    response_model=StudentSnapshot,
    summary="Cache student",
    description="Insert or replace a cached student record.",
)
async def cache_student(
    student_uuid: str,
    data: StudentCacheRequest,
    store: LocalStore = Depends(get_store),
) -> StudentSnapshot:
    """Cache a student record under the given UUID."""
    record = StudentRecord(uuid=student_uuid, **data.model_dump())
    try:
        return await store.cache_student(record)
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)


@router.get(
    "/students/{student_uuid}",
    response_model=StudentSnapshot,
    summary="Get cached student",
)
async def get_cached_student(
    student_uuid: str,
    store: LocalStore = Depends(get_store),
) -> StudentSnapshot:
    """Get a cached student.

    Raises:
        HTTPException: 404 if the student is not cached.
    """
    try:
        student = await store.get_cached_student(student_uuid)
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)

    if student is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Student not cached: {student_uuid}",
        )
    return student


# =============================================================================
# Cached Lessons
# =============================================================================


@router.get(
    "/lessons",
    response_model=list[LessonSnapshot],
    summary="List cached lessons",
)
async def list_cached_lessons(
    store: LocalStore = Depends(get_store),
) -> list[LessonSnapshot]:
    """List every cached lesson."""
    try:
        return await store.get_cached_lessons()
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)


@router.put(
    "/lessons/{lesson_uuid}",
    response_model=LessonSnapshot,
    summary="Cache lesson",
    description="Insert or replace a cached lesson. Local completions are reset.",
)
async def cache_lesson(
    lesson_uuid: str,
    data: LessonCacheRequest,
    store: LocalStore = Depends(get_store),
) -> LessonSnapshot:
    """Cache a lesson record under the given UUID."""
    record = LessonRecord(uuid=lesson_uuid, **data.model_dump())
    try:
        return await store.cache_lesson(record)
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)


@router.get(
    "/lessons/{lesson_uuid}",
    response_model=LessonSnapshot,
    summary="Get cached lesson",
)
async def get_cached_lesson(
    lesson_uuid: str,
    store: LocalStore = Depends(get_store),
) -> LessonSnapshot:
    """Get a cached lesson.

    Raises:
        HTTPException: 404 if the lesson is not cached.
    """
    try:
        lesson = await store.get_cached_lesson(lesson_uuid)
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)

    if lesson is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Lesson not cached: {lesson_uuid}",
        )
    return lesson


@router.post(
    "/lessons/{lesson_uuid}/completions",
    response_model=QueuedMutation,
    status_code=status.HTTP_201_CREATED,
    summary="Record lesson completion",
    description="Append the completion to the cached lesson and queue it for the platform.",
)
async def record_lesson_completion(
    lesson_uuid: str,
    data: CompletionRequest,
    queue: SyncQueueManager = Depends(get_queue_manager),
) -> QueuedMutation:
    """Record a lesson completion.

    Raises:
        HTTPException: 422 on an invalid payload, 503 when the local store
            cannot be written.
    """
    payload = data.model_dump(mode="json", exclude_none=True)
    try:
        return await queue.enqueue_lesson_completion(lesson_uuid, payload)
    except InvalidSyncPayloadError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.message, "errors": e.validation_errors},
        )
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)


# =============================================================================
# Cache Refresh
# =============================================================================


@router.post(
    "/refresh/{student_uuid}",
    response_model=RefreshResponse,
    summary="Refresh offline cache",
    description="Download the student and their offline lessons from the platform.",
)
async def refresh_cache(
    student_uuid: str,
    loader: OfflineCacheLoader = Depends(get_loader),
) -> RefreshResponse:
    """Refresh the local cache for a student.

    Raises:
        HTTPException: 502 if the platform refused or could not be reached,
            503 when the local store cannot be written.
    """
    logger.info("Refreshing offline cache for student: %s", student_uuid)

    try:
        result = await loader.refresh(student_uuid)
    except RemoteAuthorityError as e:
        logger.warning("Offline cache refresh failed for %s: %s", student_uuid, str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Platform request failed: {e.message}",
        )
    except StorageUnavailableError as e:
        raise _storage_unavailable(e)

    return RefreshResponse(
        student_uuid=result.student_uuid,
        students_cached=result.students_cached,
        lessons_cached=result.lessons_cached,
    )
