# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Offline cache and sync queue models.

Three tables make up the local store:

- students: snapshots of student records fetched from the platform
- lessons: snapshots of lesson content plus local completion annotations
- sync_queue: locally originated mutations awaiting acknowledgment

Every table has a local auto-increment ``id``. Students and lessons also
carry the platform's stable ``uuid``, which is the upsert key.
"""

import enum
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from lluminata.infrastructure.database.models.base import Base


class SyncKind(str, enum.Enum):
    """Kinds of mutation that can be queued for the remote authority."""

    LESSON_COMPLETION = "lesson_completion"
    ASSESSMENT = "assessment"
    PROGRESS = "progress"


_SYNC_KIND_VALUES = ", ".join(f"'{kind.value}'" for kind in SyncKind)


class CachedStudent(Base):
    """Cached snapshot of a student record.

    Attributes:
        id: Local identity.
        uuid: Platform student UUID (unique).
        name: Display name.
        progress: Opaque progress payload owned by the platform.
        pending_sync: Whether local edits are not yet acknowledged.
    """

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    progress: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    pending_sync: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )

    def __repr__(self) -> str:
        return f"<CachedStudent(uuid={self.uuid}, pending_sync={self.pending_sync})>"


class CachedLesson(Base):
    """Cached snapshot of a lesson.

    ``completions`` holds local completion annotations in the order they
    were recorded. Re-caching a lesson resets it.

    Attributes:
        id: Local identity (insertion order).
        uuid: Platform lesson UUID (unique).
        title: Lesson title.
        content: Opaque lesson content payload.
        completions: Local completion records.
    """

    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    completions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    def __repr__(self) -> str:
        return f"<CachedLesson(uuid={self.uuid}, completions={len(self.completions or [])})>"


class SyncQueueEntry(Base):
    """A queued mutation awaiting acknowledgment by the remote authority.

    An entry is pending while ``synced`` is false. Once synced it is never
    re-sent and only waits for the retention sweep.

    Attributes:
        id: Local identity; breaks timestamp ties.
        kind: One of the SyncKind values.
        payload: Validated mutation payload.
        timestamp: Creation time in epoch milliseconds.
        synced: Whether the remote authority acknowledged the entry.
    """

    __tablename__ = "sync_queue"
    __table_args__ = (
        CheckConstraint(f"kind IN ({_SYNC_KIND_VALUES})", name="ck_sync_queue_kind"),
        Index("ix_sync_queue_pending", "synced", "timestamp", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    synced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<SyncQueueEntry(id={self.id}, kind={self.kind}, "
            f"timestamp={self.timestamp}, synced={self.synced})>"
        )
