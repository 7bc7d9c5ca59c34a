# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the local store."""

from lluminata.infrastructure.database.models.base import Base
from lluminata.infrastructure.database.models.offline import (
    CachedLesson,
    CachedStudent,
    SyncKind,
    SyncQueueEntry,
)

__all__ = [
    "Base",
    "CachedLesson",
    "CachedStudent",
    "SyncKind",
    "SyncQueueEntry",
]
