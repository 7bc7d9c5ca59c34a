# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the embedded local store.

The local store is a single SQLite file accessed through SQLAlchemy's
async engine. It holds cached students, cached lessons and the sync queue.

Example:
    from lluminata.infrastructure.database import LocalDatabase

    database = LocalDatabase.from_settings(settings.local_store)
    await database.open()

    async with database.session() as session:
        result = await session.execute(select(CachedLesson))
"""

from lluminata.infrastructure.database.connection import (
    SCHEMA_VERSION,
    DatabaseError,
    LocalDatabase,
    StorageUnavailableError,
)

__all__ = [
    "SCHEMA_VERSION",
    "DatabaseError",
    "LocalDatabase",
    "StorageUnavailableError",
]
