# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local database connection management using SQLAlchemy async.

The local database is an embedded SQLite file opened through SQLAlchemy's
async engine and the aiosqlite driver. It holds cached students, cached
lessons and the sync queue, and must survive process restarts.

The database is versioned: the schema version is kept in SQLite's
``user_version`` pragma. Opening a file written by a newer schema fails
instead of silently reading rows it does not understand.

There is no module-level connection. The composition root constructs one
LocalDatabase and hands it to whatever needs it.

Example:
    from lluminata.infrastructure.database.connection import LocalDatabase

    database = LocalDatabase.from_settings(settings.local_store)
    await database.open()

    async with database.session() as session:
        result = await session.execute(select(SyncQueueEntry))
        entries = result.scalars().all()

    await database.close()
"""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lluminata.infrastructure.database.models.base import Base

if TYPE_CHECKING:
    from lluminata.core.config.settings import LocalStoreSettings

logger = logging.getLogger(__name__)

# Bump together with a migration step in LocalDatabase._migrate
SCHEMA_VERSION = 1


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class StorageUnavailableError(DatabaseError):
    """Raised when the local store cannot be opened, read or written.

    A queue write that fails with this error is not durable: the caller
    must not assume the mutation will ever reach the remote authority.
    """


class LocalDatabase:
    """Owner of the local SQLite engine and session factory.

    Attributes:
        url: SQLAlchemy async database URL.
        echo: Whether emitted SQL is logged.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        """Initialize without connecting.

        Args:
            url: SQLAlchemy async URL, e.g. ``sqlite+aiosqlite:///offline.db``.
            echo: Whether SQLAlchemy should log emitted SQL.
        """
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: "LocalStoreSettings") -> "LocalDatabase":
        """Create a database from local store settings."""
        return cls(settings.url, echo=settings.echo)

    @property
    def is_open(self) -> bool:
        """Check whether the database has been opened."""
        return self._engine is not None

    async def open(self) -> None:
        """Create the engine and bring the schema up to SCHEMA_VERSION.

        Safe to call on an already open database.

        Raises:
            StorageUnavailableError: If the file cannot be opened, the schema
                cannot be created, or the file carries a newer schema version.
        """
        if self._engine is not None:
            return

        engine = create_async_engine(self.url, echo=self.echo)

        try:
            async with engine.begin() as conn:
                result = await conn.execute(text("PRAGMA user_version"))
                version = int(result.scalar_one())

                if version > SCHEMA_VERSION:
                    raise StorageUnavailableError(
                        f"Local store schema version {version} is newer than "
                        f"supported version {SCHEMA_VERSION}"
                    )

                await self._migrate(conn, version)
        except SQLAlchemyError as e:
            await engine.dispose()
            raise StorageUnavailableError("Failed to open local store", e) from e
        except StorageUnavailableError:
            await engine.dispose()
            raise

        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("Local store opened: %s (schema v%d)", self.url, SCHEMA_VERSION)

    async def _migrate(self, conn, current_version: int) -> None:
        """Apply schema steps above ``current_version``.

        Args:
            conn: Open connection inside a transaction.
            current_version: Version read from the file.
        """
        # create_all is a no-op for tables that already exist
        await conn.run_sync(Base.metadata.create_all)

        if current_version < SCHEMA_VERSION:
            await conn.execute(text(f"PRAGMA user_version = {SCHEMA_VERSION}"))
            logger.info(
                "Local store schema upgraded: v%d -> v%d",
                current_version,
                SCHEMA_VERSION,
            )

    async def close(self) -> None:
        """Dispose the engine. Safe to call on a closed database."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("Local store closed: %s", self.url)

    def get_sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        """Get the session factory.

        Raises:
            StorageUnavailableError: If the database has not been opened.
        """
        if self._sessionmaker is None:
            raise StorageUnavailableError("Local store not opened. Call open() first.")
        return self._sessionmaker

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session committed on success, rolled back on error.

        Yields:
            AsyncSession for database operations.

        Raises:
            StorageUnavailableError: If the database has not been opened or
                a database operation fails.
        """
        sessionmaker = self.get_sessionmaker()

        async with sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageUnavailableError("Local store operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def schema_version(self) -> int:
        """Read the schema version recorded in the file."""
        async with self.session() as session:
            result = await session.execute(text("PRAGMA user_version"))
            return int(result.scalar_one())

    async def check_connection(self) -> bool:
        """Check if the local store is reachable.

        Returns:
            True if a trivial query succeeds, False otherwise.
        """
        if self._engine is None:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
