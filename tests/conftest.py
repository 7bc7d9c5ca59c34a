# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from pathlib import Path
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio

from lluminata.domains.offline import LocalStore
from lluminata.infrastructure.database import LocalDatabase
from lluminata.utils.datetime import MILLIS_PER_DAY


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Manually advanced clock returning epoch milliseconds."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int = 1) -> int:
        self.now += millis
        return self.now

    def advance_days(self, days: float) -> int:
        return self.advance(int(days * MILLIS_PER_DAY))


@pytest.fixture
def clock() -> FakeClock:
    """Provide a controllable clock."""
    return FakeClock()


# =============================================================================
# Local Store Fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite URL for a fresh database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'offline.db'}"


@pytest_asyncio.fixture(scope="function")
async def database(database_url: str) -> AsyncGenerator[LocalDatabase, None]:
    """Open a local database for the test."""
    db = LocalDatabase(database_url)
    await db.open()

    yield db

    await db.close()


@pytest_asyncio.fixture(scope="function")
async def store(database: LocalDatabase, clock: FakeClock) -> LocalStore:
    """Create a local store driven by the fake clock."""
    return LocalStore(database, clock=clock)


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_student_id() -> str:
    """Provide a sample student ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_lesson_id() -> str:
    """Provide a sample lesson ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440002"


@pytest.fixture
def sample_completion(sample_student_id: str, sample_lesson_id: str) -> dict[str, Any]:
    """Provide a valid lesson completion payload."""
    return {
        "student_id": sample_student_id,
        "lesson_id": sample_lesson_id,
        "completed_at": "2025-03-01T10:00:00Z",
        "time_spent": 600,
        "score": 85.0,
    }


@pytest.fixture
def sample_progress(sample_student_id: str) -> dict[str, Any]:
    """Provide a valid progress payload."""
    return {
        "student_id": sample_student_id,
        "reading_level": 3,
        "cognitive_level": 2,
    }
