# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the offline API endpoints."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lluminata.api import create_app
from lluminata.api.dependencies import close_offline
from lluminata.api.v1 import router as v1_router
from lluminata.core.config import clear_settings_cache
from lluminata.domains.offline import (
    LocalStore,
    OfflineCacheLoader,
    ReconciliationClient,
    RetentionSweeper,
    SyncQueueManager,
)
from lluminata.infrastructure.database import LocalDatabase
from lluminata.infrastructure.remote import RemoteRejectedError, RemoteUnreachableError

BASE = "/api/v1/offline"


@pytest.fixture
def authority(sample_student_id, sample_lesson_id):
    """Create mock remote authority."""
    authority = AsyncMock()
    authority.submit = AsyncMock(return_value=None)
    authority.fetch_offline_bundle = AsyncMock(
        return_value={
            "student": {"id": sample_student_id, "name": "Ana"},
            "lessons": [{"id": sample_lesson_id, "title": "Fractions"}],
        }
    )
    return authority


@pytest.fixture
def app(database_url, authority):
    """Create test FastAPI app wired to a temporary local store."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = LocalDatabase(database_url)
        await database.open()
        store = LocalStore(database)
        app.state.store = store
        app.state.queue = SyncQueueManager(store)
        app.state.reconciliation = ReconciliationClient(store, authority)
        app.state.sweeper = RetentionSweeper(store)
        app.state.loader = OfflineCacheLoader(store, authority)
        yield
        await database.close()

    app = FastAPI(lifespan=lifespan)
    app.include_router(v1_router)
    return app


@pytest.fixture
def client(app):
    """Create test client running the app lifespan."""
    with TestClient(app) as client:
        yield client


class TestOfflineAPIRouting:
    """Tests for offline API routing."""

    def test_routes_registered(self, app):
        """Test that offline routes are registered."""
        assert app.url_path_for("get_sync_status") == f"{BASE}/status"
        assert app.url_path_for("list_pending") == f"{BASE}/queue"
        assert app.url_path_for("enqueue_mutation") == f"{BASE}/queue"
        assert app.url_path_for("run_reconciliation") == f"{BASE}/reconcile"
        assert app.url_path_for("run_sweep") == f"{BASE}/sweep"
        assert app.url_path_for("cache_student", student_uuid="s-1") == f"{BASE}/students/s-1"
        assert app.url_path_for("get_cached_student", student_uuid="s-1") == f"{BASE}/students/s-1"
        assert app.url_path_for("list_cached_lessons") == f"{BASE}/lessons"
        assert app.url_path_for("cache_lesson", lesson_uuid="l-1") == f"{BASE}/lessons/l-1"
        assert app.url_path_for("get_cached_lesson", lesson_uuid="l-1") == f"{BASE}/lessons/l-1"
        assert (
            app.url_path_for("record_lesson_completion", lesson_uuid="l-1")
            == f"{BASE}/lessons/l-1/completions"
        )
        assert app.url_path_for("refresh_cache", student_uuid="s-1") == f"{BASE}/refresh/s-1"

    def test_uninitialized_components_return_503(self):
        """Test that a missing store is reported as unavailable."""
        app = FastAPI()
        app.include_router(v1_router)

        response = TestClient(app).get(f"{BASE}/status")

        assert response.status_code == 503


class TestQueueEndpoints:
    """Tests for sync queue endpoints."""

    def test_enqueue_and_list(self, client, sample_progress):
        """Test queueing a mutation and listing it."""
        response = client.post(f"{BASE}/queue", json={"kind": "progress", "payload": sample_progress})

        assert response.status_code == 201
        entry = response.json()
        assert entry["kind"] == "progress"
        assert entry["synced"] is False

        listing = client.get(f"{BASE}/queue").json()
        assert listing["total"] == 1
        assert listing["items"][0]["id"] == entry["id"]

    def test_enqueue_unknown_kind(self, client, sample_progress):
        """Test that an unknown kind returns 422."""
        response = client.post(f"{BASE}/queue", json={"kind": "attendance", "payload": sample_progress})

        assert response.status_code == 422
        assert client.get(f"{BASE}/queue").json()["total"] == 0

    def test_enqueue_invalid_payload(self, client):
        """Test that an invalid payload returns 422 with field errors."""
        response = client.post(
            f"{BASE}/queue",
            json={"kind": "assessment", "payload": {"type": "reading"}},
        )

        assert response.status_code == 422
        errors = response.json()["detail"]["errors"]
        assert any(e.startswith("student_id") for e in errors)


class TestReconcileEndpoints:
    """Tests for reconciliation, status and sweep endpoints."""

    def test_reconcile_drains_queue(self, client, authority, sample_progress, sample_completion):
        """Test that a pass submits pending entries and reports counts."""
        client.post(f"{BASE}/queue", json={"kind": "progress", "payload": sample_progress})
        client.post(f"{BASE}/queue", json={"kind": "lesson_completion", "payload": sample_completion})

        response = client.post(f"{BASE}/reconcile")

        assert response.status_code == 200
        result = response.json()
        assert result["skipped"] is False
        assert (result["attempted"], result["succeeded"], result["failed"]) == (2, 2, 0)
        assert authority.submit.await_count == 2

        status = client.get(f"{BASE}/status").json()
        assert status["pending"] == 0
        assert status["last_sync_at"] is not None
        assert status["last_result"]["succeeded"] == 2

    def test_reconcile_reports_failures(self, client, authority, sample_progress):
        """Test that failed entries are reported and stay pending."""
        client.post(f"{BASE}/queue", json={"kind": "progress", "payload": sample_progress})
        client.post(f"{BASE}/queue", json={"kind": "progress", "payload": sample_progress})
        authority.submit.side_effect = [
            RemoteRejectedError("invalid", status_code=400),
            RemoteUnreachableError("offline"),
        ]

        result = client.post(f"{BASE}/reconcile").json()

        assert result["failed"] == 2
        assert result["rejected"] == 1
        assert result["unreachable"] == 1
        status = client.get(f"{BASE}/status").json()
        assert status["pending"] == 2
        assert status["last_sync_at"] is None

    def test_sweep(self, client):
        """Test running the retention sweep."""
        response = client.post(f"{BASE}/sweep")

        assert response.status_code == 200
        assert response.json() == {"deleted": 0}


class TestCacheEndpoints:
    """Tests for cached student and lesson endpoints."""

    def test_cache_and_get_student(self, client, sample_student_id):
        """Test caching a student and reading it back."""
        response = client.put(
            f"{BASE}/students/{sample_student_id}",
            json={"name": "Ana", "progress": {"readingLevel": 2}},
        )

        assert response.status_code == 200
        student = client.get(f"{BASE}/students/{sample_student_id}").json()
        assert student["name"] == "Ana"
        assert student["progress"] == {"readingLevel": 2}
        assert student["pending_sync"] is False

    def test_get_missing_student(self, client):
        """Test that an uncached student returns 404."""
        assert client.get(f"{BASE}/students/missing").status_code == 404

    def test_cache_and_list_lessons(self, client, sample_lesson_id):
        """Test caching lessons and listing them."""
        client.put(f"{BASE}/lessons/{sample_lesson_id}", json={"title": "Fractions"})
        client.put(f"{BASE}/lessons/l-2", json={"title": "Decimals", "content": {"pages": 2}})

        lessons = client.get(f"{BASE}/lessons").json()

        assert [lesson["uuid"] for lesson in lessons] == [sample_lesson_id, "l-2"]
        assert lessons[1]["content"] == {"pages": 2}

    def test_get_missing_lesson(self, client):
        """Test that an uncached lesson returns 404."""
        assert client.get(f"{BASE}/lessons/missing").status_code == 404

    def test_record_completion(self, client, sample_lesson_id, sample_student_id):
        """Test that a completion is queued and annotated on the lesson."""
        client.put(f"{BASE}/lessons/{sample_lesson_id}", json={"title": "Fractions"})

        response = client.post(
            f"{BASE}/lessons/{sample_lesson_id}/completions",
            json={
                "student_id": sample_student_id,
                "completed_at": "2025-03-01T10:00:00Z",
                "score": 90,
            },
        )

        assert response.status_code == 201
        entry = response.json()
        assert entry["kind"] == "lesson_completion"
        assert entry["payload"]["lesson_id"] == sample_lesson_id

        lesson = client.get(f"{BASE}/lessons/{sample_lesson_id}").json()
        assert len(lesson["completions"]) == 1
        assert client.get(f"{BASE}/queue").json()["total"] == 1


class TestRefreshEndpoint:
    """Tests for refreshing the cache from the platform."""

    def test_refresh(self, client, sample_student_id, sample_lesson_id):
        """Test that the platform bundle is cached."""
        response = client.post(f"{BASE}/refresh/{sample_student_id}")

        assert response.status_code == 200
        assert response.json() == {
            "student_uuid": sample_student_id,
            "students_cached": 1,
            "lessons_cached": 1,
        }
        assert client.get(f"{BASE}/lessons/{sample_lesson_id}").status_code == 200

    def test_refresh_remote_failure(self, client, authority, sample_student_id):
        """Test that platform failures return 502."""
        authority.fetch_offline_bundle.side_effect = RemoteUnreachableError("offline")

        response = client.post(f"{BASE}/refresh/{sample_student_id}")

        assert response.status_code == 502


class TestApplicationFactory:
    """Tests for create_app and its lifespan."""

    def test_create_app_lifespan(self, monkeypatch, tmp_path):
        """Test that the full application opens its store and serves requests."""
        monkeypatch.setenv("LOCAL_STORE_PATH", str(tmp_path / "app.db"))
        monkeypatch.setenv("SYNC_AUTO_SYNC", "false")
        monkeypatch.setenv("SYNC_SWEEP_ON_START", "false")
        clear_settings_cache()

        try:
            with TestClient(create_app()) as client:
                response = client.get(f"{BASE}/status")
                assert client.app.state.scheduler.is_running is True
        finally:
            clear_settings_cache()

        assert response.status_code == 200
        assert response.json()["pending"] == 0
        assert (tmp_path / "app.db").exists()


class TestCloseOffline:
    """Tests for releasing offline components at shutdown."""

    @pytest.mark.asyncio
    async def test_failing_scheduler_stop_still_releases_resources(self):
        """Test that the client and database are closed when stopping fails."""
        app = FastAPI()
        app.state.scheduler = MagicMock()
        app.state.scheduler.stop = AsyncMock(side_effect=RuntimeError("stop failed"))
        app.state.authority = MagicMock()
        app.state.authority.close = AsyncMock()
        app.state.database = MagicMock()
        app.state.database.close = AsyncMock()

        with pytest.raises(RuntimeError):
            await close_offline(app)

        app.state.authority.close.assert_awaited_once()
        app.state.database.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failing_client_close_still_closes_database(self):
        """Test that the database is closed when the remote client fails to close."""
        app = FastAPI()
        app.state.authority = MagicMock()
        app.state.authority.close = AsyncMock(side_effect=RuntimeError("close failed"))
        app.state.database = MagicMock()
        app.state.database.close = AsyncMock()

        with pytest.raises(RuntimeError):
            await close_offline(app)

        app.state.database.close.assert_awaited_once()
