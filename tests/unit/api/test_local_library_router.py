"""Tests for the local library HTTP endpoints.

Hey future me - TestClient is used WITHOUT a `with` block here, so the lifespan
never runs. We hang a mocked LocalLibraryService on app.state instead, which keeps
these tests about HTTP mapping only (status codes, payloads, background tasks).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from localshelf.application.services import LocalLibraryService
from localshelf.domain.entities import Folder, Track, TrackTags
from localshelf.domain.exceptions import (
    PathError,
    ReconciliationError,
    ScanCancelledError,
    ValidationError,
)
from localshelf.infrastructure.notifications import EventChannel
from localshelf.main import create_app

TRACK = Track(uuid="u-1", path="/music/a.mp3", tags=TrackTags(title="A", format="mp3"))


@pytest.fixture
def service() -> MagicMock:
    service = MagicMock(spec=LocalLibraryService)
    service.is_scanning = False
    service.normalize.side_effect = lambda path: path.replace("\\", "/")
    service.get_tracks = AsyncMock(return_value={TRACK.uuid: TRACK})
    service.get_folder_paths = AsyncMock(return_value=["/music"])
    service.register_folders = AsyncMock(return_value=[Folder(path="/music", id="f-1")])
    service.scan_folders = AsyncMock(return_value={})
    service.remove_folder = AsyncMock(return_value=[TRACK])
    service.refresh_all = AsyncMock(return_value=None)
    service.import_single_files = AsyncMock(return_value=[TRACK])
    return service


@pytest.fixture
def events() -> EventChannel:
    return EventChannel()


@pytest.fixture
def app(service: MagicMock, events: EventChannel) -> FastAPI:
    app = create_app()
    app.state.local_library = service
    app.state.events = events
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestReadEndpoints:
    """GET endpoints."""

    def test_get_tracks(self, client: TestClient):
        response = client.get("/api/local/tracks")

        assert response.status_code == 200
        assert response.json() == {
            "u-1": {"uuid": "u-1", "path": "/music/a.mp3", "tags": {"title": "A", "format": "mp3"}}
        }

    def test_get_folders(self, client: TestClient):
        response = client.get("/api/local/folders")

        assert response.status_code == 200
        assert response.json() == {"folders": ["/music"], "scanning": False}

    def test_service_missing_returns_503(self):
        client = TestClient(create_app())
        response = client.get("/api/local/tracks")
        assert response.status_code == 503


class TestFolderEndpoints:
    """PUT/DELETE /api/local/folders."""

    def test_set_folders_registers_and_scans_in_background(
        self, client: TestClient, service: MagicMock
    ):
        response = client.put("/api/local/folders", json={"paths": ["/music"]})

        assert response.status_code == 202
        body = response.json()
        assert body["folders"] == [{"id": "f-1", "path": "/music", "status": "registered_idle"}]
        service.register_folders.assert_awaited_once_with(["/music"])
        # TestClient runs background tasks before returning
        service.scan_folders.assert_awaited_once()

    def test_set_folders_requires_paths(self, client: TestClient):
        response = client.put("/api/local/folders", json={"paths": []})
        assert response.status_code == 422

    def test_blank_path_is_422(self, client: TestClient, service: MagicMock):
        service.register_folders.side_effect = ValidationError("Path must not be empty")

        response = client.put("/api/local/folders", json={"paths": [" "]})

        assert response.status_code == 422
        assert response.json()["detail"] == "Path must not be empty"

    def test_background_scan_failure_becomes_error_event(
        self, client: TestClient, service: MagicMock, events: EventChannel
    ):
        subscription = events.subscribe()
        service.scan_folders.side_effect = PathError("/music", "folder does not exist")

        response = client.put("/api/local/folders", json={"paths": ["/music"]})

        assert response.status_code == 202
        event = subscription.queue.get_nowait()
        assert event.channel == "local-files-error"
        assert event.payload["type"] == "PathError"

    def test_superseded_background_scan_sends_no_error(
        self, client: TestClient, service: MagicMock, events: EventChannel
    ):
        subscription = events.subscribe()
        service.scan_folders.side_effect = ScanCancelledError("superseded")

        client.put("/api/local/folders", json={"paths": ["/music"]})

        assert subscription.queue.empty()

    def test_remove_folder(self, client: TestClient, service: MagicMock):
        response = client.delete("/api/local/folders", params={"path": "C:\\music"})

        assert response.status_code == 200
        assert response.json()["path"] == "C:/music"
        assert [t["uuid"] for t in response.json()["removed_tracks"]] == ["u-1"]
        service.remove_folder.assert_awaited_once_with("C:\\music")

    def test_remove_folder_store_failure_is_503(self, client: TestClient, service: MagicMock):
        service.remove_folder.side_effect = ReconciliationError("database is locked")

        response = client.delete("/api/local/folders", params={"path": "/music"})

        assert response.status_code == 503
        assert response.json()["type"] == "ReconciliationError"


class TestActionEndpoints:
    """POST endpoints."""

    def test_refresh_runs_in_background(self, client: TestClient, service: MagicMock):
        response = client.post("/api/local/refresh")

        assert response.status_code == 202
        assert response.json()["status"] == "started"
        service.refresh_all.assert_awaited_once()

    def test_queue_drop(self, client: TestClient, service: MagicMock):
        response = client.post("/api/local/queue-drop", json={"paths": ["/music/a.mp3"]})

        assert response.status_code == 200
        assert [t["path"] for t in response.json()["tracks"]] == ["/music/a.mp3"]
        service.import_single_files.assert_awaited_once_with(["/music/a.mp3"])

    def test_path_error_is_400(self, client: TestClient, service: MagicMock):
        service.import_single_files.side_effect = PathError("/x", "not a directory")

        response = client.post("/api/local/queue-drop", json={"paths": ["/x"]})

        assert response.status_code == 400


class TestHealth:
    def test_health(self, client: TestClient):
        assert client.get("/health").json()["status"] == "ok"
