"""
Tests for the HTTP surface.

Each test builds an app around an injected store and drives it with
FastAPI's TestClient. Using the client as a context manager runs the
lifespan, which is where the gateway gets built.
"""

import pytest
from fastapi.testclient import TestClient

from src.config.settings import Settings
from src.infrastructure.storage import ConfigError, MockObjectStore
from src.main import create_app
from tests.doubles import FailingObjectStore, UnsignableObjectStore

API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}


def make_settings(**overrides) -> Settings:
    values = {
        "_env_file": None,
        "api_keys": API_KEY,
        "r2_mock_mode": True,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def memory_store() -> MockObjectStore:
    return MockObjectStore(bucket_name="api-test-bucket")


@pytest.fixture
def downloads_dir(tmp_path):
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def client(memory_store, downloads_dir):
    app = create_app(settings=make_settings(downloads_dir=downloads_dir), store=memory_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def failing_client():
    app = create_app(settings=make_settings(), store=FailingObjectStore())
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

class TestStartup:
    """Configuration problems stop the app at startup."""

    def test_missing_credentials_fail_startup(self):
        settings = make_settings(
            r2_mock_mode=False,
            r2_account_id="",
            r2_endpoint_url=None,
            r2_access_key_id="",
            r2_secret_access_key="",
            r2_bucket_name="",
        )
        app = create_app(settings=settings)

        with pytest.raises(ConfigError):
            with TestClient(app):
                pass

    def test_mock_mode_starts_without_credentials(self):
        app = create_app(settings=make_settings())

        with TestClient(app) as test_client:
            assert test_client.get("/health").status_code == 200


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["details"]["storage"] == "mock"

    def test_ready_when_store_is_reachable(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_when_store_fails(self, failing_client):
        response = failing_client.get("/health/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        storage_check = next(c for c in body["checks"] if c["name"] == "storage")
        assert storage_check["status"] == "error"


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestFiles:
    """End-to-end flows over the in-memory store."""

    def test_requires_api_key(self, client):
        response = client.get("/api/v1/files/abc123/clip.mp4/url")

        assert response.status_code == 403

    def test_no_configured_keys_rejects_everyone(self, memory_store):
        app = create_app(settings=make_settings(api_keys=""), store=memory_store)

        with TestClient(app) as test_client:
            response = test_client.get("/api/v1/files/abc123/clip.mp4/url", headers=HEADERS)

        assert response.status_code == 403

    def test_rejects_unknown_api_key(self, client):
        response = client.get(
            "/api/v1/files/abc123/clip.mp4/url",
            headers={"X-API-Key": "wrong"},
        )

        assert response.status_code == 403

    def test_upload_returns_key_and_link(self, client, memory_store, downloads_dir):
        path = downloads_dir / "clip.mp4"
        path.write_bytes(b"video bytes")

        response = client.post(
            "/api/v1/files",
            json={"file_path": str(path), "task_id": "abc123", "format": "mp4"},
            headers=HEADERS,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["key"] == "downloads/abc123/clip.mp4"
        assert body["expires_in"] == 3600
        assert "downloads/abc123/clip.mp4" in body["download_url"]
        assert memory_store.read("downloads/abc123/clip.mp4") == b"video bytes"

    def test_upload_of_missing_file_is_bad_gateway(self, client, downloads_dir):
        response = client.post(
            "/api/v1/files",
            json={"file_path": str(downloads_dir / "gone.mp4"), "task_id": "abc123", "format": "mp4"},
            headers=HEADERS,
        )

        assert response.status_code == 502
        assert response.json()["operation"] == "upload"

    def test_upload_outside_downloads_dir_is_forbidden(self, client, memory_store, tmp_path):
        secrets = tmp_path / ".env"
        secrets.write_text("R2_SECRET_ACCESS_KEY=hunter2")

        response = client.post(
            "/api/v1/files",
            json={"file_path": str(secrets), "task_id": "t"},
            headers=HEADERS,
        )

        assert response.status_code == 403
        assert "downloads/t/.env" not in memory_store

    def test_upload_with_parent_traversal_is_forbidden(
        self, client, memory_store, downloads_dir
    ):
        secrets = downloads_dir.parent / "secret.env"
        secrets.write_text("R2_SECRET_ACCESS_KEY=hunter2")

        response = client.post(
            "/api/v1/files",
            json={"file_path": str(downloads_dir / ".." / "secret.env"), "task_id": "t"},
            headers=HEADERS,
        )

        assert response.status_code == 403
        assert "downloads/t/secret.env" not in memory_store

    def test_upload_from_nested_dir_is_allowed(self, client, downloads_dir):
        nested = downloads_dir / "job-7"
        nested.mkdir()
        (nested / "clip.mp4").write_bytes(b"video bytes")

        response = client.post(
            "/api/v1/files",
            json={"file_path": str(nested / "clip.mp4"), "task_id": "abc123", "format": "mp4"},
            headers=HEADERS,
        )

        assert response.status_code == 201
        assert response.json()["key"] == "downloads/abc123/clip.mp4"

    def test_upload_still_succeeds_when_signing_fails(self, downloads_dir):
        store = UnsignableObjectStore()
        app = create_app(settings=make_settings(downloads_dir=downloads_dir), store=store)
        (downloads_dir / "clip.mp4").write_bytes(b"video bytes")

        with TestClient(app) as test_client:
            response = test_client.post(
                "/api/v1/files",
                json={"file_path": str(downloads_dir / "clip.mp4"), "task_id": "abc123"},
                headers=HEADERS,
            )

        assert response.status_code == 201
        assert response.json()["download_url"] is None
        assert store.read("downloads/abc123/clip.mp4") == b"video bytes"

    def test_download_url(self, client):
        response = client.get("/api/v1/files/abc123/clip.mp4/url", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["key"] == "downloads/abc123/clip.mp4"
        assert response.json()["expires_in"] == 3600

    def test_download_redirects_to_signed_url(self, client):
        response = client.get(
            "/api/v1/files/abc123/clip.mp4",
            headers=HEADERS,
            follow_redirects=False,
        )

        assert response.status_code == 307
        assert "downloads/abc123/clip.mp4" in response.headers["location"]

    def test_info_then_delete_then_info(self, client, downloads_dir):
        path = downloads_dir / "clip.mp4"
        path.write_bytes(b"video bytes")
        client.post(
            "/api/v1/files",
            json={"file_path": str(path), "task_id": "abc123", "format": "mp4"},
            headers=HEADERS,
        )

        info = client.get("/api/v1/files/abc123/clip.mp4/info", headers=HEADERS)
        assert info.status_code == 200
        assert info.json()["task_id"] == "abc123"
        assert info.json()["content_type"] == "video/mp4"
        assert info.json()["size"] == len(b"video bytes")

        deleted = client.delete("/api/v1/files/abc123/clip.mp4", headers=HEADERS)
        assert deleted.status_code == 204

        gone = client.get("/api/v1/files/abc123/clip.mp4/info", headers=HEADERS)
        assert gone.status_code == 404

    def test_delete_of_missing_file_succeeds(self, client):
        response = client.delete("/api/v1/files/abc123/never.mp4", headers=HEADERS)

        assert response.status_code == 204

    def test_info_lookup_failure_is_service_unavailable(self, failing_client):
        response = failing_client.get("/api/v1/files/abc123/clip.mp4/info", headers=HEADERS)

        assert response.status_code == 503

    def test_delete_failure_is_bad_gateway(self, failing_client):
        response = failing_client.delete("/api/v1/files/abc123/clip.mp4", headers=HEADERS)

        assert response.status_code == 502
        assert response.json()["operation"] == "delete"
