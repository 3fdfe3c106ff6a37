"""Tests for health endpoints and app-level error handling."""

import pytest
from fastapi.testclient import TestClient

from src.config.settings import Settings
from src.core.errors import ConfigurationError
from src.main import create_app


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness(client: TestClient) -> None:
    """Test the readiness endpoint."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["environment"] == "testing"
    assert "debug" in data


def test_api_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Server is running"
    assert data["environment"] == "testing"
    assert "timestamp" in data
    assert "uptime" in data
    assert "pythonVersion" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert "version" in data


def test_unknown_route(client: TestClient) -> None:
    """Unknown routes answer 404 in the error envelope."""
    response = client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Can't find /api/v1/nothing-here on this server!",
    }


def test_request_id_header(client: TestClient) -> None:
    """Responses echo the request id."""
    response = client.get("/health/live", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.parametrize("missing", ["mongo_uri", "jwt_secret"])
def test_startup_requires_settings(
    settings: Settings, database, missing: str
) -> None:
    """The app refuses to start without a database URI or signing key."""
    incomplete = settings.model_copy(update={missing: None})
    app = create_app(settings=incomplete, database=database)

    with pytest.raises(ConfigurationError), TestClient(app):
        pass
