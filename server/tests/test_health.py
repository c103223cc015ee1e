"""Tests for health checks and application wiring."""

from emogo_server import __version__
from emogo_server.main import _mask_url


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["message"] == "EmoGo Backend API is running"
    assert body["timestamp"]


def test_ready(client):
    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"ready": True, "database": "healthy", "mediaHost": "configured"}


def test_ready_without_database(client):
    client.app.state.database.ping = _failing_ping

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["ready"] is False


async def _failing_ping() -> bool:
    return False


def test_root_lists_endpoints(client):
    body = client.get("/").json()

    assert body["name"] == "EmoGo Backend API"
    assert body["version"] == __version__
    assert body["endpoints"]["uploadRecord"] == "POST /records"


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["x-request-id"] == "abc-123"


def test_mask_url():
    assert (
        _mask_url("postgresql+asyncpg://emogo:secret@db:5432/emogo")
        == "postgresql+asyncpg://emogo:***@db:5432/emogo"
    )
    assert _mask_url("sqlite+aiosqlite:///tmp/emogo.db") == "sqlite+aiosqlite:///tmp/emogo.db"
