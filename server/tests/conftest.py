"""Shared fixtures for server tests.

The app runs against a throwaway SQLite database (aiosqlite) and an
in-memory media gateway, so no Postgres or Cloudinary account is needed.
"""

import base64
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from emogo_server.config import Settings
from emogo_server.errors import MediaUploadError
from emogo_server.main import create_app
from emogo_server.media.gateway import MediaGateway, UploadedMedia


class FakeGateway(MediaGateway):
    """Keeps uploaded videos in memory and records deletions."""

    def __init__(self) -> None:
        self.uploads: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_uploads = False
        self._counter = 0

    async def upload(self, data: bytes, public_id: str) -> UploadedMedia:
        if self.fail_uploads:
            raise MediaUploadError("media host unavailable")
        self._counter += 1
        stored_id = f"emogo/videos/{public_id}-{self._counter}"
        self.uploads[stored_id] = data
        return UploadedMedia(
            url=f"https://media.test/{stored_id}.mp4",
            public_id=stored_id,
            size=len(data),
        )

    async def delete(self, public_id: str) -> None:
        self.deleted.append(public_id)
        self.uploads.pop(public_id, None)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'emogo.db'}")


@pytest.fixture
def client(settings: Settings, gateway: FakeGateway):
    app = create_app(settings=settings, gateway=gateway)
    with TestClient(app) as client:
        yield client


def video_b64(content: bytes = b"\x00\x00\x00\x18ftypmp42") -> str:
    return base64.b64encode(content).decode("ascii")


def payload(*records: dict) -> dict:
    return {
        "exportDate": "2025-01-01T00:00:00+00:00",
        "recordCount": len(records),
        "records": list(records),
    }


def entry(record_id=1, sentiment_value=3, **overrides) -> dict:
    labels = {1: "very bad", 2: "bad", 3: "neutral", 4: "good", 5: "very good"}
    data = {
        "id": record_id,
        "sentiment": labels.get(sentiment_value),
        "sentimentValue": sentiment_value,
        "latitude": None,
        "longitude": None,
        "timestamp": 1_700_000_000_000,
        "videoPath": f"/videos/{record_id}.mp4",
        "videoBase64": None,
    }
    data.update(overrides)
    return data
