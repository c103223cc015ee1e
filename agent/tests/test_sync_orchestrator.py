"""Tests for the sync orchestrator against a mocked backend.

The backend is simulated with httpx.MockTransport so the full request
path (payload building, JSON encoding, status handling) is exercised.
"""

import base64
import json
from pathlib import Path

import httpx
import pytest

from emogo.errors import RemoteError, SyncError, UploadError
from emogo.store import RecordStore, VideoLibrary
from emogo.sync import CloudClient, SyncOrchestrator, SyncReport, build_payload
from emogo.sync.orchestrator import RecordSyncResult


@pytest.fixture
def library(tmp_path: Path) -> VideoLibrary:
    return VideoLibrary(tmp_path / "videos")


@pytest.fixture
def store(tmp_path: Path, library: VideoLibrary):
    with RecordStore(tmp_path / "emogo.db", library=library) as store:
        yield store


def _add_record(store: RecordStore, library: VideoLibrary, tmp_path: Path, content: bytes, **kwargs) -> int:
    source = tmp_path / f"clip_{len(content)}_{store.count()}.mp4"
    source.write_bytes(content)
    return store.save(library.import_file(source), **{"sentiment": 3, **kwargs})


class FakeBackend:
    """Records requests and answers like the EmoGo server."""

    def __init__(self, fail_ids: set[str] | None = None, status_code: int = 200):
        self.requests: list[tuple[str, dict]] = []
        self.fail_ids = fail_ids or set()
        self.status_code = status_code

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request.url.path, body))

        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"success": False, "error": "boom"})

        records = body["records"]
        if request.url.path == "/records/sync":
            errors = [
                {"recordId": str(r["id"]), "error": "rejected"}
                for r in records
                if str(r["id"]) in self.fail_ids
            ]
            synced = [str(r["id"]) for r in records if str(r["id"]) not in self.fail_ids]
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "message": "Sync complete",
                    "syncedCount": len(synced),
                    "errorCount": len(errors),
                    "results": {"synced": synced, "errors": errors},
                },
            )
        if request.url.path == "/records/batch":
            return httpx.Response(
                200,
                json={"success": True, "savedCount": len(records), "errorCount": 0},
            )
        return httpx.Response(200, json={"success": True, "record": {"id": str(records[0]["id"])}})


def _client(handler) -> CloudClient:
    return CloudClient("http://emogo.test", transport=httpx.MockTransport(handler))


class TestSyncReport:
    """Report aggregation and summary lines."""

    def test_empty(self):
        assert SyncReport().summary() == "No records to sync"

    def test_all_synced(self):
        report = SyncReport([RecordSyncResult(1, True), RecordSyncResult(2, True)])

        assert report.summary() == "Synced 2 records"
        assert report.is_partial is False

    def test_partial(self):
        report = SyncReport(
            [RecordSyncResult(1, True), RecordSyncResult(2, False, error="x"), RecordSyncResult(3, True)]
        )

        assert report.summary() == "Synced 2 of 3 records, 1 failed"
        assert report.is_partial is True
        assert [r.record_id for r in report.failed] == [2]

    def test_all_failed(self):
        report = SyncReport([RecordSyncResult(1, False, error="x")])

        assert report.summary() == "Sync failed for all 1 record"


class TestUploadOne:
    """Single record upload."""

    @pytest.mark.asyncio
    async def test_sends_video_inline(self, store, library, tmp_path):
        record_id = _add_record(store, library, tmp_path, b"clip-bytes", sentiment=5, latitude=25.03, longitude=121.56)
        backend = FakeBackend()

        async with _client(backend) as client:
            result = await SyncOrchestrator(store, library, client).upload_one(store.get_by_id(record_id))

        assert result["success"] is True
        path, body = backend.requests[0]
        assert path == "/records"
        assert body["recordCount"] == 1
        entry = body["records"][0]
        assert entry["id"] == record_id
        assert entry["sentiment"] == "very good"
        assert entry["sentimentValue"] == 5
        assert entry["latitude"] == 25.03
        assert entry["longitude"] == 121.56
        assert base64.b64decode(entry["videoBase64"]) == b"clip-bytes"

    @pytest.mark.asyncio
    async def test_missing_video_raises_upload_error(self, store, library, tmp_path):
        record_id = _add_record(store, library, tmp_path, b"clip")
        record = store.get_by_id(record_id)
        Path(record.video_path).unlink()
        backend = FakeBackend()

        async with _client(backend) as client:
            with pytest.raises(UploadError):
                await SyncOrchestrator(store, library, client).upload_one(record)

        assert backend.requests == []
        assert store.get_by_id(record_id) is not None

    @pytest.mark.asyncio
    async def test_server_error_raises_remote_error(self, store, library, tmp_path):
        record_id = _add_record(store, library, tmp_path, b"clip")

        async with _client(FakeBackend(status_code=500)) as client:
            with pytest.raises(RemoteError) as exc_info:
                await SyncOrchestrator(store, library, client).upload_one(store.get_by_id(record_id))

        assert exc_info.value.status_code == 500
        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_timeout_raises_upload_error(self, store, library, tmp_path):
        record_id = _add_record(store, library, tmp_path, b"clip")

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            with pytest.raises(UploadError):
                await SyncOrchestrator(store, library, client).upload_one(store.get_by_id(record_id))


class TestSyncAll:
    """Syncing the whole store."""

    @pytest.mark.asyncio
    async def test_empty_store_makes_no_request(self, store, library):
        backend = FakeBackend()

        async with _client(backend) as client:
            report = await SyncOrchestrator(store, library, client).sync_all()

        assert report.results == []
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_batched_sends_one_request(self, store, library, tmp_path):
        ids = [_add_record(store, library, tmp_path, b"x" * n) for n in (1, 2, 3)]
        backend = FakeBackend()

        async with _client(backend) as client:
            report = await SyncOrchestrator(store, library, client).sync_all()

        assert len(backend.requests) == 1
        path, body = backend.requests[0]
        assert path == "/records/sync"
        assert sorted(r["id"] for r in body["records"]) == sorted(ids)
        assert report.synced_count == 3
        assert all(r.media_included for r in report.results)

    @pytest.mark.asyncio
    async def test_batched_maps_server_errors_per_record(self, store, library, tmp_path):
        ids = [_add_record(store, library, tmp_path, b"x" * n) for n in (1, 2, 3)]
        backend = FakeBackend(fail_ids={str(ids[1])})

        async with _client(backend) as client:
            report = await SyncOrchestrator(store, library, client).sync_all()

        assert report.synced_count == 2
        assert [r.record_id for r in report.failed] == [ids[1]]
        assert report.failed[0].error == "rejected"
        assert report.is_partial is True

    @pytest.mark.asyncio
    async def test_unreadable_video_is_sent_without_media(self, store, library, tmp_path):
        good = _add_record(store, library, tmp_path, b"good")
        bad = _add_record(store, library, tmp_path, b"bad-clip")
        Path(store.get_by_id(bad).video_path).unlink()
        backend = FakeBackend()

        async with _client(backend) as client:
            report = await SyncOrchestrator(store, library, client).sync_all()

        entries = {r["id"]: r for r in backend.requests[0][1]["records"]}
        assert entries[bad]["videoBase64"] is None
        assert entries[good]["videoBase64"] is not None
        media = {r.record_id: r.media_included for r in report.results}
        assert media == {good: True, bad: False}
        assert report.failed_count == 0

    @pytest.mark.asyncio
    async def test_batched_server_error_fails_every_record(self, store, library, tmp_path):
        for n in (1, 2):
            _add_record(store, library, tmp_path, b"x" * n)

        async with _client(FakeBackend(status_code=503)) as client:
            report = await SyncOrchestrator(store, library, client).sync_all()

        assert report.failed_count == 2
        assert all("503" in r.error for r in report.failed)
        assert store.count() == 2

    @pytest.mark.asyncio
    async def test_per_record_mode(self, store, library, tmp_path):
        for n in (1, 2):
            _add_record(store, library, tmp_path, b"x" * n)
        backend = FakeBackend()

        async with _client(backend) as client:
            report = await SyncOrchestrator(store, library, client).sync_all(batched=False)

        assert [path for path, _ in backend.requests] == ["/records", "/records"]
        assert report.synced_count == 2

    @pytest.mark.asyncio
    async def test_unreachable_server_raises_sync_error(self, store, library, tmp_path):
        _add_record(store, library, tmp_path, b"clip")

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(SyncError):
                await SyncOrchestrator(store, library, client).sync_all()

    @pytest.mark.asyncio
    async def test_resync_is_idempotent(self, store, library, tmp_path):
        record_id = _add_record(store, library, tmp_path, b"clip")
        backend = FakeBackend()

        async with _client(backend) as client:
            orchestrator = SyncOrchestrator(store, library, client)
            await orchestrator.sync_all()
            await orchestrator.sync_all()

        first, second = (body["records"] for _, body in backend.requests)
        assert first[0]["id"] == second[0]["id"] == record_id


@pytest.mark.asyncio
async def test_upload_batch_uses_batch_endpoint(store, library, tmp_path):
    for n in (1, 2):
        _add_record(store, library, tmp_path, b"x" * n)
    backend = FakeBackend()

    async with _client(backend) as client:
        response = await SyncOrchestrator(store, library, client).upload_batch(store.list_all())

    assert backend.requests[0][0] == "/records/batch"
    assert response["savedCount"] == 2


def test_build_payload_envelope():
    payload = build_payload([{"id": 1}, {"id": 2}])

    assert payload["recordCount"] == 2
    assert payload["records"] == [{"id": 1}, {"id": 2}]
    assert payload["exportDate"]


class TestCloudClient:
    """Read-side client calls."""

    @pytest.mark.asyncio
    async def test_check_server(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/health"
            return httpx.Response(200, json={"status": "ok"})

        async with _client(handler) as client:
            assert await client.check_server() is True

    @pytest.mark.asyncio
    async def test_check_server_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            assert await client.check_server() is False

    @pytest.mark.asyncio
    async def test_download_export(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["format"] == "csv"
            return httpx.Response(200, content="\ufeffNo.,Sentiment\n".encode("utf-8"))

        async with _client(handler) as client:
            content = await client.download_export("csv")

        assert content.decode("utf-8").startswith("\ufeffNo.")

    @pytest.mark.asyncio
    async def test_download_video_follows_redirect(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/records/4/video":
                return httpx.Response(302, headers={"Location": "http://media.test/v4.mp4"})
            return httpx.Response(200, content=b"video-4")

        async with _client(handler) as client:
            assert await client.download_video(4) == b"video-4"

    @pytest.mark.asyncio
    async def test_download_video_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"success": False, "error": "Video not found"})

        async with _client(handler) as client:
            with pytest.raises(RemoteError) as exc_info:
                await client.download_video(4)

        assert exc_info.value.status_code == 404
