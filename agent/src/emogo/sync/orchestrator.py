"""Sync orchestrator pushing local records to the backend."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from emogo.errors import RemoteError, UploadError
from emogo.logging import log_sync_completed, log_upload_failed, log_upload_success
from emogo.store.media import VideoLibrary
from emogo.store.records import Record, RecordStore
from emogo.sync.client import CloudClient
from emogo.sync.payload import build_entry, build_payload

logger = logging.getLogger(__name__)


@dataclass
class RecordSyncResult:
    """Outcome of pushing one record."""

    record_id: int
    success: bool
    error: str | None = None
    media_included: bool = False


@dataclass
class SyncReport:
    """Aggregate outcome of a sync run."""

    results: list[RecordSyncResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[RecordSyncResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[RecordSyncResult]:
        return [r for r in self.results if not r.success]

    @property
    def synced_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def is_partial(self) -> bool:
        return self.synced_count > 0 and self.failed_count > 0

    def summary(self) -> str:
        """One-line acknowledgement for the user."""
        total = len(self.results)
        if total == 0:
            return "No records to sync"
        if self.failed_count == 0:
            return f"Synced {total} record{'s' if total != 1 else ''}"
        if self.synced_count == 0:
            return f"Sync failed for all {total} record{'s' if total != 1 else ''}"
        return f"Synced {self.synced_count} of {total} records, {self.failed_count} failed"


class SyncOrchestrator:
    """Pushes local records to the backend, tolerating per-record failure.

    The cloud identifier equals the local one and every endpoint upserts,
    so any subset of records can be synced any number of times. The
    orchestrator only reads clips; it never modifies or deletes them, and
    a failed upload never rolls back the local record.

    Example:
        async with CloudClient(settings.server_url) as client:
            orchestrator = SyncOrchestrator(store, library, client)
            report = await orchestrator.sync_all()
            print(report.summary())
    """

    def __init__(
        self,
        store: RecordStore,
        library: VideoLibrary,
        client: CloudClient,
    ) -> None:
        self.store = store
        self.library = library
        self.client = client

    async def upload_one(self, record: Record) -> dict[str, Any]:
        """Upload one record together with its video.

        Returns:
            The backend response ({success, record}).

        Raises:
            UploadError: If the video cannot be read or the request timed out
            RemoteError: If the backend answers with a non-success status
            SyncError: If the backend cannot be reached
        """
        if not record.video_path:
            raise UploadError(f"Record {record.id} has no video path", record_id=record.id)

        try:
            video_base64 = self.library.read_base64(Path(record.video_path))
        except OSError as e:
            log_upload_failed(logger, record_id=record.id, error=str(e))
            raise UploadError(
                f"Cannot read video for record {record.id}: {e}", record_id=record.id
            ) from e

        payload = build_payload([build_entry(record, video_base64)])
        logger.info(
            "Uploading record",
            extra={"record_id": record.id, "payload_kb": round(len(video_base64) / 1024)},
        )

        try:
            result = await self.client.post_records("/records", payload)
        except (UploadError, RemoteError) as e:
            log_upload_failed(logger, record_id=record.id, error=str(e))
            raise

        log_upload_success(
            logger,
            record_id=record.id,
            payload_kb=round(len(video_base64) / 1024),
            server_response_time_ms=self.client.last_response_time_ms,
        )
        return result

    async def upload_batch(self, records: Iterable[Record]) -> dict[str, Any]:
        """Upload several records in one request to the batch endpoint.

        Returns:
            The backend response ({success, savedCount, errorCount, errors?}).
        """
        entries = [build_entry(r, self._read_media(r)) for r in records]
        payload = build_payload(entries)
        return await self.client.post_records("/records/batch", payload)

    async def sync_all(
        self,
        records: Iterable[Record] | None = None,
        batched: bool = True,
    ) -> SyncReport:
        """Push records to the backend and report per-record outcomes.

        Args:
            records: Records to push. Defaults to a fresh snapshot of the
                whole local store.
            batched: Send everything in one request to /records/sync.
                When False, each record goes to /records on its own.

        Returns:
            SyncReport with one result per record. Individual failures are
            reported there, never raised.

        Raises:
            SyncError: If the backend cannot be reached at all
        """
        records = list(records) if records is not None else self.store.list_all()
        if not records:
            return SyncReport()

        started = time.monotonic()
        logger.info("Sync started", extra={"record_count": len(records), "batched": batched})

        if batched:
            report = await self._sync_batched(records)
        else:
            report = await self._sync_each(records)

        log_sync_completed(
            logger,
            synced=report.synced_count,
            failed=report.failed_count,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        return report

    async def _sync_batched(self, records: list[Record]) -> SyncReport:
        entries = []
        media_flags: dict[int, bool] = {}
        for record in records:
            video_base64 = self._read_media(record)
            media_flags[record.id] = video_base64 is not None
            entries.append(build_entry(record, video_base64))

        try:
            response = await self.client.post_records("/records/sync", build_payload(entries))
        except (UploadError, RemoteError) as e:
            for record in records:
                log_upload_failed(logger, record_id=record.id, error=str(e))
            return SyncReport(
                results=[
                    RecordSyncResult(
                        record_id=r.id,
                        success=False,
                        error=str(e),
                        media_included=media_flags[r.id],
                    )
                    for r in records
                ]
            )

        remote_errors = {
            str(item.get("recordId")): item.get("error", "unknown error")
            for item in response.get("results", {}).get("errors", [])
        }

        results = []
        for record in records:
            error = remote_errors.get(str(record.id))
            if error is not None:
                log_upload_failed(logger, record_id=record.id, error=error)
            results.append(
                RecordSyncResult(
                    record_id=record.id,
                    success=error is None,
                    error=error,
                    media_included=media_flags[record.id],
                )
            )
        return SyncReport(results=results)

    async def _sync_each(self, records: list[Record]) -> SyncReport:
        results = []
        for record in records:
            video_base64 = self._read_media(record)
            payload = build_payload([build_entry(record, video_base64)])
            try:
                await self.client.post_records("/records", payload)
            except (UploadError, RemoteError) as e:
                log_upload_failed(logger, record_id=record.id, error=str(e))
                results.append(
                    RecordSyncResult(
                        record_id=record.id,
                        success=False,
                        error=str(e),
                        media_included=video_base64 is not None,
                    )
                )
                continue

            results.append(
                RecordSyncResult(
                    record_id=record.id,
                    success=True,
                    media_included=video_base64 is not None,
                )
            )
        return SyncReport(results=results)

    def _read_media(self, record: Record) -> str | None:
        """Read a record's clip as base64, or None if it cannot be read."""
        if not record.video_path:
            logger.warning(f"Record {record.id} missing video path, sending without video")
            return None
        try:
            return self.library.read_base64(Path(record.video_path))
        except OSError as e:
            logger.warning(f"Cannot read video for record {record.id}: {e}")
            return None
