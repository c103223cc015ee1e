"""Cloud sync CLI commands."""

import asyncio

import typer

from emogo.cli_commands.common import fail, open_store, output
from emogo.config import Settings, get_settings
from emogo.errors import RemoteError, SyncError, UploadError
from emogo.store import RecordStore, VideoLibrary
from emogo.sync import CloudClient, SyncOrchestrator, SyncReport


async def _sync(
    settings: Settings,
    store: RecordStore,
    library: VideoLibrary,
    batched: bool,
) -> SyncReport:
    async with CloudClient(settings.server_url, timeout=settings.upload_timeout) as client:
        return await SyncOrchestrator(store, library, client).sync_all(batched=batched)


def sync_command(
    per_record: bool = typer.Option(
        False,
        "--per-record",
        help="Send one request per record instead of a single batch",
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Sync every local record to the cloud.

    Safe to run any number of times: records are upserted by ID.
    """
    settings = get_settings()

    with open_store(settings, output_json) as (store, library):
        try:
            report = asyncio.run(_sync(settings, store, library, batched=not per_record))
        except SyncError as e:
            fail({"message": str(e)}, output_json, f"Sync failed: {e}")

    data = {
        "status": "ok" if report.failed_count == 0 else ("partial" if report.is_partial else "error"),
        "syncedCount": report.synced_count,
        "failedCount": report.failed_count,
        "failures": [{"id": r.record_id, "error": r.error} for r in report.failed],
    }
    message = report.summary()
    if report.failed and not output_json:
        message += "".join(f"\n  #{r.record_id}: {r.error}" for r in report.failed)
    output(data, output_json, message)

    if report.failed_count and not report.synced_count:
        raise typer.Exit(1)


def upload_command(
    record_id: int = typer.Argument(..., help="Record ID"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Upload a single record with its video."""
    settings = get_settings()

    with open_store(settings, output_json) as (store, library):
        record = store.get_by_id(record_id)
        if record is None:
            fail({"id": record_id, "message": "not found"}, output_json, f"Record {record_id} not found")

        async def _upload() -> dict:
            async with CloudClient(settings.server_url, timeout=settings.upload_timeout) as client:
                return await SyncOrchestrator(store, library, client).upload_one(record)

        try:
            asyncio.run(_upload())
        except (UploadError, RemoteError, SyncError) as e:
            fail({"id": record_id, "message": str(e)}, output_json, f"Upload failed: {e}")

    output({"status": "uploaded", "id": record_id}, output_json, f"Record {record_id} uploaded")
