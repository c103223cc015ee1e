"""Record management CLI commands - capture, list, show, delete."""

import asyncio
from pathlib import Path

import typer

from emogo.cli_commands.common import fail, open_store, output
from emogo.config import get_settings
from emogo.errors import PermissionDeniedError, RemoteError, StorageError, SyncError, UploadError
from emogo.export import to_json
from emogo.sentiment import MAX_SENTIMENT, MIN_SENTIMENT
from emogo.sync import CloudClient, SyncOrchestrator

record_app = typer.Typer(
    name="record",
    help="Mood records - capture, list, show and delete.",
    no_args_is_help=True,
)


@record_app.command("add")
def add(
    video: Path = typer.Argument(..., help="Recorded video clip to attach"),
    sentiment: int = typer.Option(
        ...,
        "--sentiment",
        "-s",
        min=MIN_SENTIMENT,
        max=MAX_SENTIMENT,
        help="Mood from 1 (very bad) to 5 (very good)",
    ),
    latitude: float = typer.Option(None, "--lat", help="Latitude of the capture"),
    longitude: float = typer.Option(None, "--lon", help="Longitude of the capture"),
    upload: bool = typer.Option(False, "--upload", "-u", help="Upload to the cloud after saving"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Save a new mood record with its video and optional location."""
    settings = get_settings()

    with open_store(settings, output_json) as (store, library):
        try:
            video_path = library.import_file(video)
        except FileNotFoundError as e:
            fail({"message": str(e)}, output_json, f"Video not found: {video}")
        except PermissionDeniedError as e:
            fail({"message": str(e)}, output_json, f"Permission denied: {e}")

        try:
            record_id = store.save(video_path, sentiment, latitude, longitude)
        except StorageError as e:
            library.delete(video_path)
            fail({"message": str(e)}, output_json, f"Failed to save record: {e}")

        if not store.available:
            # The row was dropped, so the copied clip has no owner
            library.delete(video_path)
            output(
                {"status": "not_persisted", "id": record_id},
                output_json,
                "Persistent storage not available, record was not saved",
            )
            return

        record = store.get_by_id(record_id)
        if not upload or record is None:
            output(
                {"status": "saved", "id": record_id},
                output_json,
                f"Record {record_id} saved",
            )
            return

        try:
            asyncio.run(_upload(settings, store, library, record))
        except (UploadError, RemoteError, SyncError) as e:
            output(
                {"status": "partial", "id": record_id, "message": str(e)},
                output_json,
                f"Record {record_id} saved locally, but cloud upload failed: {e}",
            )
            raise typer.Exit(1)

        output(
            {"status": "uploaded", "id": record_id},
            output_json,
            f"Record {record_id} saved and uploaded",
        )


async def _upload(settings, store, library, record) -> None:
    async with CloudClient(settings.server_url, timeout=settings.upload_timeout) as client:
        await SyncOrchestrator(store, library, client).upload_one(record)


@record_app.command("list")
def list_records(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """List saved records, newest first."""
    settings = get_settings()

    with open_store(settings, output_json) as (store, _library):
        records = store.list_all()

    if output_json:
        output(to_json(records), True, "")
        return

    if not records:
        typer.echo("No records yet")
        return

    for record in records:
        location = (
            f"{record.latitude:.5f}, {record.longitude:.5f}"
            if record.has_location
            else "no location"
        )
        typer.echo(
            f"#{record.id}  {record.captured_at.astimezone():%Y-%m-%d %H:%M}  "
            f"{record.sentiment_label:<9}  {location}"
        )
    typer.echo(f"{len(records)} record{'s' if len(records) != 1 else ''}")


@record_app.command("show")
def show(
    record_id: int = typer.Argument(..., help="Record ID"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Show one record."""
    settings = get_settings()

    with open_store(settings, output_json) as (store, library):
        record = store.get_by_id(record_id)
        if record is None:
            fail({"id": record_id, "message": "not found"}, output_json, f"Record {record_id} not found")
        video_present = library.exists(record.video_path)

    data = to_json([record])["records"][0]
    data["videoPresent"] = video_present
    output(
        data,
        output_json,
        "\n".join(
            [
                f"Record {record.id}",
                f"Sentiment: {record.sentiment_label} ({record.sentiment})",
                f"Location: {record.latitude}, {record.longitude}",
                f"Captured: {record.captured_at.isoformat()}",
                f"Video: {record.video_path}{'' if video_present else ' (missing)'}",
            ]
        ),
    )


@record_app.command("delete")
def delete(
    record_id: int = typer.Argument(..., help="Record ID"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Delete a record and its video."""
    settings = get_settings()

    with open_store(settings, output_json) as (store, _library):
        try:
            deleted = store.delete(record_id)
        except StorageError as e:
            fail({"id": record_id, "message": str(e)}, output_json, f"Failed to delete record: {e}")

    if not deleted:
        output(
            {"status": "not_found", "id": record_id},
            output_json,
            f"Record {record_id} not found, nothing deleted",
        )
        return

    output({"status": "deleted", "id": record_id}, output_json, f"Record {record_id} deleted")
