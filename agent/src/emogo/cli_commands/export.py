"""Export CLI command."""

import asyncio
from pathlib import Path

import typer

from emogo.cli_commands.common import fail, open_store, output
from emogo.config import get_settings
from emogo.errors import RemoteError, SyncError, UploadError
from emogo.export import write_export
from emogo.sync import CloudClient


def export_command(
    directory: Path = typer.Option(
        None,
        "--dir",
        "-d",
        help="Directory to write into (default: data directory exports/)",
    ),
    cloud: str = typer.Option(
        None,
        "--cloud",
        help="Download the server-side export instead (json or csv)",
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Export records to JSON and CSV files."""
    settings = get_settings()
    directory = directory or settings.exports_path

    if cloud:
        _export_cloud(settings, directory, cloud.lower(), output_json)
        return

    with open_store(settings, output_json) as (store, _library):
        records = store.list_all()

    files = write_export(records, directory)
    if files is None:
        output({"status": "empty", "recordCount": 0}, output_json, "No records to export")
        return

    output(
        {
            "status": "exported",
            "recordCount": files.record_count,
            "json": str(files.json_path),
            "csv": str(files.csv_path),
        },
        output_json,
        f"Exported {files.record_count} records to {files.json_path} and {files.csv_path}",
    )


def _export_cloud(settings, directory: Path, fmt: str, output_json: bool) -> None:
    if fmt not in ("json", "csv"):
        fail({"message": f"unknown format {fmt}"}, output_json, f"Unknown format: {fmt} (use json or csv)")

    async def _download() -> bytes:
        async with CloudClient(settings.server_url, timeout=settings.upload_timeout) as client:
            return await client.download_export(fmt)

    try:
        content = asyncio.run(_download())
    except (UploadError, RemoteError, SyncError) as e:
        fail({"message": str(e)}, output_json, f"Cloud export failed: {e}")

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"emogo_cloud_export.{fmt}"
    path.write_bytes(content)
    output({"status": "exported", "path": str(path)}, output_json, f"Cloud export saved to {path}")
