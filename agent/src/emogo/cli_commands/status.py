"""Status command for EmoGo CLI."""

import asyncio
import json

import typer

from emogo.cli_commands.common import open_store
from emogo.config import get_settings
from emogo.sync import CloudClient


async def _server_reachable(server_url: str) -> bool:
    async with CloudClient(server_url) as client:
        return await client.check_server()


def status_command(
    offline: bool = typer.Option(False, "--offline", help="Skip the server health check"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output in JSON format"),
) -> None:
    """Show local storage and server status."""
    settings = get_settings()

    with open_store(settings, output_json) as (store, library):
        storage_available = store.available
        record_count = store.count()
        video_stats = library.stats()

    server_ok = None if offline else asyncio.run(_server_reachable(settings.server_url))

    status_data = {
        "storage_available": storage_available,
        "records": record_count,
        "videos": video_stats["total_files"],
        "videos_mb": video_stats["total_size_mb"],
        "server_url": settings.server_url,
        "server_reachable": server_ok,
    }

    if output_json:
        typer.echo(json.dumps(status_data))
        return

    typer.echo("")
    typer.echo("EmoGo Status")
    typer.echo("------------")
    typer.echo(f"Storage: {'available' if storage_available else 'not available'}")
    typer.echo(f"Records: {record_count}")
    typer.echo(f"Videos: {video_stats['total_files']} ({video_stats['total_size_mb']} MB)")
    if server_ok is None:
        typer.echo(f"Server: {settings.server_url} (not checked)")
    else:
        typer.echo(f"Server: {settings.server_url} ({'reachable' if server_ok else 'unreachable'})")
    typer.echo("")
