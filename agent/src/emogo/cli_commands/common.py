"""Helpers shared by the CLI commands."""

import json
from contextlib import contextmanager
from typing import Iterator

import typer

from emogo.config import Settings
from emogo.errors import StorageError
from emogo.store import RecordStore, VideoLibrary


def output(data: dict, as_json: bool, human_message: str) -> None:
    """Output data as JSON or human-readable format."""
    if as_json:
        typer.echo(json.dumps(data))
    else:
        typer.echo(human_message)


def fail(data: dict, as_json: bool, human_message: str) -> None:
    """Report a failed action and exit non-zero."""
    output({"status": "error", **data}, as_json, human_message)
    raise typer.Exit(1)


@contextmanager
def open_store(
    settings: Settings,
    as_json: bool = False,
) -> Iterator[tuple[RecordStore, VideoLibrary]]:
    """Open the record store and video library configured in settings.

    A store that cannot be opened is reported like any failed command.
    """
    try:
        library = VideoLibrary(settings.videos_path)
        store = RecordStore(settings.database_path, library=library)
    except (StorageError, OSError) as e:
        fail({"message": str(e)}, as_json, f"Storage not available: {e}")

    try:
        yield store, library
    finally:
        store.close()
