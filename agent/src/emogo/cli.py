"""EmoGo CLI - Command-line interface for the device client."""

import typer

from emogo import __version__
from emogo.cli_commands import (
    export_command,
    record_app,
    status_command,
    sync_command,
    upload_command,
)
from emogo.config import get_settings
from emogo.logging import setup_logging

app = typer.Typer(
    name="emogo",
    help="EmoGo - log your mood with a short video, then export or sync it.",
    no_args_is_help=True,
)

app.add_typer(record_app, name="record")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"emogo {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """EmoGo - mood records with video and location."""
    settings = get_settings()
    setup_logging(settings.log_level, log_file=settings.log_file)


app.command(name="export")(export_command)
app.command(name="sync")(sync_command)
app.command(name="upload")(upload_command)
app.command(name="status")(status_command)


if __name__ == "__main__":
    app()
