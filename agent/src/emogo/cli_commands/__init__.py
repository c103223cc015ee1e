"""CLI command modules for the EmoGo client."""

from emogo.cli_commands.export import export_command
from emogo.cli_commands.record import record_app
from emogo.cli_commands.status import status_command
from emogo.cli_commands.sync import sync_command, upload_command

__all__ = ["export_command", "record_app", "status_command", "sync_command", "upload_command"]
