"""EmoGo client configuration settings using pydantic-settings."""

from functools import cached_property
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the EmoGo device client.

    Settings are loaded from environment variables with the EMOGO_ prefix.
    For example, EMOGO_SERVER_URL=http://localhost:5000 sets server_url.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMOGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    server_url: str = "http://localhost:5000"
    upload_timeout: float = 60.0  # seconds; videos are sent inline as base64

    # Local storage
    data_dir: Path = Path("~/.local/share/emogo")
    database_name: str = "emogo.db"
    persistent_storage: bool = True  # False models a platform without SQLite

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("upload_timeout")
    @classmethod
    def validate_upload_timeout(cls, v: float) -> float:
        """Ensure the upload timeout is positive."""
        if v <= 0:
            raise ValueError("upload_timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @cached_property
    def data_path(self) -> Path:
        """Return expanded data directory path."""
        return self.data_dir.expanduser()

    @cached_property
    def database_path(self) -> Path | None:
        """Return the SQLite file path, or None when storage is unsupported."""
        if not self.persistent_storage:
            return None
        return self.data_path / self.database_name

    @cached_property
    def videos_path(self) -> Path:
        """Return the directory holding recorded clips."""
        return self.data_path / "videos"

    @cached_property
    def exports_path(self) -> Path:
        """Return the directory export files are written to."""
        return self.data_path / "exports"
