"""Structured JSON logging for the EmoGo device client.

Every user-triggered action (save, delete, export, sync) leaves one audit
line with contextual fields. Video contents and coordinates never reach
the log; only identifiers and sizes do.

Usage:
    from emogo.logging import setup_logging, get_logger

    setup_logging("INFO")
    log = get_logger("emogo.sync")
    log.info("sync_started", extra={"record_count": 3})
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pythonjsonlogger import jsonlogger

from emogo import __version__

# Default device identifier (can be overridden)
_device_id: str | None = None


class EmoGoJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds client context to all log records."""

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        """Add standard fields to every log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["client_version"] = __version__
        if _device_id:
            log_record["device_id"] = _device_id

        if "message" not in log_record and record.getMessage():
            log_record["message"] = record.getMessage()

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format time as ISO 8601."""
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return dt.isoformat()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    device_id: str | None = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> None:
    """Configure root logger with JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for rotating file handler
        device_id: Identifier for this device installation
        max_bytes: Max size per log file for rotation
        backup_count: Number of backup files to keep
    """
    global _device_id
    if device_id:
        _device_id = device_id

    formatter = EmoGoJsonFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # JSON to stderr so CLI output on stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get a named logger (e.g. 'emogo.store', 'emogo.sync')."""
    return logging.getLogger(name)


# --- Audit Event Functions ---


def log_record_saved(
    logger: logging.Logger,
    record_id: int,
    sentiment: int,
    has_location: bool,
) -> None:
    """Log a record written to the local store."""
    logger.info(
        "Record saved",
        extra={
            "event": "record_saved",
            "record_id": record_id,
            "sentiment": sentiment,
            "has_location": has_location,
        },
    )


def log_record_deleted(
    logger: logging.Logger,
    record_id: int,
    media_deleted: bool,
) -> None:
    """Log a record removed from the local store."""
    logger.info(
        "Record deleted",
        extra={
            "event": "record_deleted",
            "record_id": record_id,
            "media_deleted": media_deleted,
        },
    )


def log_upload_success(
    logger: logging.Logger,
    record_id: int,
    payload_kb: int,
    server_response_time_ms: float,
) -> None:
    """Log a record accepted by the backend."""
    logger.info(
        "Upload successful",
        extra={
            "event": "upload_success",
            "record_id": record_id,
            "payload_kb": payload_kb,
            "server_response_time_ms": server_response_time_ms,
        },
    )


def log_upload_failed(
    logger: logging.Logger,
    record_id: int,
    error: str,
) -> None:
    """Log a record the backend did not accept."""
    logger.warning(
        "Upload failed",
        extra={
            "event": "upload_failed",
            "record_id": record_id,
            "error": error,
        },
    )


def log_sync_completed(
    logger: logging.Logger,
    synced: int,
    failed: int,
    duration_ms: float,
) -> None:
    """Log the outcome of a sync run."""
    logger.info(
        "Sync completed",
        extra={
            "event": "sync_completed",
            "synced": synced,
            "failed": failed,
            "duration_ms": duration_ms,
        },
    )
