"""Structured logging for the EmoGo server.

Uses structlog for contextual JSON logging with request tracking and
audit events for record writes and media host calls.

Usage:
    from emogo_server.logging import setup_logging, get_logger

    setup_logging("INFO")
    log = get_logger("emogo_server.api")
    log.info("record_upserted", record_id="42", created=True)
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from structlog.types import EventDict, Processor

# Context variable for request ID
_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> None:
    """Set the request ID in context."""
    _request_id_var.set(request_id)


def _add_request_id(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add request ID to log event if available."""
    request_id = get_request_id()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def _add_log_level(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["level"] = method_name.upper()
    return event_dict


def _add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["timestamp"] = datetime.now(tz=timezone.utc).isoformat()
    return event_dict


def setup_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON rendering.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    shared_processors: list[Processor] = [
        structlog.stdlib.add_logger_name,
        _add_timestamp,
        _add_log_level,
        _add_request_id,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    # Route uvicorn through the same formatter
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(handler)
        uvicorn_logger.propagate = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger with optional name."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request logging and request ID tracking.

    Logs request start and completion with timing information and echoes
    the request ID in the X-Request-ID response header.
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        self.logger = get_logger("emogo_server.middleware")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        set_request_id(request_id)

        client_ip = request.client.host if request.client else "unknown"
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()

        self.logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=client_ip,
        )

        start_time = time.monotonic()
        try:
            response = await call_next(request)
            duration_ms = (time.monotonic() - start_time) * 1000

            self.logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            duration_ms = (time.monotonic() - start_time) * 1000
            self.logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(exc),
            )
            raise
        finally:
            set_request_id(None)


# --- Audit Event Functions ---


def log_record_upserted(
    logger: structlog.stdlib.BoundLogger,
    record_id: str,
    created: bool,
    has_media: bool,
) -> None:
    """Log a record inserted or updated by id."""
    logger.info(
        "record_upserted",
        record_id=record_id,
        created=created,
        has_media=has_media,
    )


def log_media_uploaded(
    logger: structlog.stdlib.BoundLogger,
    record_id: str,
    public_id: str,
    size_kb: int,
) -> None:
    """Log a video stored on the media host."""
    logger.info(
        "media_uploaded",
        record_id=record_id,
        public_id=public_id,
        size_kb=size_kb,
    )


def log_media_upload_failed(
    logger: structlog.stdlib.BoundLogger,
    record_id: str,
    error: str,
) -> None:
    """Log a media upload that was skipped; the record is still saved."""
    logger.warning(
        "media_upload_failed",
        record_id=record_id,
        error=error,
    )


def log_media_cleanup_failed(
    logger: structlog.stdlib.BoundLogger,
    public_id: str,
    error: str,
) -> None:
    """Log a replaced video that could not be removed from the media host."""
    logger.warning(
        "media_cleanup_failed",
        public_id=public_id,
        error=error,
    )


def log_api_error(
    logger: structlog.stdlib.BoundLogger,
    endpoint: str,
    error_type: str,
    message: str,
) -> None:
    """Log an API error.

    Args:
        logger: Logger instance
        endpoint: API endpoint that errored
        error_type: Type of error (e.g., "validation", "internal")
        message: Error message
    """
    logger.error(
        "api_error",
        endpoint=endpoint,
        error_type=error_type,
        message=message,
    )
