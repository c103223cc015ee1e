"""Cloud record service - upsert-by-id with media hand-off.

Every record is written in its own transaction. Two concurrent upserts
of the same id race and the last commit wins; there is no version column.
"""

import base64
import binascii
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from emogo_server.db.models import CloudRecord
from emogo_server.errors import MediaUploadError, PersistenceError
from emogo_server.logging import (
    log_media_cleanup_failed,
    log_media_upload_failed,
    log_media_uploaded,
    log_record_upserted,
)
from emogo_server.media.gateway import MediaGateway, UploadedMedia
from emogo_server.schemas import RecordIn, sentiment_label

logger = structlog.get_logger(__name__)


@dataclass
class RecordFailure:
    """A record of a batch that could not be saved."""

    record_id: str | None
    error: str


@dataclass
class BatchResult:
    """Per-record outcome of a batch upsert."""

    saved_ids: list[str] = field(default_factory=list)
    errors: list[RecordFailure] = field(default_factory=list)


def format_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic error into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "record"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class RecordService:
    """Persists records uploaded by devices.

    Args:
        session: Request-scoped database session
        gateway: Shared media host gateway
    """

    def __init__(self, session: AsyncSession, gateway: MediaGateway) -> None:
        self.session = session
        self.gateway = gateway

    async def upsert(self, record: RecordIn, fill_defaults: bool = False) -> CloudRecord:
        """Insert or update one record by its device id.

        A video in the payload is uploaded first; if that fails, or there is
        no video, the record is saved with no media reference. A previous
        video that is no longer referenced is removed from the media host
        afterwards, best-effort.

        Args:
            record: Validated record
            fill_defaults: Store 'unknown'/0 for a missing sentiment

        Raises:
            PersistenceError: If the database write fails
        """
        log = logger.bind(record_id=record.id)
        media = await self._upload_media(record)

        try:
            existing = await self.get(record.id)
            previous_public_id = existing.video_public_id if existing else None
            values = self._values(record, media, fill_defaults, updating=existing is not None)

            if existing is not None:
                for key, value in values.items():
                    setattr(existing, key, value)
                db_record = existing
            else:
                db_record = CloudRecord(**values)
                self.session.add(db_record)

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("record_save_failed", error=str(e))
            if media is not None:
                await self._delete_media(media.public_id)
            raise PersistenceError(f"Failed to save record {record.id}: {e}") from e

        new_public_id = media.public_id if media is not None else None
        if previous_public_id and previous_public_id != new_public_id:
            await self._delete_media(previous_public_id)

        log_record_upserted(
            log,
            record_id=record.id,
            created=existing is None,
            has_media=db_record.has_media,
        )
        return db_record

    async def batch_upsert(
        self,
        raw_records: Iterable[Any],
        fill_defaults: bool = False,
    ) -> BatchResult:
        """Validate and upsert each element independently.

        A failing element is reported in ``errors`` and never stops the
        remaining ones.
        """
        result = BatchResult()

        for raw in raw_records:
            raw_id = raw.get("id") if isinstance(raw, dict) else None
            record_id = str(raw_id) if raw_id is not None else None

            try:
                record = RecordIn.model_validate(raw)
            except ValidationError as e:
                message = format_validation_error(e)
                logger.warning("record_invalid", record_id=record_id, error=message)
                result.errors.append(RecordFailure(record_id=record_id, error=message))
                continue

            try:
                saved = await self.upsert(record, fill_defaults=fill_defaults)
                # A later rollback expires saved instances; keep plain ids only
                result.saved_ids.append(saved.id)
            except PersistenceError as e:
                result.errors.append(RecordFailure(record_id=record.id, error=str(e)))

        logger.info(
            "batch_upsert_complete",
            saved=len(result.saved_ids),
            errors=len(result.errors),
        )
        return result

    async def get(self, record_id: str) -> CloudRecord | None:
        result = await self.session.execute(
            select(CloudRecord).where(CloudRecord.id == record_id)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[CloudRecord]:
        """All records, most recently created first."""
        try:
            result = await self.session.execute(
                select(CloudRecord).order_by(CloudRecord.created_at.desc(), CloudRecord.id.desc())
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load records: {e}") from e
        return list(result.scalars().all())

    async def list_with_media(self) -> list[CloudRecord]:
        """Records that have a stored video, most recently created first."""
        try:
            result = await self.session.execute(
                select(CloudRecord)
                .where(CloudRecord.video_url.is_not(None))
                .order_by(CloudRecord.created_at.desc(), CloudRecord.id.desc())
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load videos: {e}") from e
        return list(result.scalars().all())

    def _values(
        self,
        record: RecordIn,
        media: UploadedMedia | None,
        fill_defaults: bool,
        updating: bool = False,
    ) -> dict[str, Any]:
        now = datetime.now(tz=timezone.utc)
        sentiment_value = record.sentiment_value
        if sentiment_value is None and fill_defaults:
            sentiment_value = 0

        values: dict[str, Any] = {
            "id": record.id,
            "sentiment": record.sentiment or sentiment_label(sentiment_value),
            "sentiment_value": sentiment_value,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "timestamp": record.timestamp,
            "video_url": media.url if media is not None else None,
            "video_public_id": media.public_id if media is not None else None,
            "is_uploaded": True,
            "updated_at": now,
        }
        # An update without a capture time keeps the stored one
        if record.timestamp is None:
            if updating:
                del values["timestamp"]
            else:
                values["timestamp"] = now
        if record.created_at is not None:
            values["created_at"] = record.created_at
        return values

    async def _upload_media(self, record: RecordIn) -> UploadedMedia | None:
        if not record.video_base64:
            return None

        try:
            data = base64.b64decode(record.video_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            log_media_upload_failed(logger, record_id=record.id, error=f"invalid base64: {e}")
            return None

        public_id = f"video_{record.id}_{int(time.time() * 1000)}"
        try:
            media = await self.gateway.upload(data, public_id=public_id)
        except MediaUploadError as e:
            log_media_upload_failed(logger, record_id=record.id, error=str(e))
            return None

        log_media_uploaded(
            logger,
            record_id=record.id,
            public_id=media.public_id,
            size_kb=round(len(data) / 1024),
        )
        return media

    async def _delete_media(self, public_id: str) -> None:
        try:
            await self.gateway.delete(public_id)
        except MediaUploadError as e:
            log_media_cleanup_failed(logger, public_id=public_id, error=str(e))
