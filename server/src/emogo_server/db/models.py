"""SQLAlchemy 2.0 ORM models for the EmoGo database schema."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from emogo_server.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class CloudRecord(Base):
    """A mood record synced from a device.

    The primary key is the identifier generated on the device, so the
    same record uploaded twice lands on the same row. The video itself
    lives on the media host; only its URL and public id are kept here.
    """

    __tablename__ = "records"

    # Device-generated identifier (natural key)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Sentiment label and 0-5 value (0 = unknown)
    sentiment: Mapped[str] = mapped_column(String(20), default="unknown", nullable=False)
    sentiment_value: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Location (optional)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Capture timestamp on the device
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    # Media host reference, null until an upload succeeds
    video_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    video_public_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_uploaded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_records_created_at", "created_at"),
    )

    @property
    def has_media(self) -> bool:
        return self.video_url is not None

    def __repr__(self) -> str:
        return f"<CloudRecord(id={self.id}, sentiment={self.sentiment}, video={self.video_public_id})>"
