"""Request and response schemas for the record and export endpoints.

Wire names are camelCase, as sent by the mobile client; Python attributes
stay snake_case through the alias generator.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

SENTIMENT_LABELS: dict[int, str] = {
    1: "very bad",
    2: "bad",
    3: "neutral",
    4: "good",
    5: "very good",
}
UNKNOWN_SENTIMENT = "unknown"
ALLOWED_SENTIMENTS = frozenset([*SENTIMENT_LABELS.values(), UNKNOWN_SENTIMENT])


def sentiment_label(value: int | None) -> str:
    if value is None:
        return UNKNOWN_SENTIMENT
    return SENTIMENT_LABELS.get(value, UNKNOWN_SENTIMENT)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ---


class RecordIn(CamelModel):
    """One record inside an upload payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    sentiment: str | None = None
    sentiment_value: int | None = Field(default=None, ge=0, le=5)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    timestamp: datetime | None = None
    created_at: datetime | None = None
    video_path: str | None = None
    video_base64: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Device ids are integers; the cloud keys on their string form."""
        if isinstance(v, bool):
            raise ValueError("id must be a string or integer")
        if isinstance(v, int):
            return str(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("id must not be empty")
        return v

    @field_validator("sentiment")
    @classmethod
    def validate_sentiment(cls, v: str | None) -> str | None:
        if v is not None and v not in ALLOWED_SENTIMENTS:
            raise ValueError(f"sentiment must be one of {sorted(ALLOWED_SENTIMENTS)}")
        return v

    @field_validator("timestamp", "created_at", mode="before")
    @classmethod
    def parse_epoch_millis(cls, v: Any) -> Any:
        """Accept epoch milliseconds as well as ISO strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
        return v

    @field_validator("video_base64")
    @classmethod
    def empty_video_is_none(cls, v: str | None) -> str | None:
        return v or None


class RecordsPayload(CamelModel):
    """Envelope shared by POST /records, /records/batch and /records/sync.

    Records stay untyped here so that each one is validated on its own and
    a malformed element fails only itself.
    """

    export_date: str | None = None
    record_count: int | None = None
    records: list[Any] | None = None


# --- Responses ---


class RecordOut(CamelModel):
    """A stored record as returned by the API."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    sentiment: str
    sentiment_value: int | None
    latitude: float | None
    longitude: float | None
    timestamp: datetime
    video_url: str | None
    video_public_id: str | None = Field(default=None, alias="videoCloudinaryId")
    is_uploaded: bool
    created_at: datetime
    updated_at: datetime

    @field_serializer("timestamp", "created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        return as_utc(value).isoformat()


class RecordErrorOut(CamelModel):
    record_id: str | None
    error: str


class UpsertResponse(CamelModel):
    success: bool = True
    message: str
    record: RecordOut


class BatchResponse(CamelModel):
    success: bool = True
    message: str
    saved_count: int
    error_count: int
    errors: list[RecordErrorOut] | None = None


class SyncResults(CamelModel):
    synced: list[str]
    errors: list[RecordErrorOut]


class SyncResponse(CamelModel):
    success: bool = True
    message: str
    synced_count: int
    error_count: int
    results: SyncResults


class RecordListResponse(CamelModel):
    success: bool = True
    count: int
    records: list[RecordOut]


class VideoOut(CamelModel):
    id: str
    sentiment: str
    timestamp: datetime
    created_at: datetime
    video_url: str
    download_link: str

    @field_serializer("timestamp", "created_at")
    def serialize_datetime(self, value: datetime) -> str:
        return as_utc(value).isoformat()


class VideoListResponse(CamelModel):
    success: bool = True
    count: int
    videos: list[VideoOut]


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str
    timestamp: str
