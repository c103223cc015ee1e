"""Upload payload shared by the single, batch and sync endpoints."""

from datetime import datetime, timezone
from typing import Any

from emogo.store.records import Record


def build_entry(record: Record, video_base64: str | None) -> dict[str, Any]:
    """Project one local record onto the wire shape the backend expects."""
    return {
        "id": record.id,
        "sentiment": record.sentiment_label,
        "sentimentValue": record.sentiment,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "timestamp": record.timestamp,
        "createdAt": record.created_at,
        "videoPath": record.video_path or "",
        "videoBase64": video_base64,
    }


def build_payload(
    entries: list[dict[str, Any]],
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    """Wrap record entries in the upload envelope."""
    exported_at = exported_at or datetime.now(tz=timezone.utc)
    return {
        "exportDate": exported_at.isoformat(),
        "recordCount": len(entries),
        "records": entries,
    }
