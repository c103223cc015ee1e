"""Server-side export of stored records to JSON and CSV."""

import csv
import io
from datetime import datetime, timezone
from typing import Any, Sequence

from emogo_server.db.models import CloudRecord
from emogo_server.schemas import as_utc

CSV_HEADER = ["No.", "Sentiment", "Sentiment Value", "Longitude", "Latitude", "Time"]
CSV_MEDIA_HEADER = ["Video URL", "Media ID"]
TIME_FORMAT = "%Y/%m/%d %H:%M:%S"
BOM = "\ufeff"


def _iso(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def to_json_document(
    records: Sequence[CloudRecord],
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the JSON export document."""
    exported_at = exported_at or datetime.now(tz=timezone.utc)
    return {
        "exportDate": exported_at.isoformat(),
        "recordCount": len(records),
        "records": [
            {
                "id": record.id,
                "sentiment": record.sentiment,
                "sentimentValue": record.sentiment_value,
                "latitude": record.latitude,
                "longitude": record.longitude,
                "timestamp": _iso(record.timestamp),
                "videoUrl": record.video_url,
                "videoCloudinaryId": record.video_public_id,
                "createdAt": _iso(record.created_at),
            }
            for record in records
        ],
    }


def to_csv(records: Sequence[CloudRecord], include_media: bool = False) -> str:
    """Render records as BOM-prefixed CSV for spreadsheet tools.

    An empty sequence yields the header row only.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER + CSV_MEDIA_HEADER if include_media else CSV_HEADER)

    for index, record in enumerate(records, start=1):
        row = [
            index,
            record.sentiment,
            "" if record.sentiment_value is None else record.sentiment_value,
            "" if record.longitude is None else record.longitude,
            "" if record.latitude is None else record.latitude,
            as_utc(record.timestamp).strftime(TIME_FORMAT) if record.timestamp else "",
        ]
        if include_media:
            row += [record.video_url or "", record.video_public_id or ""]
        writer.writerow(row)

    return BOM + buffer.getvalue()
