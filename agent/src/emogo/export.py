"""Export of local records to JSON and CSV files for sharing."""

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from emogo.store.records import Record

logger = logging.getLogger(__name__)

CSV_HEADER = ["No.", "Sentiment", "Sentiment Value", "Longitude", "Latitude", "Time"]
TIME_FORMAT = "%Y/%m/%d %H:%M:%S"
BOM = "\ufeff"


@dataclass(frozen=True)
class ExportFiles:
    """Paths of one export run."""

    json_path: Path
    csv_path: Path
    record_count: int


def to_json(records: Sequence[Record], exported_at: datetime | None = None) -> dict[str, Any]:
    """Build the JSON export document for a set of records."""
    exported_at = exported_at or datetime.now(tz=timezone.utc)
    return {
        "exportDate": exported_at.isoformat(),
        "recordCount": len(records),
        "records": [
            {
                "id": record.id,
                "sentiment": record.sentiment_label,
                "sentimentValue": record.sentiment,
                "latitude": record.latitude,
                "longitude": record.longitude,
                "timestamp": record.captured_at.isoformat(),
                "videoPath": record.video_path,
                "createdAt": record.created_at,
            }
            for record in records
        ],
    }


def to_delimited_text(records: Sequence[Record], bom: bool = False) -> str:
    """Render records as CSV with a numbered row per record.

    Args:
        records: Records in display order
        bom: Prepend a UTF-8 byte-order mark so spreadsheets pick the
            right encoding.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for index, record in enumerate(records, start=1):
        writer.writerow(
            [
                index,
                record.sentiment_label,
                record.sentiment,
                "" if record.longitude is None else record.longitude,
                "" if record.latitude is None else record.latitude,
                record.captured_at.astimezone().strftime(TIME_FORMAT),
            ]
        )
    text = buffer.getvalue()
    return BOM + text if bom else text


def write_export(
    records: Sequence[Record],
    directory: Path,
    exported_at: datetime | None = None,
) -> ExportFiles | None:
    """Write JSON and CSV exports side by side.

    Returns:
        The written files, or None when there is nothing to export.
    """
    if not records:
        logger.info("Nothing to export")
        return None

    exported_at = exported_at or datetime.now(tz=timezone.utc)
    stamp = int(exported_at.timestamp() * 1000)
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    json_path = directory / f"emogo_export_{stamp}.json"
    csv_path = directory / f"emogo_export_{stamp}.csv"

    json_path.write_text(
        json.dumps(to_json(records, exported_at), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    csv_path.write_text(to_delimited_text(records, bom=True), encoding="utf-8")

    logger.info(
        "Export written",
        extra={"event": "export_written", "record_count": len(records), "directory": str(directory)},
    )
    return ExportFiles(json_path=json_path, csv_path=csv_path, record_count=len(records))
