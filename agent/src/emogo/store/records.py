"""SQLite-backed store for mood records captured on the device."""

import logging
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from emogo.errors import StorageError
from emogo.logging import log_record_deleted, log_record_saved
from emogo.sentiment import sentiment_label, validate_sentiment
from emogo.store.media import VideoLibrary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Record:
    """A mood entry persisted on the device."""

    id: int
    video_path: str
    sentiment: int
    latitude: float | None
    longitude: float | None
    timestamp: int  # epoch milliseconds
    created_at: str  # ISO 8601

    @property
    def sentiment_label(self) -> str:
        return sentiment_label(self.sentiment)

    @property
    def captured_at(self) -> datetime:
        """Capture time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Record":
        return cls(
            id=row["id"],
            video_path=row["video_path"],
            sentiment=row["sentiment"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            timestamp=row["timestamp"],
            created_at=row["created_at"],
        )


class RecordStore:
    """Single-table persistent store for device records.

    A store opened without a database path models a platform that has no
    persistent storage: writes are dropped with a warning and reads come
    back empty, so capture keeps working instead of failing.
    """

    def __init__(
        self,
        db_path: Path | None,
        library: VideoLibrary | None = None,
    ) -> None:
        """Open the store.

        Args:
            db_path: Path to the SQLite database file, or None when the
                platform has no persistent storage.
            library: Video library owning the referenced clips. When
                omitted, clips are unlinked directly on delete.
        """
        self.db_path = db_path
        self.library = library
        self._conn: sqlite3.Connection | None = None

        if db_path is None:
            logger.warning("Persistent storage not available - records will not be saved")
            return

        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._create_table()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Cannot open record store at {db_path}: {e}") from e

    @property
    def available(self) -> bool:
        return self._conn is not None

    def _create_table(self) -> None:
        """Create the records table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                video_path TEXT NOT NULL,
                sentiment INTEGER NOT NULL CHECK (sentiment BETWEEN 1 AND 5),
                latitude REAL,
                longitude REAL,
                timestamp INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_records_timestamp
            ON records (timestamp)
        """)
        self._conn.commit()

    def save(
        self,
        video_path: Path | str,
        sentiment: int,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> int:
        """Append one record.

        Args:
            video_path: Location of the clip in the video library
            sentiment: Sentiment value, 1 to 5
            latitude: Optional latitude
            longitude: Optional longitude

        Returns:
            The new record ID. On a platform without persistent storage
            the write is dropped and a time-derived ID is returned.

        Raises:
            ValueError: If sentiment is outside 1..5
            StorageError: If the insert fails
        """
        validate_sentiment(sentiment)
        timestamp = int(time.time() * 1000)
        created_at = datetime.now(tz=timezone.utc).isoformat()

        if not self.available:
            logger.warning("Database not available - record not saved")
            return timestamp

        try:
            cursor = self._conn.execute(
                """
                INSERT INTO records (video_path, sentiment, latitude, longitude, timestamp, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (str(video_path), sentiment, latitude, longitude, timestamp, created_at),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save record: {e}") from e

        record_id = cursor.lastrowid
        log_record_saved(
            logger,
            record_id=record_id,
            sentiment=sentiment,
            has_location=latitude is not None and longitude is not None,
        )
        return record_id

    def list_all(self) -> list[Record]:
        """Return every record, newest capture first."""
        if not self.available:
            return []

        try:
            cursor = self._conn.execute(
                """
                SELECT id, video_path, sentiment, latitude, longitude, timestamp, created_at
                FROM records
                ORDER BY timestamp DESC, id DESC
                """
            )
            return [Record.from_row(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Error fetching records: {e}")
            return []

    def get_by_id(self, record_id: int) -> Record | None:
        if not self.available:
            return None

        cursor = self._conn.execute(
            """
            SELECT id, video_path, sentiment, latitude, longitude, timestamp, created_at
            FROM records
            WHERE id = ?
            """,
            (record_id,),
        )
        row = cursor.fetchone()
        return Record.from_row(row) if row else None

    def delete(self, record_id: int) -> bool:
        """Delete a record and its clip.

        The clip is removed best-effort: a failure is logged and the row
        is deleted regardless. Deleting an unknown ID is a no-op.

        Returns:
            True if a record was deleted, False if none had this ID.

        Raises:
            StorageError: If the row deletion fails
        """
        if not self.available:
            logger.warning("Database not available - nothing to delete")
            return False

        record = self.get_by_id(record_id)
        if record is None:
            return False

        media_deleted = self._delete_media(record)

        try:
            self._conn.execute("DELETE FROM records WHERE id = ?", (record_id,))
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete record {record_id}: {e}") from e

        log_record_deleted(logger, record_id=record_id, media_deleted=media_deleted)
        return True

    def _delete_media(self, record: Record) -> bool:
        if not record.video_path:
            return False
        try:
            if self.library is not None:
                return self.library.delete(Path(record.video_path))
            Path(record.video_path).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Error deleting video file {record.video_path}: {e}")
            return False

    def count(self) -> int:
        if not self.available:
            return 0
        cursor = self._conn.execute("SELECT COUNT(*) FROM records")
        return cursor.fetchone()[0]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
