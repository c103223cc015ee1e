"""Device-side video library.

Recorded clips are copied into a date-partitioned directory owned by the
client. Only the record store deletes files from here; sync only reads.
"""

import base64
import os
import shutil
import uuid
from datetime import datetime
from pathlib import Path

from emogo.errors import PermissionDeniedError


class VideoLibrary:
    """File storage for recorded clips.

    Files are stored in: {base_path}/{YYYY}/{MM}/{DD}/{name}.mp4
    """

    def __init__(self, base_path: Path) -> None:
        """Initialize the library.

        Args:
            base_path: Root directory for clips. Created if missing.
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def import_file(self, source: Path, captured_at: datetime | None = None) -> Path:
        """Copy a freshly recorded clip into the library.

        Args:
            source: Path of the clip handed over by the camera.
            captured_at: Capture time used for directory partitioning.

        Returns:
            Path of the stored copy.

        Raises:
            FileNotFoundError: If the source clip does not exist.
            PermissionDeniedError: If the OS refuses to read or write.
        """
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Video not found: {source}")

        captured_at = captured_at or datetime.now()
        date_path = self.base_path / captured_at.strftime("%Y/%m/%d")
        suffix = source.suffix or ".mp4"
        target = date_path / f"video_{captured_at:%H%M%S}_{uuid.uuid4().hex[:8]}{suffix}"

        try:
            date_path.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot store video {source}: {e}") from e

        return target

    def read(self, path: Path) -> bytes:
        """Read a clip fully into memory.

        Raises:
            FileNotFoundError: If the clip does not exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Video not found: {path}")
        return path.read_bytes()

    def read_base64(self, path: Path) -> str:
        """Read a clip and return it base64-encoded."""
        return base64.b64encode(self.read(path)).decode("ascii")

    def exists(self, path: Path | str | None) -> bool:
        return bool(path) and Path(path).is_file()

    def delete(self, path: Path) -> bool:
        """Delete a clip.

        Returns:
            True if the file was deleted, False if it did not exist.
        """
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            return False

    def stats(self) -> dict:
        """Count stored clips and their total size."""
        total_files = 0
        total_size = 0

        for root, _dirs, files in os.walk(self.base_path):
            for name in files:
                total_files += 1
                total_size += (Path(root) / name).stat().st_size

        return {
            "total_files": total_files,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
        }
