"""Local persistence: the record table and the video library."""

from emogo.store.media import VideoLibrary
from emogo.store.records import Record, RecordStore

__all__ = ["Record", "RecordStore", "VideoLibrary"]
