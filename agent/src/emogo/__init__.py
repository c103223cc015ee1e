"""EmoGo device client - local mood records, video library and cloud sync."""

__version__ = "1.0.0"
