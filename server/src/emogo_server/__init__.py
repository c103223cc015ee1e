"""EmoGo backend - persists synced mood records and exports them."""

__version__ = "1.0.0"
