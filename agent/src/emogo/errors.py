"""Exception hierarchy for the EmoGo device client."""


class EmoGoError(Exception):
    """Base class for all EmoGo client errors."""


class StorageError(EmoGoError):
    """Local persistence is unavailable or a write/delete failed."""


class PermissionDeniedError(EmoGoError):
    """A required platform permission (camera, files, location) was denied."""


class UploadError(EmoGoError):
    """Media could not be read or handed to the backend."""

    def __init__(self, message: str, record_id: int | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id


class RemoteError(EmoGoError):
    """The backend answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Server responded {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class SyncError(EmoGoError):
    """The backend could not be reached at the transport level."""
