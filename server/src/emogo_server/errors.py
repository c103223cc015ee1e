"""Server-side errors and their HTTP status codes."""


class EmoGoServerError(Exception):
    """Base class for errors rendered as JSON error responses."""

    status_code = 500

    def extra(self) -> dict:
        """Additional fields for the error body."""
        return {}


class PayloadValidationError(EmoGoServerError):
    """The request body is missing required fields or is malformed."""

    status_code = 400


class RecordNotFoundError(EmoGoServerError):
    """No record (or no media for the record) exists for the identifier."""

    status_code = 404

    def __init__(self, record_id: str, message: str = "Video not found") -> None:
        super().__init__(message)
        self.record_id = record_id

    def extra(self) -> dict:
        return {"recordId": self.record_id}


class PersistenceError(EmoGoServerError):
    """The database rejected a read or write."""

    status_code = 500


class MediaUploadError(EmoGoServerError):
    """The media host rejected an upload or delete."""

    status_code = 502
