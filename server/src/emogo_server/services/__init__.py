"""Domain services."""

from emogo_server.services.records import BatchResult, RecordFailure, RecordService

__all__ = ["BatchResult", "RecordFailure", "RecordService"]
