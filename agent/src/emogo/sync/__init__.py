"""Sync module: backend client, upload payloads and the sync orchestrator."""

from emogo.sync.client import CloudClient
from emogo.sync.orchestrator import RecordSyncResult, SyncOrchestrator, SyncReport
from emogo.sync.payload import build_entry, build_payload

__all__ = [
    "CloudClient",
    "RecordSyncResult",
    "SyncOrchestrator",
    "SyncReport",
    "build_entry",
    "build_payload",
]
