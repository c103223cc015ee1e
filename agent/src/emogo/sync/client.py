"""Async HTTP client for the EmoGo backend."""

import json
import time
from typing import Any

import httpx

from emogo import __version__
from emogo.errors import RemoteError, SyncError, UploadError


class CloudClient:
    """Async HTTP client for the record, export and health endpoints.

    Uses httpx.AsyncClient for connection pooling. Requests are not
    retried automatically: sync is idempotent, so the user simply runs it
    again. Connection failures raise SyncError, timeouts raise
    UploadError and non-success statuses raise RemoteError.
    """

    def __init__(
        self,
        server_url: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: Base URL of the backend (e.g., http://localhost:5000)
            timeout: Request timeout in seconds. Videos travel inline, so
                this is generous.
            transport: Optional transport override (tests use MockTransport)
        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self.last_response_time_ms: float = 0.0

        self._client = httpx.AsyncClient(
            base_url=self.server_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={
                "User-Agent": f"emogo-client/{__version__}",
                "Content-Type": "application/json",
            },
        )

    async def post_records(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST an upload payload to one of the record endpoints.

        Args:
            path: Endpoint path ("/records", "/records/batch", "/records/sync")
            payload: Body built by emogo.sync.payload.build_payload

        Returns:
            Decoded JSON response body.
        """
        started = time.monotonic()
        try:
            response = await self._client.post(path, content=json.dumps(payload))
        except httpx.TimeoutException as e:
            raise UploadError(f"Timeout after {self.timeout:.0f}s: {e}") from e
        except httpx.TransportError as e:
            raise SyncError(f"Cannot reach server at {self.server_url}: {e}") from e
        self.last_response_time_ms = round((time.monotonic() - started) * 1000, 2)

        if not response.is_success:
            raise RemoteError(response.status_code, response.text)

        try:
            return response.json()
        except json.JSONDecodeError:
            return {}

    async def check_server(self) -> bool:
        """Return True if the backend answers its health check."""
        try:
            response = await self._client.get("/health", timeout=httpx.Timeout(5.0))
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def download_export(self, fmt: str = "json") -> bytes:
        """Download the server-side export (json or csv)."""
        return await self._get_bytes("/export", params={"format": fmt})

    async def download_video(self, record_id: int | str) -> bytes:
        """Download a record's video, following the redirect to the media host."""
        return await self._get_bytes(f"/records/{record_id}/video", follow_redirects=True)

    async def _get_bytes(self, path: str, **kwargs: Any) -> bytes:
        try:
            response = await self._client.get(path, **kwargs)
        except httpx.TimeoutException as e:
            raise UploadError(f"Timeout after {self.timeout:.0f}s: {e}") from e
        except httpx.TransportError as e:
            raise SyncError(f"Cannot reach server at {self.server_url}: {e}") from e

        if not response.is_success:
            raise RemoteError(response.status_code, response.text)
        return response.content

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "CloudClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()
