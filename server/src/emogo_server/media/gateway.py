"""Media upload gateway - stores video bytes on the media host.

The gateway is the only place that talks to Cloudinary. Uploads are
pass-through: bytes go up untouched and a durable URL plus public id come
back. The SDK is synchronous, so calls run in a worker thread to keep the
event loop free during large uploads.
"""

import asyncio
import io
from dataclasses import dataclass

import cloudinary.uploader
import structlog

from emogo_server.config import Settings
from emogo_server.errors import MediaUploadError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UploadedMedia:
    """Reference returned by the media host for a stored video."""

    url: str
    public_id: str
    size: int = 0


class MediaGateway:
    """Interface for a media host that stores videos."""

    @property
    def configured(self) -> bool:
        return True

    async def upload(self, data: bytes, public_id: str) -> UploadedMedia:
        """Store video bytes under public_id.

        Raises:
            MediaUploadError: If the host rejects or cannot take the upload.
        """
        raise NotImplementedError

    async def delete(self, public_id: str) -> None:
        """Remove a stored video.

        Raises:
            MediaUploadError: If the host refuses the deletion.
        """
        raise NotImplementedError


class CloudinaryGateway(MediaGateway):
    """Media gateway backed by Cloudinary video storage."""

    def __init__(
        self,
        cloud_name: str | None,
        api_key: str | None,
        api_secret: str | None,
        folder: str = "emogo/videos",
        timeout: float = 60.0,
    ) -> None:
        self.cloud_name = cloud_name
        self.folder = folder
        self.timeout = timeout
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryGateway":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
            timeout=settings.upload_timeout,
        )

    @property
    def configured(self) -> bool:
        return all(self._credentials.values())

    async def upload(self, data: bytes, public_id: str) -> UploadedMedia:
        if not data:
            raise MediaUploadError("No video data provided")
        if not self.configured:
            raise MediaUploadError("Cloudinary not configured. Check environment variables.")

        log = logger.bind(public_id=public_id, size_kb=round(len(data) / 1024))
        log.info("media_upload_started")

        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                resource_type="video",
                public_id=public_id,
                folder=self.folder,
                overwrite=True,
                timeout=self.timeout,
                **self._credentials,
            )
        except Exception as e:
            log.error("media_upload_error", error=str(e))
            raise MediaUploadError(f"Upload to media host failed: {e}") from e

        return UploadedMedia(
            url=result["secure_url"],
            public_id=result["public_id"],
            size=len(data),
        )

    async def delete(self, public_id: str) -> None:
        if not self.configured:
            raise MediaUploadError("Cloudinary not configured. Check environment variables.")

        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type="video",
                **self._credentials,
            )
        except Exception as e:
            raise MediaUploadError(f"Delete from media host failed: {e}") from e

        if result.get("result") not in ("ok", "not found"):
            raise MediaUploadError(f"Delete from media host returned {result.get('result')}")
        logger.info("media_deleted", public_id=public_id)
