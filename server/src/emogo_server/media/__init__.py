"""Media host integration."""

from emogo_server.media.gateway import CloudinaryGateway, MediaGateway, UploadedMedia

__all__ = ["CloudinaryGateway", "MediaGateway", "UploadedMedia"]
