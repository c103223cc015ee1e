"""Shared FastAPI dependencies for the record and export routers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emogo_server.db.session import get_db
from emogo_server.media.gateway import MediaGateway
from emogo_server.services.records import RecordService


def get_gateway(request: Request) -> MediaGateway:
    """Media gateway created at startup and kept on app.state."""
    return request.app.state.gateway


def get_record_service(
    db: AsyncSession = Depends(get_db),
    gateway: MediaGateway = Depends(get_gateway),
) -> RecordService:
    return RecordService(session=db, gateway=gateway)
