"""Export API endpoints for downloading stored records and videos."""

import json
import time
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse, Response

from emogo_server.api.dependencies import get_record_service
from emogo_server.errors import RecordNotFoundError
from emogo_server.export import to_csv, to_json_document
from emogo_server.schemas import VideoListResponse, VideoOut
from emogo_server.services.records import RecordService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/export", tags=["export"])


@router.get("")
async def export_records(
    fmt: Literal["json", "csv"] = Query("json", alias="format"),
    include_media: bool = Query(False, alias="includeMedia"),
    service: RecordService = Depends(get_record_service),
) -> Response:
    """Download every record as a JSON or CSV attachment."""
    records = await service.list_all()
    filename = f"emogo_export_{int(time.time() * 1000)}.{fmt}"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}

    logger.info("export_generated", format=fmt, record_count=len(records))

    if fmt == "csv":
        return Response(
            content=to_csv(records, include_media=include_media),
            media_type="text/csv; charset=utf-8",
            headers=headers,
        )
    return Response(
        content=json.dumps(to_json_document(records), ensure_ascii=False),
        media_type="application/json",
        headers=headers,
    )


@router.get("/videos", response_model=VideoListResponse)
async def list_videos(
    service: RecordService = Depends(get_record_service),
) -> VideoListResponse:
    """Records with an uploaded video and their download links."""
    records = await service.list_with_media()
    videos = [
        VideoOut(
            id=r.id,
            sentiment=r.sentiment,
            timestamp=r.timestamp,
            created_at=r.created_at,
            video_url=r.video_url,
            download_link=f"/export/download/{r.id}",
        )
        for r in records
    ]
    return VideoListResponse(count=len(videos), videos=videos)


@router.get("/download/{record_id}")
async def download_video(
    record_id: str,
    service: RecordService = Depends(get_record_service),
) -> RedirectResponse:
    """Redirect to the media host, asking it to serve the video as a download."""
    record = await service.get(record_id)
    if record is None or not record.video_url:
        raise RecordNotFoundError(record_id)
    return RedirectResponse(f"{record.video_url}?attachment=true", status_code=302)
