"""Record upload and retrieval API endpoints.

Devices post records inside an envelope ``{exportDate, recordCount,
records}``. Every record is upserted by its device id, so a retried upload
updates the same row instead of duplicating it.
"""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from emogo_server.api.dependencies import get_record_service
from emogo_server.errors import PayloadValidationError, RecordNotFoundError
from emogo_server.schemas import (
    BatchResponse,
    RecordErrorOut,
    RecordIn,
    RecordListResponse,
    RecordOut,
    RecordsPayload,
    SyncResponse,
    SyncResults,
    UpsertResponse,
)
from emogo_server.services.records import RecordService, format_validation_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/records", tags=["records"])


def _require_records(payload: RecordsPayload) -> list:
    if not payload.records:
        raise PayloadValidationError("Missing record data")
    return payload.records


@router.post("", response_model=UpsertResponse)
async def upload_record(
    payload: RecordsPayload,
    service: RecordService = Depends(get_record_service),
) -> UpsertResponse:
    """Upsert the first record of the payload, uploading its video if present."""
    raw = _require_records(payload)[0]

    try:
        record = RecordIn.model_validate(raw)
    except ValidationError as e:
        message = format_validation_error(e)
        logger.warning("record_invalid", error=message)
        raise PayloadValidationError(message) from e

    db_record = await service.upsert(record)
    return UpsertResponse(
        message="Record saved",
        record=RecordOut.model_validate(db_record),
    )


@router.post("/batch", response_model=BatchResponse, response_model_exclude_unset=True)
async def upload_batch(
    payload: RecordsPayload,
    service: RecordService = Depends(get_record_service),
) -> BatchResponse:
    """Upsert every record; malformed or failing records are listed in errors."""
    records = _require_records(payload)
    log = logger.bind(record_count=len(records))
    log.info("batch_upload_started")

    result = await service.batch_upsert(records)
    errors = [RecordErrorOut(record_id=f.record_id, error=f.error) for f in result.errors]

    # errors is left unset, and so omitted, when every record was saved
    extra = {"errors": errors} if errors else {}
    return BatchResponse(
        success=True,
        message=f"Saved {len(result.saved_ids)} records",
        saved_count=len(result.saved_ids),
        error_count=len(errors),
        **extra,
    )


@router.post("/sync", response_model=SyncResponse)
async def sync_records(
    payload: RecordsPayload,
    service: RecordService = Depends(get_record_service),
) -> SyncResponse:
    """Sync a device's records.

    Like ``/batch`` but missing sentiments are stored as ``unknown``/0 and
    the response lists the ids that were synced.
    """
    records = _require_records(payload)
    log = logger.bind(record_count=len(records))
    log.info("sync_started")

    result = await service.batch_upsert(records, fill_defaults=True)
    errors = [RecordErrorOut(record_id=f.record_id, error=f.error) for f in result.errors]

    return SyncResponse(
        message="Sync complete",
        synced_count=len(result.saved_ids),
        error_count=len(errors),
        results=SyncResults(synced=result.saved_ids, errors=errors),
    )


@router.get("", response_model=RecordListResponse)
async def list_records(
    service: RecordService = Depends(get_record_service),
) -> RecordListResponse:
    """All stored records, newest first."""
    records = await service.list_all()
    return RecordListResponse(
        count=len(records),
        records=[RecordOut.model_validate(r) for r in records],
    )


@router.get("/{record_id}/video")
async def get_record_video(
    record_id: str,
    service: RecordService = Depends(get_record_service),
) -> RedirectResponse:
    """Redirect to the stored video of a record."""
    record = await service.get(record_id)
    if record is None or not record.video_url:
        raise RecordNotFoundError(record_id)
    return RedirectResponse(record.video_url, status_code=302)
