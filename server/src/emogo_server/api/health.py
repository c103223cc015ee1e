"""Health check API endpoints.

Provides endpoints for monitoring server liveness and readiness.
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from emogo_server.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe. Always 200 while the process serves requests."""
    return HealthResponse(
        status="ok",
        message="EmoGo Backend API is running",
        timestamp=datetime.now(tz=timezone.utc).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe.

    Returns 503 when the database does not answer. An unconfigured media
    host is reported but does not make the server unready, since records
    are still saved without video.
    """
    database_ok = await request.app.state.database.ping()
    media_configured = request.app.state.gateway.configured

    body = {
        "ready": database_ok,
        "database": "healthy" if database_ok else "unhealthy",
        "mediaHost": "configured" if media_configured else "not-configured",
    }
    if not database_ok:
        logger.warning("readiness_check_failed", database="unhealthy")
        return JSONResponse(status_code=503, content=body)
    return JSONResponse(content=body)
