"""Health check endpoints for liveness and readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskdesk.core.config import get_settings
from taskdesk.domain.exceptions import SqlNotConfiguredException
from taskdesk.infrastructure.persistence.database import ping
from taskdesk.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)
from taskdesk.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse(version=get_settings().app_version)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database not configured or unreachable", "model": ReadinessErrorResponse}},
)
async def readiness_check() -> ReadinessResponse | JSONResponse:
    """Return 200 if the database answers ``SELECT 1``; 503 otherwise."""
    try:
        await ping()
    except SqlNotConfiguredException:
        message = "DATABASE_URL not set"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness check failed: %s", e)
        message = "Database unreachable"
    else:
        return ReadinessResponse()
    return JSONResponse(
        status_code=503,
        content=ReadinessErrorResponse(message=message).model_dump(),
    )
