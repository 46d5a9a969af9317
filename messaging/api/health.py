"""
Health check endpoints for liveness and readiness probes.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from messaging.core.config import Settings, get_settings
from messaging.core.database import check_db_connection, get_db
from messaging.core.logging import get_logger
from messaging.schemas.message import HealthResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Always returns 200 to indicate the service is alive."
)
async def liveness() -> HealthResponse:
    return HealthResponse(status="ok")


@router.get(
    "/ready",
    response_model=HealthResponse,
    summary="Readiness probe",
    description="Returns 200 if the message store is reachable."
)
def readiness(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Readiness probe - checks if the service can handle traffic.

    Checks:
    - The message store answers a trivial query
    - Reports whether caller ids must be gateway-signed (informational)
    """
    checks = {}

    db_ok = check_db_connection(db)
    checks["database"] = "ok" if db_ok else "failed"
    checks["identity_signing"] = "enabled" if settings.is_identity_signing_enabled else "disabled"

    if db_ok:
        return HealthResponse(status="ok", checks=checks)

    logger.warning("Readiness check failed: database not reachable")
    response.status_code = 503
    return HealthResponse(status="not ready", checks=checks)
