"""
Health check endpoint.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_database
from src.api.models import HealthResponse
from src.storage.database import Database

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check the health of the service and its database.",
)
async def health_check(db: Database = Depends(get_database)) -> HealthResponse:
    """
    Check service health.

    Status is unhealthy when the database ping fails.
    """
    start = time.perf_counter()
    try:
        healthy = await db.health_check()
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))
        healthy = False
    latency_ms = (time.perf_counter() - start) * 1000

    database = "healthy" if healthy else "unhealthy"
    return HealthResponse(
        status=database,
        timestamp=int(time.time()),
        database=database,
        latency_ms=round(latency_ms, 2),
    )
