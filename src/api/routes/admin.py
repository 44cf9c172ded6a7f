"""Admin endpoints for timeline maintenance."""

import time

import structlog
from fastapi import APIRouter, Depends

from src.accounts.service import AccountService
from src.api.auth import verify_api_key
from src.api.dependencies import get_account_service, get_fanout_service
from src.api.models import ErrorResponse, RebuildResponse
from src.errors import ServiceError, StorageError
from src.timeline.fanout import FanoutService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/admin")


@router.post(
    "/timeline/rebuild/{account_id}",
    response_model=RebuildResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        404: {"model": ErrorResponse, "description": "Account not found"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Rebuild an account's timeline entries",
    description=(
        "Delete every timeline entry for pins authored by the account and "
        "republish all of its pins to its current followers and itself, in "
        "one transaction. Repairs an incomplete fan-out."
    ),
)
async def rebuild_timeline(
    account_id: str,
    api_key: str = Depends(verify_api_key),
    account_service: AccountService = Depends(get_account_service),
    fanout: FanoutService = Depends(get_fanout_service),
) -> RebuildResponse:
    start_time = time.perf_counter()

    try:
        await account_service.get(account_id)
        written = await fanout.rebuild_account(account_id)

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Timeline rebuilt",
            account_id=account_id,
            entries_written=written,
            latency_ms=round(latency_ms, 2),
        )
        return RebuildResponse(
            account_id=account_id,
            entries_written=written,
            latency_ms=round(latency_ms, 2),
        )

    except ServiceError:
        raise
    except Exception as e:
        logger.error("rebuild_timeline_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to rebuild timeline") from e
