"""Pin endpoints and the timeline feed.

``/timeline`` and ``/account/{account_id}`` are registered before
``/{pin_id}`` so they are not captured as pin ids.
"""

import time

import structlog
from fastapi import APIRouter, Depends, Query, status

from src.api.auth import get_current_account
from src.api.dependencies import get_pin_service, get_timeline_service
from src.api.models import (
    ErrorResponse,
    PinCreateRequest,
    PinItem,
    SuccessResponse,
    TimelinePinItem,
    TimelineResponse,
    epoch_seconds,
)
from src.auth.schemas import AuthenticatedAccount
from src.errors import ServiceError, StorageError
from src.pins.schemas import Pin
from src.pins.service import PinService
from src.timeline.schemas import MAX_WATERLINE, TimelineItem
from src.timeline.service import TimelineService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/pins")


def _pin_fields(pin: Pin) -> dict:
    return {
        "id": pin.id,
        "account_id": pin.account_id,
        "photo_data": pin.payload,
        "latitude": pin.latitude,
        "longitude": pin.longitude,
        "location_name": pin.location_name,
        "caption": pin.caption,
        "locations": pin.locations,
        "username": pin.username,
        "display_name": pin.display_name,
        "created_at": epoch_seconds(pin.created_at),
        "updated_at": epoch_seconds(pin.updated_at),
    }


def _pin_item(pin: Pin) -> PinItem:
    return PinItem(**_pin_fields(pin))


def _timeline_item(item: TimelineItem) -> TimelinePinItem:
    return TimelinePinItem(
        **_pin_fields(item.pin),
        timeline_created_at=item.waterline,
    )


@router.post(
    "",
    response_model=PinItem,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing photo data"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
        500: {
            "model": ErrorResponse,
            "description": "Server error; the pin may exist if fan-out was incomplete",
        },
    },
    summary="Post a pin",
    description=(
        "Store a pin and write it into the timelines of the author and "
        "every current follower."
    ),
)
async def create_pin(
    body: PinCreateRequest,
    account: AuthenticatedAccount = Depends(get_current_account),
    pin_service: PinService = Depends(get_pin_service),
) -> PinItem:
    start_time = time.perf_counter()

    try:
        pin = await pin_service.create_pin(
            account.id,
            body.photo_data,
            latitude=body.latitude,
            longitude=body.longitude,
            location_name=body.location_name,
            caption=body.caption,
            locations=body.locations,
        )

        logger.info(
            "Pin created",
            pin_id=pin.id,
            account_id=account.id,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return _pin_item(pin)

    except ServiceError:
        raise
    except Exception as e:
        logger.error("create_pin_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to create photo") from e


@router.get(
    "/timeline",
    response_model=TimelineResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid since or limit"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
    },
    summary="Get the caller's timeline",
    description=(
        "Entries newer than `since` (epoch seconds), newest first. "
        "Pass the returned `waterline` as `since` on the next poll."
    ),
)
async def get_timeline(
    since: int = Query(
        default=0,
        ge=0,
        le=MAX_WATERLINE,
        description="Waterline from the previous poll, or a pin created_at",
    ),
    limit: int | None = Query(default=None, ge=1, description="Clamped to 100"),
    account: AuthenticatedAccount = Depends(get_current_account),
    timeline_service: TimelineService = Depends(get_timeline_service),
) -> TimelineResponse:
    start_time = time.perf_counter()

    try:
        page = await timeline_service.get_timeline(account.id, since=since, limit=limit)

        logger.debug(
            "Timeline read",
            account_id=account.id,
            count=len(page.items),
            waterline=page.waterline,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return TimelineResponse(
            photos=[_timeline_item(item) for item in page.items],
            waterline=page.waterline,
        )

    except ServiceError:
        raise
    except Exception as e:
        logger.error("get_timeline_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to get timeline") from e


@router.get(
    "/account/{account_id}",
    response_model=list[PinItem],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid paging parameters"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
    },
    summary="List an account's pins",
)
async def list_account_pins(
    account_id: str,
    limit: int | None = Query(default=None, ge=1, description="Clamped to 100"),
    offset: int = Query(default=0, ge=0),
    account: AuthenticatedAccount = Depends(get_current_account),
    pin_service: PinService = Depends(get_pin_service),
) -> list[PinItem]:
    try:
        pins = await pin_service.list_pins_by_account(
            account_id, limit=limit, offset=offset
        )
        return [_pin_item(pin) for pin in pins]
    except ServiceError:
        raise
    except Exception as e:
        logger.error("list_account_pins_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to get photos") from e


@router.get(
    "/{pin_id}",
    response_model=PinItem,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        404: {"model": ErrorResponse, "description": "Pin not found"},
    },
    summary="Get a pin",
)
async def get_pin(
    pin_id: str,
    account: AuthenticatedAccount = Depends(get_current_account),
    pin_service: PinService = Depends(get_pin_service),
) -> PinItem:
    try:
        return _pin_item(await pin_service.get_pin(pin_id))
    except ServiceError:
        raise
    except Exception as e:
        logger.error("get_pin_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to get photo") from e


@router.delete(
    "/{pin_id}",
    response_model=SuccessResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        403: {"model": ErrorResponse, "description": "Not the pin owner"},
        404: {"model": ErrorResponse, "description": "Pin not found"},
    },
    summary="Delete a pin",
    description="Owner only. Removes the pin from every timeline.",
)
async def delete_pin(
    pin_id: str,
    account: AuthenticatedAccount = Depends(get_current_account),
    pin_service: PinService = Depends(get_pin_service),
) -> SuccessResponse:
    try:
        await pin_service.delete_pin(pin_id, account.id)
        logger.info("Pin deleted", pin_id=pin_id, account_id=account.id)
        return SuccessResponse()
    except ServiceError:
        raise
    except Exception as e:
        logger.error("delete_pin_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to delete photo") from e
