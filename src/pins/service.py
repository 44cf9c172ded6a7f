"""Pin service: validated create/read/delete with timeline fan-out on create."""

import logging
from typing import Any

from src.errors import (
    MissingPayload,
    PermissionDenied,
    PinNotFound,
    ValidationError,
)
from src.observability.metrics import get_metrics
from src.pins.config import PinConfig
from src.pins.repository import PinRepository
from src.pins.schemas import Pin
from src.timeline.fanout import FanoutService

logger = logging.getLogger(__name__)


class PinService:
    """Create, read, list, and delete pins.

    Reads are open to any authenticated caller; only the owner may delete.
    """

    def __init__(
        self,
        pin_repo: PinRepository,
        fanout: FanoutService,
        config: PinConfig | None = None,
    ) -> None:
        self._pins = pin_repo
        self._fanout = fanout
        self._config = config or PinConfig()

    async def create_pin(
        self,
        owner_id: str,
        payload: Any,
        *,
        latitude: float | None = None,
        longitude: float | None = None,
        location_name: str | None = None,
        caption: str | None = None,
        locations: list[dict[str, Any]] | None = None,
    ) -> Pin:
        """Store a pin, then publish it to the owner's and followers' timelines.

        A FanoutError from publishing propagates, but the pin itself is
        already committed at that point.

        Raises:
            MissingPayload: ``payload`` absent or empty.
        """
        if payload is None or payload == "" or payload == {}:
            raise MissingPayload("photo_data is required")

        pin = await self._pins.create(
            Pin(
                account_id=owner_id,
                payload=payload,
                latitude=latitude,
                longitude=longitude,
                location_name=location_name,
                caption=caption,
                locations=locations,
            )
        )
        get_metrics().pins_created.inc()

        await self._fanout.publish(pin.id, owner_id, pin.created_at)
        return pin

    async def get_pin(self, pin_id: str) -> Pin:
        pin = await self._pins.get_by_id(pin_id)
        if pin is None:
            raise PinNotFound()
        return pin

    async def list_pins_by_account(
        self,
        account_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Pin]:
        if limit is None:
            limit = self._config.default_list_limit
        if limit < 1:
            raise ValidationError("limit must be positive", error="Invalid limit")
        if offset < 0:
            raise ValidationError("offset must be non-negative", error="Invalid offset")
        limit = min(limit, self._config.max_list_limit)
        return await self._pins.list_by_account(account_id, limit=limit, offset=offset)

    async def delete_pin(self, pin_id: str, requester_id: str) -> None:
        """Delete a pin and, by cascade, all of its timeline entries.

        Raises:
            PinNotFound: no such pin.
            PermissionDenied: requester is not the owner.
        """
        owner_id = await self._pins.get_owner_id(pin_id)
        if owner_id is None:
            raise PinNotFound()
        if owner_id != requester_id:
            raise PermissionDenied("You can only delete your own pins")

        if not await self._pins.delete(pin_id):
            raise PinNotFound()

        get_metrics().pins_deleted.inc()
        logger.info(f"Deleted pin {pin_id}")
