"""Schema definitions for pins.

Maps to the ``pins`` table. The payload is opaque JSON supplied by the
client (image data reference, format, capture time); the service never
inspects it.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Pin:
    """A posted pin, optionally joined with its owner's names.

    Attributes:
        account_id: Owning account. Only the owner may delete the pin.
        payload: Opaque photo metadata (stored as JSONB).
        id: Pin identifier.
        latitude: Optional latitude in degrees.
        longitude: Optional longitude in degrees.
        location_name: Optional human-readable place name.
        caption: Optional caption.
        locations: Optional structured address list.
        created_at: Creation time; copied onto every timeline entry.
        updated_at: Last mutation time.
        username: Owner username (populated by joined reads).
        display_name: Owner display name (populated by joined reads).
    """

    account_id: str
    payload: Any
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    latitude: float | None = None
    longitude: float | None = None
    location_name: str | None = None
    caption: str | None = None
    locations: list[dict[str, Any]] | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    username: str | None = None
    display_name: str | None = None
