"""Schema definitions for the denormalized timeline.

A timeline entry says "viewer V may see pin P", stamped with the pin's
creation time. Waterlines are integer Unix epoch seconds, the same unit
as every ``created_at`` the API returns, so a client can pass a pin's
``created_at`` (or ``timeline_created_at``) back as ``since``.

Entries sharing the waterline's second with the newest returned entry are
skipped by the next poll. That is the known tie imprecision of
second-resolution waterlines.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from src.pins.schemas import Pin

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SECOND = timedelta(seconds=1)


def to_waterline(moment: datetime) -> int:
    """Convert a timestamp to integer epoch seconds, truncating sub-second parts."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - EPOCH) // _SECOND


def from_waterline(waterline: int) -> datetime:
    """Convert integer epoch seconds back to an aware UTC datetime."""
    return EPOCH + timedelta(seconds=waterline)


def first_instant_after(waterline: int) -> datetime:
    """Earliest timestamp whose waterline is strictly greater than ``waterline``."""
    return from_waterline(waterline + 1)


# Largest waterline whose successor second is still a representable datetime.
MAX_WATERLINE = to_waterline(datetime.max.replace(tzinfo=timezone.utc)) - 1


@dataclass
class TimelineEntry:
    """One visibility row in the ``timeline`` table.

    Attributes:
        pin_id: Pin made visible.
        account_id: Pin author, denormalized for bulk deletes on unfollow.
        visible_to_account_id: Viewer whose feed holds the entry.
        created_at: The pin's creation time, not the write time.
        id: Row identifier.
    """

    pin_id: str
    account_id: str
    visible_to_account_id: str
    created_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class TimelineItem:
    """A pin as it appears in one viewer's feed."""

    pin: Pin
    timeline_created_at: datetime

    @property
    def waterline(self) -> int:
        return to_waterline(self.timeline_created_at)


@dataclass
class TimelinePage:
    """One page of a feed, newest first, plus the cursor for the next poll."""

    items: list[TimelineItem]
    waterline: int
