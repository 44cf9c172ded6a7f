"""Schema definitions for the follow graph."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FollowEdge:
    """Directed ``follower -> following`` edge.

    ``username`` and ``display_name`` describe the followed account and are
    filled in by the insert's join.
    """

    follower_id: str
    following_id: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_now)
    username: str | None = None
    display_name: str | None = None


@dataclass
class FollowedAccount:
    """An account on the other end of an edge, as listed to clients.

    ``created_at`` is when the edge was created, not the account.
    """

    id: str
    username: str
    display_name: str | None
    created_at: datetime


@dataclass
class AccountSearchResult:
    id: str
    username: str
    display_name: str | None
    bio: str
    is_following: bool
