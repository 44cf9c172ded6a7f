"""Schema definitions for login sessions.

Maps to the ``sessions`` table. A session is valid iff ``now < expires_at``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """A persisted bearer session.

    Attributes:
        account_id: Owning account.
        session_token: Opaque bearer token sent in ``Authorization``.
        expires_at: Absolute expiry; the session is rejected at or after it.
        id: Row identifier.
        created_at: Issuance time.
        last_used_at: Last successful authentication.
        user_agent: Client ``User-Agent`` at issuance.
        ip_address: Client address at issuance.
    """

    account_id: str
    session_token: str
    expires_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_now)
    last_used_at: datetime = field(default_factory=_now)
    user_agent: str | None = None
    ip_address: str | None = None

    def is_valid(self, now: datetime | None = None) -> bool:
        return (now or _now()) < self.expires_at


@dataclass(frozen=True)
class AuthenticatedAccount:
    """Identity attached to a request after session validation."""

    id: str
    username: str
    email: str
    display_name: str | None = None
    handle: str | None = None
    session_id: str | None = None


@dataclass(frozen=True)
class OAuthLogin:
    """Provider identity posted by the client after its OAuth exchange."""

    provider: str | None
    oauth_id: str | None
    email: str | None
    name: str | None = None
    avatar_url: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
