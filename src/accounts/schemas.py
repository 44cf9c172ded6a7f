"""Schema definitions for accounts and linked OAuth credentials.

Maps 1:1 to the ``accounts`` and ``oauth_tokens`` database tables.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

HANDLE_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_handle(handle: str) -> bool:
    return bool(HANDLE_PATTERN.match(handle))


def is_valid_username(username: str) -> bool:
    return bool(USERNAME_PATTERN.match(username))


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Account:
    """A persisted account from the accounts table.

    Attributes:
        id: Opaque account identifier (uuid4 string).
        username: Unique login name, derived from the email on OAuth signup.
        email: Unique email address.
        handle: Public handle, claimed after signup. None until claimed.
        display_name: Name shown next to pins and in search results.
        bio: Free-text profile description.
        avatar_url: Optional avatar image URL from the OAuth provider.
        oauth_provider: Provider the account signed up with, if any.
        oauth_id: Provider-side subject identifier.
        is_verified: Whether the account is verified.
        created_at: Account creation time.
        updated_at: Last profile mutation time.
    """

    username: str
    email: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    handle: str | None = None
    display_name: str | None = None
    bio: str = ""
    avatar_url: str | None = None
    oauth_provider: str | None = None
    oauth_id: str | None = None
    is_verified: bool = False
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def needs_handle(self) -> bool:
        return not self.handle


@dataclass
class OAuthToken:
    """Provider tokens stored per (account, provider)."""

    account_id: str
    provider: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scope: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
