"""
Request and response models for the pin timeline API.

All timestamps, timeline waterlines included, are integer Unix epoch
seconds.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str = Field(
        ...,
        description="Machine-readable error",
    )
    message: str | None = Field(
        default=None,
        description="Human-readable detail",
    )


class SuccessResponse(BaseModel):
    success: bool = Field(default=True)


# Auth models


class OAuthCallbackRequest(BaseModel):
    """Provider identity posted by the client after its OAuth exchange."""

    provider: str | None = Field(default=None, description="OAuth provider, e.g. google")
    oauth_id: str | None = Field(default=None, description="Provider subject identifier")
    email: str | None = Field(default=None, description="Verified email from the provider")
    name: str | None = Field(default=None, description="Display name from the provider")
    avatar_url: str | None = Field(default=None, description="Avatar image URL")
    access_token: str | None = Field(default=None, description="Provider access token")
    refresh_token: str | None = Field(default=None, description="Provider refresh token")
    expires_in: int | None = Field(
        default=None,
        ge=0,
        description="Access token lifetime in seconds",
    )


class AccountItem(BaseModel):
    """The signed-in account as returned by auth endpoints."""

    id: str = Field(..., description="Account identifier")
    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="Email address")
    display_name: str | None = Field(default=None, description="Display name")
    handle: str | None = Field(default=None, description="Claimed public handle")
    avatar_url: str | None = Field(default=None, description="Avatar image URL")
    needs_handle: bool = Field(..., description="True until a handle is claimed")


class SessionItem(BaseModel):
    token: str = Field(..., description="Bearer token for the Authorization header")
    expires_at: int = Field(..., description="Expiry (epoch seconds)")


class AuthResponse(BaseModel):
    """Response model for login and refresh."""

    account: AccountItem
    session: SessionItem


class CompleteSetupRequest(BaseModel):
    handle: str | None = Field(
        default=None,
        description="Handle to claim: 3-20 letters, digits, or underscores",
    )


class CompleteSetupResponse(BaseModel):
    account: AccountItem


class HandleCheckResponse(BaseModel):
    available: bool = Field(..., description="Whether the handle can be claimed")
    message: str = Field(..., description="Reason when unavailable")


class RefreshRequest(BaseModel):
    refresh_token: str | None = Field(default=None, description="Stored OAuth refresh token")


# Account models


class AccountCreateRequest(BaseModel):
    """Request model for direct registration."""

    username: str | None = Field(default=None, description="3-20 letters, digits, _ or -")
    email: str | None = Field(default=None, description="Email address")
    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=1000)


class AccountUpdateRequest(BaseModel):
    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=1000)


class AccountProfile(BaseModel):
    """Public profile of an account."""

    id: str = Field(..., description="Account identifier")
    username: str = Field(..., description="Unique username")
    display_name: str | None = Field(default=None, description="Display name")
    handle: str | None = Field(default=None, description="Claimed public handle")
    bio: str = Field(default="", description="Profile description")
    avatar_url: str | None = Field(default=None, description="Avatar image URL")
    created_at: int = Field(..., description="Creation time (epoch seconds)")


# Follow models


class FollowRequest(BaseModel):
    following_id: str | None = Field(default=None, description="Account to follow")


class FollowEdgeItem(BaseModel):
    """A created follow edge, with the followed account's names."""

    id: str = Field(..., description="Edge identifier")
    follower_id: str = Field(..., description="Following account")
    following_id: str = Field(..., description="Followed account")
    username: str | None = Field(default=None, description="Followed account's username")
    display_name: str | None = Field(default=None, description="Followed account's display name")
    created_at: int = Field(..., description="Edge creation time (epoch seconds)")


class FollowedAccountItem(BaseModel):
    id: str = Field(..., description="Account identifier")
    username: str = Field(..., description="Username")
    display_name: str | None = Field(default=None, description="Display name")
    created_at: int = Field(..., description="Edge creation time (epoch seconds)")


class AccountSearchItem(BaseModel):
    id: str = Field(..., description="Account identifier")
    username: str = Field(..., description="Username")
    display_name: str | None = Field(default=None, description="Display name")
    bio: str = Field(default="", description="Profile description")
    is_following: bool = Field(..., description="Whether the requester follows this account")


# Pin models


class PinCreateRequest(BaseModel):
    """Request model for posting a pin."""

    photo_data: Any = Field(
        default=None,
        description="Opaque photo metadata (JSON); required",
    )
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    location_name: str | None = Field(default=None, max_length=500)
    caption: str | None = Field(default=None, description="Stored as given")
    locations: list[dict[str, Any]] | None = Field(
        default=None,
        description="Structured address list",
    )


class PinItem(BaseModel):
    """A pin joined with its owner's names."""

    id: str = Field(..., description="Pin identifier")
    account_id: str = Field(..., description="Owner account")
    photo_data: Any = Field(..., description="Photo metadata as posted")
    latitude: float | None = Field(default=None)
    longitude: float | None = Field(default=None)
    location_name: str | None = Field(default=None)
    caption: str | None = Field(default=None)
    locations: list[dict[str, Any]] | None = Field(default=None)
    username: str | None = Field(default=None, description="Owner username")
    display_name: str | None = Field(default=None, description="Owner display name")
    created_at: int = Field(..., description="Creation time (epoch seconds)")
    updated_at: int = Field(..., description="Last update (epoch seconds)")


class TimelinePinItem(PinItem):
    timeline_created_at: int = Field(
        ...,
        description="Entry timestamp (epoch seconds); usable as the next since",
    )


class TimelineResponse(BaseModel):
    """One page of the viewer's feed."""

    photos: list[TimelinePinItem] = Field(..., description="Newest first")
    waterline: int = Field(
        ...,
        description="Pass as since on the next poll (epoch seconds)",
    )


# Admin and health models


class RebuildResponse(BaseModel):
    account_id: str = Field(..., description="Account whose pins were republished")
    entries_written: int = Field(..., description="Timeline entries written")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy or unhealthy",
    )
    timestamp: int = Field(..., description="Server time (epoch seconds)")
    database: str = Field(..., description="Database status: healthy or unhealthy")
    latency_ms: float | None = Field(default=None, description="Database ping latency")


def epoch_seconds(moment: dt.datetime) -> int:
    """Serialize an entity timestamp as integer Unix epoch seconds."""
    return int(moment.timestamp())
