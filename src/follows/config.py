"""Follow graph configuration.

All settings can be overridden via ``FOLLOWS_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FollowConfig(BaseSettings):
    """Paging and search limits for the follow graph."""

    model_config = SettingsConfigDict(
        env_prefix="FOLLOWS_",
        case_sensitive=False,
        extra="ignore",
    )

    default_list_limit: int = Field(default=50, ge=1, le=1000)
    max_list_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Follower/following listings are clamped to this size",
    )

    # Account search
    min_search_length: int = Field(
        default=2,
        ge=1,
        le=20,
        description="Shorter queries are rejected",
    )
    default_search_limit: int = Field(default=20, ge=1, le=500)
    max_search_limit: int = Field(default=50, ge=1, le=500)
