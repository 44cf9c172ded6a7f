"""Timeline configuration.

Controls backfill depth, page sizes, and fan-out write batching. All
settings can be overridden via ``TIMELINE_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TimelineConfig(BaseSettings):
    """Configuration for timeline fan-out and queries."""

    model_config = SettingsConfigDict(
        env_prefix="TIMELINE_",
        case_sensitive=False,
        extra="ignore",
    )

    backfill_limit: int = Field(
        default=100,
        ge=0,
        le=10000,
        description="Most recent pins copied into a new follower's timeline",
    )

    # Query paging
    default_page_size: int = Field(default=50, ge=1, le=1000)
    max_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Larger page requests are clamped to this size",
    )

    # Fan-out writes
    fanout_batch_size: int = Field(
        default=500,
        ge=1,
        le=10000,
        description="Timeline rows written per INSERT statement",
    )
    fanout_concurrency: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Max INSERT batches in flight for one publish",
    )
