"""Pin store configuration.

All settings can be overridden via ``PINS_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PinConfig(BaseSettings):
    """Configuration for pin creation and listing."""

    model_config = SettingsConfigDict(
        env_prefix="PINS_",
        case_sensitive=False,
        extra="ignore",
    )

    default_list_limit: int = Field(default=50, ge=1, le=100)
    max_list_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Upper bound applied to per-account pin listings",
    )
