"""Session authentication configuration.

All settings can be overridden via ``AUTH_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthConfig(BaseSettings):
    """Configuration for session issuance and validation."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
        extra="ignore",
    )

    session_ttl_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Days a session token stays valid after issuance",
    )
    session_token_bytes: int = Field(
        default=32,
        ge=16,
        le=64,
        description="Random bytes per session token (hex encoded on the wire)",
    )
    touch_sessions: bool = Field(
        default=True,
        description="Refresh last_used_at on every authenticated request",
    )
    username_suffix_bytes: int = Field(
        default=3,
        ge=1,
        le=8,
        description="Random bytes appended to a derived username on collision",
    )
    admin_api_keys: str = Field(
        default="",
        description="Comma-separated X-API-KEY values for admin endpoints (empty = dev mode)",
    )

    @property
    def admin_keys(self) -> list[str]:
        return [k.strip() for k in self.admin_api_keys.split(",") if k.strip()]
