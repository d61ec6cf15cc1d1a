"""Application settings and configuration.

This module defines all configuration options for the ECv2 callback verifier.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ecv2_verifier.core.protocol import DEFAULT_PUBLIC_KEY_URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The sender id and protocol version are deliberately absent: they are
    constants of the trust domain (see `ecv2_verifier.core.protocol`).
    """

    # Application metadata
    app_name: str = Field(default="ECv2 Callback Verifier", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Recipient binding
    issuer_id: str = Field(default="", alias="ECV2_ISSUER_ID")

    # Trust-anchor retrieval
    public_key_url: str = Field(default=DEFAULT_PUBLIC_KEY_URL, alias="ECV2_PUBLIC_KEY_URL")
    key_fetch_timeout_seconds: float = Field(
        default=10.0,
        alias="ECV2_KEY_FETCH_TIMEOUT_SECONDS",
    )
    key_cache_ttl_seconds: int = Field(default=3600, alias="ECV2_KEY_CACHE_TTL_SECONDS")
    refresh_keys_on_untrusted: bool = Field(
        default=True,
        alias="ECV2_REFRESH_KEYS_ON_UNTRUSTED",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


settings = Settings()
