"""
Shared configuration management for the identity client.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "MyFitnessPal/25.19.0 (mfp-mobile-android-google) "
    "(Android 11; Pixel 5 / Android Android SDK built for arm64) "
    "(preload=false;locale=en_US)"
)


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Remote services
    identity_base_url: str = Field(default="https://identity-api.myfitnesspal.com")
    api_base_url: str = Field(default="https://api.myfitnesspal.com")

    # Mobile client identity presented on every request
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    api_version: str = Field(default="2.0.50")
    mfp_client_id: str = Field(default="mfp-mobile-android-google")
    accept_language: str = Field(default="en-US")
    accept_encoding: str = Field(default="gzip")

    # OAuth
    redirect_uri: str = Field(default="mfp://identity/callback")

    # Transport
    http_timeout: float = Field(default=5.0)

    # Client credentials (optional; normally passed to the client explicitly)
    client_id: Optional[str] = Field(default=None)
    client_secret: Optional[str] = Field(default=None)


def get_config(**overrides) -> BaseConfig:
    """Get identity client configuration, applying explicit overrides."""
    return BaseConfig(**overrides)
