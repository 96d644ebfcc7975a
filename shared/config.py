"""
Shared configuration management for the ID token verification service.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ["https://accounts.google.com", "accounts.google.com"]


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Identity provider
    jwks_url: str = Field(default=GOOGLE_JWKS_URL)
    audience: str = Field(default="")
    issuers: List[str] = Field(default_factory=lambda: list(GOOGLE_ISSUERS))
    algorithms: List[str] = Field(default_factory=lambda: ["RS256"])

    # Key set caching; None means "follow the provider's Cache-Control"
    jwks_cache_ttl: Optional[int] = Field(default=None, ge=0)
    jwks_default_ttl: int = Field(default=3600, ge=0)
    jwks_http_timeout: float = Field(default=5.0, gt=0)
    jwks_stale_if_error: bool = Field(default=False)

    # Claim policy
    clock_leeway: int = Field(default=0, ge=0)
    verify_not_before: bool = Field(default=True)
    max_token_length: int = Field(default=16384, gt=0)

    # Transport
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
