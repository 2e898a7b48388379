"""Application configuration."""

from typing import Literal
from urllib.parse import urlsplit

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "Canonical Schema Service"
    version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # CORS Settings
    cors_origins: list[str] = ["*"]  # Default to allow all in development
    cors_allow_credentials: bool = False

    # Site Settings
    SITE_URL: str = "https://example.com"
    SCHEMA_LAYOUT: Literal["centralized", "parallel"] = "centralized"

    # Content source (CMS read API) Settings
    CONTENT_API_URL: str = "http://localhost:8080/api"
    CONTENT_API_TOKEN: str | None = None
    CONTENT_API_TIMEOUT: float = Field(default=5.0, gt=0)
    CONTENT_API_RETRIES: int = Field(default=3, ge=0)
    CONTENT_API_BACKOFF_BASE: float = Field(default=0.5, ge=0)
    CONTENT_API_BACKOFF_MAX: float = Field(default=8.0, ge=0)

    # Cache Settings
    CACHE_MAX_AGE_SECONDS: int = Field(
        default=86400, ge=0
    )  # 0 disables expiry; stale entries are still served on upstream failure

    # Webhook Settings
    WEBHOOK_TOKEN: str | None = None

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True
    TESTING: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def validate_origins(self) -> "Settings":
        """Validate CORS origins."""
        if self.cors_origins == ["*"]:
            self.cors_origins = [
                "http://localhost",
                "http://localhost:8000",
                "http://localhost:3000",
            ]
        return self

    @model_validator(mode="after")
    def validate_site_url(self) -> "Settings":
        """Require an absolute http(s) site origin without a path."""
        parts = urlsplit(self.SITE_URL)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"SITE_URL must be an absolute http(s) URL: {self.SITE_URL}")
        if parts.path not in ("", "/") or parts.query or parts.fragment:
            raise ValueError(f"SITE_URL must be an origin without a path: {self.SITE_URL}")
        self.SITE_URL = f"{parts.scheme}://{parts.netloc}"
        return self

    @model_validator(mode="after")
    def validate_backoff(self) -> "Settings":
        """Keep the backoff ceiling above the base delay."""
        if self.CONTENT_API_BACKOFF_MAX < self.CONTENT_API_BACKOFF_BASE:
            self.CONTENT_API_BACKOFF_MAX = self.CONTENT_API_BACKOFF_BASE
        return self

