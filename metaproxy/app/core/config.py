from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from metaproxy.app.core.versioning import is_version_older, parse_version


class SecurityMode(str, Enum):
    """How the client gate treats incoming metadata requests."""

    LOG_ONLY = "LOG_ONLY"  # identify and log, never block
    STRICT = "STRICT"  # enforce version gate and rate limits


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False
    port: int = 3000

    # Client gate
    security_mode: SecurityMode = SecurityMode.LOG_ONLY
    min_app_version: str = "1.0.0"
    latest_app_version_override: str = Field(
        default="", validation_alias="LATEST_APP_VERSION"
    )
    update_icon_url: str = (
        "https://raw.githubusercontent.com/plexrpc/plexrpc/main/assets/update.png"
    )
    release_page_url: str = "https://github.com/plexrpc/plexrpc/releases/latest"

    @property
    def latest_app_version(self) -> str:
        """Version announced on the config route.

        Falls back to the minimum supported version when not set explicitly.
        """
        return self.latest_app_version_override or self.min_app_version

    # Spotify (music catalog)
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_token_url: str = "https://accounts.spotify.com/api/token"
    spotify_api_base_url: str = "https://api.spotify.com/v1"
    token_safety_margin_seconds: float = 300.0  # Refresh 5 minutes early
    token_single_flight: bool = True

    # TMDB (movies and TV)
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"

    # Google Books
    google_books_key: str = ""
    google_books_base_url: str = "https://www.googleapis.com/books/v1"

    # Discord application announced to clients
    discord_client_id: str = ""

    # Rate limiting / ban tracking
    rate_limit_window_seconds: int = 60
    rate_limit_max_requests: int = 30
    rate_limit_ban_seconds: int = 300
    rate_limit_max_entries: int = 10000
    rate_limit_sweep_interval_seconds: int = 300

    # HTTP Client connection pool settings
    httpx_connect_timeout: float = 10.0  # Time to establish connection
    httpx_read_timeout: float = 15.0  # Time to read response data
    httpx_write_timeout: float = 10.0  # Time to send request data
    httpx_pool_timeout: float = 5.0  # Time to acquire connection from pool
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 100
    httpx_max_keepalive_connections: int = 20

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("security_mode", mode="before")
    @classmethod
    def normalize_security_mode(cls, v: Any) -> Any:
        """Accept lower-case or padded mode names (e.g. "strict ")."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("min_app_version", "latest_app_version_override")
    @classmethod
    def validate_version(cls, v: str) -> str:
        v = v.strip()
        if v and parse_version(v) is None:
            raise ValueError(f"Invalid version string: {v!r}")
        return v

    @field_validator(
        "rate_limit_window_seconds",
        "rate_limit_max_requests",
        "rate_limit_ban_seconds",
        "rate_limit_max_entries",
        "rate_limit_sweep_interval_seconds",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("httpx_connect_timeout", "httpx_read_timeout", "httpx_write_timeout")
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator("token_safety_margin_seconds")
    @classmethod
    def validate_safety_margin(cls, v: float) -> float:
        if v < 0:
            raise ValueError("token_safety_margin_seconds must not be negative")
        return v

    @model_validator(mode="after")
    def validate_latest_not_below_minimum(self) -> "Settings":
        if self.latest_app_version_override and is_version_older(
            self.latest_app_version_override, self.min_app_version
        ):
            raise ValueError("LATEST_APP_VERSION must not be older than MIN_APP_VERSION")
        return self

    @property
    def spotify_configured(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
