"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reftree.config.constants import (
    COMPACT_BREAKPOINT,
    COPY_ACK_SECONDS,
    DEFAULT_MAX_DEPTH,
    DEPTH_STEP,
    MIN_MAX_DEPTH,
    REQUEST_TIMEOUT_SECONDS,
    SEARCH_DEBOUNCE_SECONDS,
    TOAST_DISMISS_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Collaborator API
    api_base_url: str = "http://localhost:9393"
    api_token: str | None = None
    request_timeout_seconds: float = Field(
        default=REQUEST_TIMEOUT_SECONDS,
        gt=0,
        description="Total timeout for one API request"
    )

    # Origin used when building registration links
    public_origin: str = "http://localhost:5173"

    # Tree fetch
    tree_max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        description="Initial depth requested for a tree"
    )
    tree_min_depth: int = Field(
        default=MIN_MAX_DEPTH,
        ge=1,
        description="Depth floor for halve-and-retry on oversized trees"
    )
    tree_depth_step: int = Field(
        default=DEPTH_STEP,
        ge=1,
        description="Depth reduction applied per retry"
    )

    # Interaction timings
    search_debounce_seconds: float = Field(default=SEARCH_DEBOUNCE_SECONDS, ge=0)
    copy_ack_seconds: float = Field(default=COPY_ACK_SECONDS, ge=0)
    toast_dismiss_seconds: float = Field(default=TOAST_DISMISS_SECONDS, ge=0)

    # Layout
    compact_viewport_max_width: int = Field(
        default=COMPACT_BREAKPOINT,
        gt=0,
        description="Viewports narrower than this use the compact layout"
    )

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("api_base_url", "public_origin")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Validate URL scheme and drop the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL: {v}. Must start with http:// or https://"
            )
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_depth_bounds(self) -> "Settings":
        """Depth floor must not exceed the initial depth."""
        if self.tree_min_depth > self.tree_max_depth:
            raise ValueError(
                f"TREE_MIN_DEPTH ({self.tree_min_depth}) must not exceed "
                f"TREE_MAX_DEPTH ({self.tree_max_depth})"
            )
        if self.api_token is not None and not self.api_token.strip():
            logger.warning("API_TOKEN is set but empty, requests will be anonymous")
            self.api_token = None
        return self


# Global settings instance
settings = Settings()
