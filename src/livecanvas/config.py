"""Configuration management for livecanvas."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from livecanvas.errors import InvalidMarkerError

DEFAULT_OPEN_MARKER = "【"
DEFAULT_CLOSE_MARKER = "】"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="LIVECANVAS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Transcript parsing
    open_marker: str = Field(default=DEFAULT_OPEN_MARKER, description="Opening delimiter of a code payload")
    close_marker: str = Field(default=DEFAULT_CLOSE_MARKER, description="Closing delimiter of a code payload")
    greeting_phrases: list[str] = Field(
        default_factory=lambda: ["hello", "coding assistant"],
        description="Phrases that together identify the scripted greeting line",
    )
    generation_timeout_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Force the generating indicator off after this long; 0 disables",
    )

    # Sharing
    paste_api_url: str = Field(default="https://dpaste.org/api/", description="Paste creation endpoint")
    paste_base_url: str = Field(default="https://dpaste.org", description="Paste service base URL")
    paste_expiry_days: int = Field(default=365, ge=1, description="Days before a shared paste expires")
    request_timeout_seconds: float = Field(default=15.0, gt=0, description="Timeout for paste service calls")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    @model_validator(mode="after")
    def _check_markers(self) -> Settings:
        if not self.open_marker or not self.close_marker:
            raise InvalidMarkerError("code markers must be non-empty")
        if self.open_marker == self.close_marker:
            raise InvalidMarkerError("open and close markers must differ")
        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment, applying explicit overrides."""
    return Settings(**overrides)  # type: ignore[arg-type]
