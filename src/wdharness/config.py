"""Configuration management with pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HarnessSettings(BaseSettings):
    """wdharness settings loaded from environment variables.

    All settings use the WDHARNESS_ prefix for environment variables.
    """

    # Browser configuration
    browser: Literal["firefox", "chrome"] = Field(
        default="firefox",
        description="Browser driven by the default driver",
    )
    headless: bool = Field(default=False, description="Run the browser headless")
    remote_url: str | None = Field(
        default=None,
        description="URL of an already running WebDriver server; local driver service if unset",
    )
    read_timeout: float = Field(
        default=31,
        description="HTTP read/connect timeout in seconds for WebDriver commands",
    )
    download_dir: Path | None = Field(
        default=None,
        description="Directory the browser saves downloads into",
    )

    # Reset policy
    clear_local_storage: bool = Field(default=True, description="Clear localStorage on reset")
    clear_session_storage: bool = Field(default=True, description="Clear sessionStorage on reset")
    clear_cookies: bool = Field(default=True, description="Clear cookies on reset")

    # Reset behavior
    neutral_url: str = Field(
        default="about:blank",
        description="Location the browser is sent to after a reset",
    )
    reset_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the neutral page after a reset",
    )
    poll_interval: float = Field(
        default=0.01,
        description="Seconds between polls while waiting on the browser",
    )

    # Race reproduction (tests only)
    sleep_before_navigate: bool = Field(
        default=False,
        description="Sleep between clearing state and navigating away during reset",
    )
    pre_navigate_delay: float = Field(
        default=0.5,
        description="Seconds slept when sleep_before_navigate is enabled",
    )

    # Logging configuration
    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log output format",
    )
    log_driver_version: bool = Field(
        default=False,
        description="Log browser and driver versions when a browser starts",
    )

    model_config = SettingsConfigDict(
        env_prefix="WDHARNESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance
_settings: HarnessSettings | None = None


def get_settings() -> HarnessSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = HarnessSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None
