"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,  # Allow both field name and alias
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Shipment server
    shipment_endpoint: str = Field(
        default="http://localhost:6565",
        description="Base URL of the shipment server; actions are POSTed to <endpoint>/<action>",
        validation_alias=AliasChoices("shipment_endpoint", "shipment_url"),
    )
    shipment_app_name: str | None = Field(
        default=None,
        description="Expected app name, verified against the server manifest on discovery",
    )
    shipment_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Connect/write/pool timeout in seconds",
    )
    shipment_read_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait between two lines (empty = wait forever)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
