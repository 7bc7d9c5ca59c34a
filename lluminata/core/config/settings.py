# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

Settings are loaded from environment variables (and an optional ``.env``
file) with defaults suitable for a single learner device.

The Settings class is the main entry point and aggregates all subsettings.
A cached instance is provided via get_settings() for dependency injection.

Example:
    >>> from lluminata.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.sync.retention_days
    7
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LocalStoreSettings(BaseSettings):
    """Embedded local store configuration.

    The local store is a single SQLite file holding cached students,
    cached lessons and the sync queue. It must live on persistent storage
    so that queued mutations survive restarts.

    Attributes:
        path: Filesystem path of the SQLite database file.
        echo: Whether SQLAlchemy should log emitted SQL.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_STORE_",
        extra="ignore",
    )

    path: str = "lluminata_offline.db"
    echo: bool = False

    @property
    def url(self) -> str:
        """Build the async SQLite URL from the file path."""
        return f"sqlite+aiosqlite:///{self.path}"


class RemoteAuthoritySettings(BaseSettings):
    """Remote authority (platform sync endpoint) configuration.

    Attributes:
        base_url: Base URL of the platform API exposing ``/sync``.
        api_key: Optional API key sent with every request.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="REMOTE_",
        extra="ignore",
    )

    base_url: str = "http://localhost:3000/api"
    api_key: SecretStr = SecretStr("")
    timeout: float = 30.0

    @property
    def auth_headers(self) -> dict[str, str]:
        """Build authentication headers for API requests."""
        key = self.api_key.get_secret_value()
        if not key:
            return {}
        return {"X-API-Key": key}


class SyncSettings(BaseSettings):
    """Reconciliation and retention configuration.

    Attributes:
        auto_sync: Whether reconciliation passes are scheduled automatically.
        interval_minutes: Minutes between scheduled reconciliation passes.
        batch_size: Acknowledged entries marked synced per store write.
        retention_days: Age after which queue entries are pruned.
        sweep_interval_hours: Hours between scheduled retention sweeps.
        sweep_on_start: Whether a retention sweep runs at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        extra="ignore",
    )

    auto_sync: bool = True
    interval_minutes: int = Field(default=30, ge=1)
    batch_size: int = Field(default=50, ge=1)
    retention_days: int = Field(default=7, ge=1)
    sweep_interval_hours: int = Field(default=24, ge=1)
    sweep_on_start: bool = True


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        local_store: Local SQLite store settings.
        remote: Remote authority settings.
        sync: Reconciliation and retention settings.
        cors: CORS settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    local_store: LocalStoreSettings = Field(default_factory=LocalStoreSettings)
    remote: RemoteAuthoritySettings = Field(default_factory=RemoteAuthoritySettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production against a plain-HTTP remote.
        """
        if self.environment == "production":
            if not self.remote.base_url.startswith("https://"):
                raise ValueError(
                    "Remote authority must use HTTPS in production. "
                    "Set REMOTE_BASE_URL to an https:// URL."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
