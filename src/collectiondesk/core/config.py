"""Configuration management for CollectionDesk.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="COLLECTIONDESK_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "CollectionDesk"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Gateway Settings
    gateway_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite+aiosqlite:///./cd_data/collectiondesk.db"
    db_echo: bool = False

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Bulk Operation Settings
    bulk_concurrency: int = Field(
        default=8,
        description="Maximum number of per-record gateway calls in flight for one bulk operation",
    )
    bulk_delete_missing_is_success: bool = Field(
        default=False,
        description="Treat NotFound on delete as success even for ids never deleted by this process",
    )
    bulk_tombstone_limit: int = Field(
        default=10_000,
        description="Deleted ids remembered per collection for idempotent delete retries; oldest are evicted first",
    )

    # Migration Settings
    migration_page_size: int = Field(
        default=200,
        description="Number of records fetched per page during a migration pass",
    )

    # Pagination Settings
    default_page_size: int = 25
    max_page_size: int = 100

    @field_validator(
        "bulk_concurrency",
        "bulk_tombstone_limit",
        "migration_page_size",
        "default_page_size",
        "max_page_size",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Reject zero or negative sizes."""
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        """Validate that the default page size fits within the maximum."""
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) cannot exceed "
                f"max_page_size ({self.max_page_size})"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
