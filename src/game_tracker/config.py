"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation,
type coercion, and sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from game_tracker.discovery.contracts import LauncherSource


class SteamConfig(BaseSettings):
    """Steam launcher configuration."""

    model_config = SettingsConfigDict(env_prefix="STEAM_")

    root: Path | None = Field(
        default=None,
        description="Steam installation root (auto-detected when unset)",
    )


class EpicConfig(BaseSettings):
    """Epic Games Launcher configuration."""

    model_config = SettingsConfigDict(env_prefix="EPIC_")

    manifests_dir: Path | None = Field(
        default=None,
        description="Directory holding Epic .item manifests (auto-detected when unset)",
    )


class DiscoveryConfig(BaseSettings):
    """Discovery pass configuration."""

    model_config = SettingsConfigDict(env_prefix="DISCOVERY_")

    concurrent: bool = Field(
        default=True,
        description="Run scanners concurrently in worker threads",
    )
    scanner_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        le=600,
        description="Per-scanner timeout (None = wait for completion)",
    )
    refresh_titles: bool = Field(
        default=False,
        description="Overwrite stored titles with launcher-reported ones",
    )
    enabled_sources: list[LauncherSource] = Field(
        default_factory=lambda: [LauncherSource.STEAM, LauncherSource.EPIC],
        description="Launcher sources scanned by a discovery run",
    )

    @field_validator("enabled_sources")
    @classmethod
    def dedupe_sources(cls, v: list[LauncherSource]) -> list[LauncherSource]:
        """Drop repeated sources while keeping their order."""
        return list(dict.fromkeys(v))


class CatalogConfig(BaseSettings):
    """Catalog storage configuration."""

    model_config = SettingsConfigDict(env_prefix="CATALOG_")

    database_path: Path = Field(
        default=Path("data/catalog.db"),
        description="SQLite database file for the game catalog",
    )


class RetryConfig(BaseSettings):
    """Retry behavior for transient catalog store failures."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of retry attempts",
    )
    base_delay_seconds: float = Field(
        default=0.1,
        ge=0.01,
        le=30.0,
        description="Base delay between retries (exponential backoff)",
    )
    max_delay_seconds: float = Field(
        default=2.0,
        ge=0.1,
        le=300.0,
        description="Maximum delay between retries",
    )
    exponential_base: float = Field(
        default=2.0,
        ge=1.5,
        le=4.0,
        description="Base for exponential backoff calculation",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    include_timestamp: bool = Field(
        default=True,
        description="Include timestamp in log entries",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides
    a single entry point for configuration access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Sub-configurations
    steam: SteamConfig = Field(default_factory=SteamConfig)
    epic: EpicConfig = Field(default_factory=EpicConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once
    and reused across the application.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
