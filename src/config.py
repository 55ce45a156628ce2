"""
Configuration management for Family Feed.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Local backend database
    database_url: str = Field(
        default="sqlite:///./data/family_feed.db",
        description="Database connection URL for the local record store"
    )

    # Record store provider
    record_store_provider: Literal["local", "parse"] = Field(
        default="local",
        description="Backend for records, assets and users (parse server or local database)"
    )

    # Parse Server
    parse_server_url: str = Field(
        default="",
        description="Parse Server base URL (e.g., https://parseapi.back4app.com)"
    )
    parse_application_id: str = Field(
        default="",
        description="Parse application ID"
    )
    parse_rest_api_key: str = Field(
        default="",
        description="Parse REST API key"
    )
    parse_request_timeout: float = Field(
        default=20.0,
        description="Transport-level timeout for Parse requests (seconds)"
    )

    # Assets
    max_asset_bytes: int = Field(
        default=10_000_000,
        description="Maximum birth chart payload size in bytes"
    )
    asset_upload_timeout: float = Field(
        default=30.0,
        description="Time limit for uploading a birth chart (seconds)"
    )
    asset_save_timeout: float = Field(
        default=15.0,
        description="Time limit for saving the record after an upload (seconds)"
    )
    asset_base_url: str = Field(
        default="http://localhost:8000/assets",
        description="Public URL prefix for assets stored by the local backend"
    )

    # Important dates
    upcoming_window_days: int = Field(
        default=30,
        description="Default look-ahead window for upcoming important dates"
    )

    # Local collections
    max_cached_users: int = Field(
        default=1000,
        description="Most users whose local collection is kept in memory"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_parse(self) -> bool:
        """Check if Parse Server is the configured backend."""
        return self.record_store_provider == "parse"

    @property
    def uses_postgresql(self) -> bool:
        """Check if PostgreSQL is the configured database."""
        return "postgresql" in self.database_url.lower()

    def validate_parse_config(self) -> None:
        """
        Validate Parse Server configuration.

        Raises:
            ValueError: If required settings are missing
        """
        if not self.uses_parse:
            return

        missing = [
            name
            for name, value in (
                ("PARSE_SERVER_URL", self.parse_server_url),
                ("PARSE_APPLICATION_ID", self.parse_application_id),
                ("PARSE_REST_API_KEY", self.parse_rest_api_key),
            )
            if not value
        ]
        if missing:
            raise ValueError(
                "Parse Server backend requires: " + ", ".join(missing) + ". "
                "Please set them in your .env file."
            )

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        # A local SQLite file does not survive redeploys
        if not self.uses_parse and not self.uses_postgresql:
            errors.append(
                "Production with the local backend requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string or use RECORD_STORE_PROVIDER=parse."
            )

        if self.uses_parse:
            try:
                self.validate_parse_config()
            except ValueError as e:
                errors.append(str(e))

        if self.max_asset_bytes <= 0:
            errors.append("MAX_ASSET_BYTES must be positive.")

        if self.max_cached_users <= 0:
            errors.append("MAX_CACHED_USERS must be positive.")

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Use this function throughout the application to access settings.

    Returns:
        Settings instance loaded from environment
    """
    return Settings()
