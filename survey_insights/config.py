"""Application configuration management using Pydantic Settings.

This module loads and validates environment variables using Pydantic Settings.
All configuration is loaded from environment variables or a .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        database_url: Connection string for the local fallback response store
        database_pool_size: Number of connections to maintain in pool
        database_max_overflow: Maximum overflow connections beyond pool_size
        analytics_database_url: Connection string for the analytical source
        analytics_table_name: Table holding raw survey/game data rows
        platform_api_base_url: Base URL of the platform API (without /api)
        platform_api_token: Optional bearer token sent to the platform API
        platform_timeout_seconds: Timeout for the main response fetch
        health_timeout_seconds: Timeout for the platform health probe
        response_cache_ttl_seconds: Lifetime of cached remote responses
        health_cache_ttl_seconds: Lifetime of a cached health probe result
        surveys_dir: Path to directory containing survey definition files
        environment: Application environment (development, staging, production)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        allowed_origins: List of allowed CORS origins
    """

    # Storage Configuration
    database_url: str = Field(
        default="sqlite:///./survey_responses.db",
        description="Local fallback response store connection string"
    )
    database_pool_size: int = Field(
        default=5,
        description="Number of database connections in pool"
    )
    database_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections beyond pool size"
    )
    analytics_database_url: Optional[str] = Field(
        default=None,
        description="Analytical source connection string (defaults to database_url)"
    )
    analytics_table_name: str = Field(
        default="GAME_DATA",
        description="Table queried for raw survey response rows"
    )

    # Platform API Configuration
    platform_api_base_url: str = Field(
        default="http://localhost:8080",
        description="Platform API base URL"
    )
    platform_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the platform API"
    )
    platform_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for platform response fetches"
    )
    health_timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Timeout for platform health probes"
    )
    response_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Cache lifetime for fetched responses"
    )
    health_cache_ttl_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Cache lifetime for health probe results"
    )

    # Application Configuration
    surveys_dir: str = Field(
        default="./surveys",
        description="Path to surveys directory"
    )
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    allowed_origins: str = Field(
        default="http://localhost:5173,http://localhost:8000",
        description="Comma-separated list of allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v_upper

    @field_validator("platform_api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be appended directly."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Platform API base URL must start with http:// or https://")
        return v.rstrip("/")

    def get_allowed_origins_list(self) -> List[str]:
        """Parse allowed_origins string into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    def get_analytics_database_url(self) -> str:
        """Analytical source URL, falling back to the local store URL."""
        return self.analytics_database_url or self.database_url

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton

    Note:
        Uses lru_cache to ensure settings are only loaded once
        and shared across the application.
    """
    return Settings()
