"""
Application configuration using Pydantic Settings.
Loads environment variables and provides type-safe configuration.
"""

from typing import List, Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, validator
from pathlib import Path

# Get the base directory
BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_JWT_SECRET = "development-secret-key-change-in-production"
DEFAULT_CORS_ORIGINS = ["http://localhost:8080", "http://localhost:8765"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", description="Current environment")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    api_title: str = Field(default="TimeTracker")
    api_version: str = Field(default="1.0.0")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default=f"sqlite:///{BASE_DIR / 'timetracker.db'}",
        description="SQLAlchemy database URL"
    )

    # JWT Configuration
    jwt_secret_key: str = Field(default=DEFAULT_JWT_SECRET, description="JWT secret key")
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=480)

    # CORS
    cors_origins: str | List[str] = Field(default=",".join(DEFAULT_CORS_ORIGINS))
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: List[str] = Field(default=["*"])
    cors_allow_headers: List[str] = Field(default=["*"])

    # Query cache
    cache_backend: str = Field(default="memory", description="Cache backend: memory or redis")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_prefix: str = Field(default="query_")
    cache_ttl: int = Field(default=300, description="Default cache TTL in seconds")
    work_stats_cache_ttl: int = Field(default=60, description="TTL for today/week/month stats")

    # Ticket systems
    jira_timeout: int = Field(default=10, description="Timeout in seconds for JIRA requests")

    # Interpretation
    default_max_results: int = Field(default=50)

    # Localization
    default_locale: str = Field(default="de")

    @validator("cors_origins", pre=True)
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            if not v or v.strip() == "":
                return list(DEFAULT_CORS_ORIGINS)
            return [origin.strip() for origin in v.split(",")]
        elif v is None:
            return list(DEFAULT_CORS_ORIGINS)
        return v

    @validator("cache_backend")
    def validate_cache_backend(cls, v):
        """Only the in-process pool and redis are supported."""
        backend = v.lower()
        if backend not in ("memory", "redis"):
            raise ValueError(f"Unsupported cache backend: {v}")
        return backend

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def expose_error_details(self) -> bool:
        """Stack traces and exception internals are only shown outside production."""
        return self.debug or self.is_development

    def validate_environment(self) -> None:
        """Validate that production is not running on development defaults."""
        problems = []
        if not self.jwt_secret_key or self.jwt_secret_key == DEFAULT_JWT_SECRET:
            problems.append("JWT_SECRET_KEY")
        if self.database_url.startswith("sqlite"):
            problems.append("DATABASE_URL")

        if problems:
            raise ValueError(
                f"Missing or insecure environment variables: {', '.join(problems)}"
            )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Use this function to get settings throughout the application.
    """
    settings = Settings()

    # Validate environment in production
    if settings.is_production:
        settings.validate_environment()

    return settings


# Create a global settings instance
settings = get_settings()
