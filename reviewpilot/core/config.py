"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore", # Allow extra env vars without failing
    )

    # App
    app_name: str = "ReviewPilot"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    # Default for local Next.js frontend; override via ALLOWED_ORIGINS env for cloud
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./reviewpilot.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Multi-tenancy
    default_tenant_id: str = "default"

    # Scheduling clock. Quiet hours are evaluated on the wall clock of this zone.
    business_timezone: str = "UTC"

    # CSV import
    max_import_rows: int = 5000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
