"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field, field_validator, ConfigDict

# Project root: fitsquad/
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    base_url: str = Field(
        default="http://localhost:8000",
        description="Public URL of this service (OAuth redirect, webhook callback)"
    )

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./fitsquad.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Strava ===
    strava_client_id: Optional[str] = Field(default=None)
    strava_client_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("strava_client_secret", "strava_secret")
    )
    strava_webhook_verify_token: Optional[str] = Field(default=None)
    strava_scope: str = Field(default="read,activity:read_all")

    # === Strava sync ===
    strava_first_sync_lookback_days: int = Field(
        default=30,
        description="How far back the first sync of a connection looks"
    )
    strava_sync_max_pages: int = Field(
        default=3,
        description="Upper bound on activity list pages fetched per sync"
    )
    strava_sync_per_page: int = Field(default=30)

    # === Admin ===
    admin_api_key: Optional[str] = Field(
        default=None,
        description="Shared secret for administrative endpoints (X-Admin-Key)"
    )

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @property
    def strava_configured(self) -> bool:
        return bool(self.strava_client_id and self.strava_client_secret)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Global settings instance
settings = Settings()
