"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Roster Reconciliation"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Database (Turso) holding the team roster
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Scheduling system proxy (remote identities)
    scheduling_api_url: str | None = Field(default=None)
    scheduling_api_key: str | None = Field(default=None)
    scheduling_integration_key: str = Field(default="7shifts")
    scheduling_timeout_seconds: float = Field(default=15.0, gt=0)
    external_source: str = Field(
        default="7shifts",
        description="Tag written to external_source on committed links",
    )

    # Matching
    fuzzy_match_threshold: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Minimum weighted name score for a suggested match",
    )
    first_name_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    last_name_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    similarity_algorithm: str = Field(
        default="character_overlap",
        description="character_overlap or jaro_winkler",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
