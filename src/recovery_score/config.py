"""Configuration settings for the readiness scoring engine."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix RECOVERY_SCORE_)."""

    model_config = SettingsConfigDict(
        env_prefix="RECOVERY_SCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Trend persistence
    trend_db_path: Path = Path("readiness_trend.db")
    trend_retention_days: int = Field(default=7, ge=1)

    # Baseline windows
    baseline_window_days: int = Field(default=7, ge=1)
    weekly_load_weeks: int = Field(default=4, ge=1)

    # Sample provider boundary
    sample_cache_ttl_seconds: float = Field(default=300.0, ge=0)
    sample_timeout_seconds: float = Field(default=10.0, gt=0)

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
