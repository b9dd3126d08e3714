from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, loaded from the environment or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    DATABASE_URL: str = "sqlite:///./farm_dashboard.db"

    # Analytics
    METRICS_WINDOW_DAYS: int = 30
    HIGH_MORTALITY_THRESHOLD: int = 15

    LOG_LEVEL: str = "INFO"


settings = Settings()
