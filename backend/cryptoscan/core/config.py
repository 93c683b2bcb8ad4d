"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "Cryptoscan Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # SQLite candle store
    sqlite_path: Optional[str] = None  # Defaults to ./data/cryptoscan.db

    # CORS (Frontend URL)
    frontend_url: str = "http://localhost:3000"
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Analysis windows (daily candles)
    short_window_days: int = 30
    long_window_days: int = 365
    level_lookback_days: int = 180
    extrema_lookback: int = 10

    # Correlation
    correlation_min_volume_usd: float = 300_000.0
    correlation_history_days: int = 90
    correlation_default_timeframe: int = 30

    # Market summary
    top_movers: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
