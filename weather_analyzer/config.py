"""Configuration management for Weather Analyzer."""

from dataclasses import dataclass
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Service configuration read once from the environment."""

    # Database connection
    database_url: str = "sqlite:///./weather.db"

    # Database connection pool (ignored for SQLite)
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 3600

    # Weather provider (RapidAPI)
    weather_api_url: str = "https://weatherapi-com.p.rapidapi.com/current.json?q=Minsk"
    weather_api_key: str = ""
    weather_api_host: str = "weatherapi-com.p.rapidapi.com"
    weather_api_timeout: float = 10.0

    # Ingestion scheduler
    weather_poll_period_ms: int = 60000
    scheduler_enabled: bool = True

    # API settings
    api_title: str = "Weather Analyzer API"
    api_version: str = "1.0.0"
    api_description: str = "Collects current weather from RapidAPI and serves the stored history"

    # CORS settings
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    def provider(self) -> "ProviderConfig":
        """Build the weather provider settings."""
        return ProviderConfig(
            url=self.weather_api_url,
            api_key=self.weather_api_key,
            api_host=self.weather_api_host,
            timeout=self.weather_api_timeout,
        )

    def scheduler(self) -> "SchedulerConfig":
        """Build the ingestion scheduler settings."""
        return SchedulerConfig(period_ms=self.weather_poll_period_ms)


@dataclass(frozen=True)
class ProviderConfig:
    """Weather provider endpoint and credentials."""
    url: str
    api_key: str
    api_host: str
    timeout: float = 10.0


@dataclass(frozen=True)
class SchedulerConfig:
    """Ingestion scheduler configuration."""
    period_ms: int = 60000

    @property
    def period_seconds(self) -> float:
        return self.period_ms / 1000.0


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config
