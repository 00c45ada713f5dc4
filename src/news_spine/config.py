"""Configuration management using pydantic-settings."""

from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_NEWSAPI_DOMAINS = [
    "bbc.co.uk",
    "techcrunch.com",
    "engadget.com",
    "reuters.com",
    "bloomberg.com",
    "theverge.com",
    "arstechnica.com",
    "wired.com",
    "cnn.com",
    "forbes.com",
]


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///news_spine.db"
    database_echo: bool = False

    # Cache / status store
    cache_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_seconds: int = 3600
    status_ttl_seconds: int = 3600
    status_scan_batches: int = 20

    # Providers
    newsapi_api_key: str = ""
    newsapi_base_url: str = "https://newsapi.org/v2"
    newsapi_domains: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_NEWSAPI_DOMAINS)
    )
    newsapi_sources_ttl_seconds: int = 86400
    guardian_api_key: str = ""
    guardian_base_url: str = "https://content.guardianapis.com"
    nytimes_api_key: str = ""
    nytimes_base_url: str = "https://api.nytimes.com/svc"

    # HTTP
    http_timeout_seconds: float = 30.0
    http_max_attempts: int = 3
    http_retry_delay_seconds: float = 1.0

    # Jobs
    job_max_attempts: int = 3
    job_backoff_seconds: float = 30.0
    job_timeout_seconds: float = 300.0
    page_delay_seconds: float = 1.0

    # Celery
    celery_broker_url: str | None = None
    celery_result_backend: str | None = None
    queue_prefix: str = "sync_"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("newsapi_domains", mode="before")
    @classmethod
    def split_domains(cls, value):
        if isinstance(value, str):
            return [d.strip() for d in value.split(",") if d.strip()]
        return value

    @property
    def broker_url(self) -> str:
        return self.celery_broker_url or self.redis_url

    @property
    def result_backend(self) -> str:
        return self.celery_result_backend or self.redis_url

    def queue_for(self, provider: str) -> str:
        """Name of the worker queue that owns a provider's batches."""
        return f"{self.queue_prefix}{provider}"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
