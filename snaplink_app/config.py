from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Application
    app_name: str = "SnapLink"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Database
    database_url: str = "sqlite:///./snaplink.db"

    # Short links
    base_url: str = "http://127.0.0.1:8000"
    short_code_length: int = 7
    max_retries: int = 5  # Generated-code attempts before giving up

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600  # Cache TTL in seconds (1 hour)

    # Queue settings
    queue_backend: str = "redis_streams"  # Options: "redis_streams", "memory"
    queue_name: str = "link_clicks"
    queue_consumer_group: str = "click_workers"
    queue_batch_size: int = 100
    queue_block_ms: int = 1000

    # Click worker
    run_click_worker: bool = True  # Consume clicks inside the API process
    click_worker_concurrency: int = 8

    # Click storage (analytics event log)
    click_storage_backend: str = "sql"  # Options: "sql", "memory"
    analytics_default_days: int = 30

    # HTTP
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
