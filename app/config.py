from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Startup Dose"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Security
    api_key: str | None = None
    cors_origins: list[str] = []  # Empty by default for security

    # Database
    database_url: str | None = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    database_auto_create: bool = False

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 20.0

    # ScreenshotOne
    screenshotone_api_key: str | None = None
    screenshotone_base_url: str = "https://api.screenshotone.com"
    screenshot_timeout_seconds: float = 30.0

    # AWS S3
    aws_region: str | None = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_bucket_name: str | None = None

    # Instagram Graph API
    instagram_user_id: str | None = None
    instagram_access_token: str | None = None
    instagram_api_version: str = "v23.0"
    instagram_poll_interval_seconds: float = 2.0
    instagram_max_poll_attempts: int = 15

    # Shared outbound HTTP client
    http_timeout_seconds: float = 5.0
    http_max_connections: int = 100
    http_max_keepalive_connections: int = 10

    # Monitoring
    sentry_dsn: str | None = None

    # Metrics
    metrics_backend: str = "stdout"
    metrics_namespace: str = "startup_dose"
    metrics_disable: bool = False
    metrics_sample_rate: float = 1.0
    metrics_statsd_host: str = "127.0.0.1"
    metrics_statsd_port: int = 8125

    model_config = ConfigDict(env_file=".env", case_sensitive=False)


settings = Settings()
