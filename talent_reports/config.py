"""Configuration management using Pydantic Settings."""
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Talent Report Pipeline"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    # Public base URL of this service; the render worker loads print views from here
    app_url: str = Field(default="http://localhost:8000", validation_alias="APP_URL")

    # Snowflake
    snowflake_account: str = ""
    snowflake_user: str = ""
    snowflake_password: str = ""
    snowflake_database: str = "TALENT"
    snowflake_schema: str = "PUBLIC"
    snowflake_warehouse: str = "COMPUTE_WH"

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0

    # AWS S3
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"
    s3_bucket: str = "reports-pdf"

    # Cache TTLs (seconds)
    cache_ttl_template: int = 600  # 10 minutes

    # Report rendering
    report_debug: bool = False
    render_storage_prefix: str = ""
    render_signed_url_ttl: int = 3600
    render_token_ttl_seconds: int = 300
    render_poll_interval_seconds: float = 5.0
    render_timeout_seconds: float = 180.0
    render_navigation_timeout_ms: int = 60_000
    render_selector_timeout_ms: int = 30_000
    render_image_timeout_ms: int = 5_000
    render_network_idle_timeout_ms: int = 10_000
    render_stability_interval_ms: int = 500
    render_stability_max_iterations: int = 10
    render_expected_pages_max_iterations: int = 20
    render_stable_polls_required: int = 3
    enqueue_batch_limit: int = 100


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
