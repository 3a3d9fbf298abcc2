"""Configuration Management."""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .validate import MAX_PAGE_SIZE

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Server
    server_name: str = Field(default="component-catalog", description="Server name")
    server_version: str = Field(default="2.0.0", description="Server version")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Caching (sizes in entries, TTLs in seconds)
    max_cache_size: int = Field(default=1000, gt=0, description="Component cache max size")
    component_cache_ttl: float = Field(default=600, gt=0, description="Component TTL")
    category_cache_size: int = Field(default=100, gt=0, description="Category cache max size")
    category_cache_ttl: float = Field(default=1800, gt=0, description="Category TTL")
    search_cache_size: int = Field(default=500, gt=0, description="Search page cache max size")
    search_cache_ttl: float = Field(default=120, gt=0, description="Search page TTL")
    browse_cache_ttl: float = Field(default=300, gt=0, description="Category page TTL")

    # Refresh
    cache_expiry: float = Field(
        default=300, gt=0, description="Snapshot age before a request triggers refresh"
    )
    refresh_interval: float = Field(
        default=86400, gt=0, description="Background refresh period"
    )
    use_builtin_fallback: bool = Field(
        default=True, description="Serve built-in data when no snapshot ever loaded"
    )

    # Rate limiting
    enable_rate_limit: bool = Field(default=True, description="Enable per-client rate limit")
    rate_limit_max_requests: int = Field(default=100, gt=0, description="Requests per window")
    rate_limit_window: float = Field(default=60, gt=0, description="Window length (seconds)")
    default_client_id: str = Field(default="default", description="Identity for anonymous callers")

    # Metrics
    enable_metrics: bool = Field(default=True, description="Record operation samples")
    metrics_capacity: int = Field(default=1000, gt=0, description="Samples retained")
    metrics_log_interval: float = Field(default=600, gt=0, description="Summary log period")

    # Background sweeps
    cleanup_interval: float = Field(default=300, gt=0, description="Cache/limiter sweep period")

    # Data source
    extraction_path: str = Field(
        default="production-react-bits-extraction", description="Extracted record directory"
    )
    source_url: Optional[str] = Field(default=None, description="Remote snapshot endpoint")
    source_timeout: float = Field(default=15.0, gt=0, description="Source request timeout")
    source_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    source_retry_delay: float = Field(default=1.0, ge=0, description="Initial backoff delay")
    max_retry_delay: float = Field(default=60.0, gt=0, description="Backoff ceiling")

    # Validation
    max_query_length: int = Field(default=200, gt=0, description="Max search query length")
    max_page_size: int = Field(
        default=MAX_PAGE_SIZE, gt=0, le=MAX_PAGE_SIZE, description="Max page size"
    )
    default_page_size: int = Field(
        default=10, gt=0, le=MAX_PAGE_SIZE, description="Default page size"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
