"""
Configuration management for the IPTV Catalog service.
Uses pydantic-settings for environment variable loading.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "IPTV Catalog"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS Configuration
    # Default allows all origins for development; set CATALOG_CORS_ORIGINS for production
    cors_origins: list[str] = ["*"]

    # Rate Limiting
    rate_limit_per_minute: int = 100

    # Database
    database_path: str = "data/iptv_catalog.db"

    # Catalog store
    store_batch_size: int = 20000  # channels per write transaction
    default_page_size: int = 20
    max_page_size: int = 500
    uncategorized_label: str = "Uncategorized"

    # Search result cache
    search_cache_ttl_seconds: int = 60
    search_cache_max_entries: int = 20

    # Remote playlist fetching
    fetch_timeout_seconds: float = 60.0
    fetch_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )

    # Pydantic V2 configuration
    model_config = SettingsConfigDict(env_prefix="CATALOG_", env_file=".env")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
