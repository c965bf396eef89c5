"""Application configuration."""
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service
    service_name: str = "Village Voice Hub"
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./ivr.db"

    # Telephony backend: twilio | plivo | amazon_connect
    ivr_backend: str = "twilio"
    default_language: str = "en"
    supported_languages: List[str] = ["en", "ne"]

    # Menus
    menu_file: Optional[str] = None
    recording_max_duration: int = 120
    enforce_max_retries: bool = True

    # Call sessions
    session_store: str = "memory"  # memory | redis
    redis_url: str = "redis://localhost:6379/0"
    session_key_prefix: str = "ivr:session:"
    session_timeout_seconds: int = 3600
    store_timeout_seconds: float = 2.0
    max_conflict_retries: int = 5

    # Information feeds
    feed_source: str = "memory"  # memory | redis | http
    feed_base_url: Optional[str] = None
    feed_timeout_seconds: float = 3.0
    feed_cache_ttl_seconds: int = 60
    feed_max_items: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
