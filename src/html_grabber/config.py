# ABOUTME: Centralized configuration using Pydantic Settings.
# ABOUTME: Loads grabber defaults and server settings from environment variables and .env file.

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HTML_GRABBER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Fetching
    user_agent: str = "Mozilla/5.0 (compatible; HTMLGrabber/1.0)"
    timeout: float = 15.0
    max_redirects: int = 5

    # Output
    debug: bool = False
    pretty: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
