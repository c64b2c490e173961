"""
Configuration settings for the content operations console.

All settings can be overridden via environment variables prefixed with
``CONTENTOPS_`` or through a local ``.env`` file.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Console configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONTENTOPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment environment name"
    )

    # Key/value persistence
    storage_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Persistence adapter: in-process memory or Redis"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL when storage_backend is 'redis'"
    )
    storage_key_prefix: str = Field(
        default="",
        description="Optional namespace prepended to every persisted key"
    )

    # Airtable metadata API
    airtable_api_url: str = Field(
        default="https://api.airtable.com/v0",
        description="Base URL of the Airtable REST API"
    )

    # Outbound HTTP
    http_timeout: float = Field(default=30.0, gt=0)
    http_max_connections: int = Field(default=100, ge=1)
    http_max_keepalive: int = Field(default=20, ge=0)
    http_user_agent: str = Field(default="ContentOps-Console/1.0")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["standard", "json"] = Field(default="standard")
    log_file: Optional[str] = Field(default=None)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
