"""
Configuration and settings for the restaurant backend.
"""

from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Document database (MongoDB). Leaving the URI unset selects file storage.
    mongodb_uri: Optional[str] = Field(default=None)
    mongodb_db_name: str = Field(default="culinary_canvas")
    # None keeps pymongo's own server-selection timeout.
    mongodb_timeout_ms: Optional[int] = Field(default=None)

    # Local JSON storage used when MongoDB is unreachable.
    storage_dir: str = Field(default="storage")

    # First-run admin account.
    admin_username: str = Field(default="admin")
    admin_email: str = Field(default="admin@culinarycanvas.com")
    admin_password: str = Field(default="admin123")

    # Admin session tokens. Without JWT_SECRET a random per-process secret is
    # used, so tokens stop working after a restart.
    jwt_secret: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    jwt_expires_in: str = Field(default="24h")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
