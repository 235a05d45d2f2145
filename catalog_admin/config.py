"""
Configuration and settings for the catalog admin backend.
"""

from __future__ import annotations

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
    port: int = Field(default=3000)

    # Remote store. Both the URL and the access key must be set, otherwise
    # the service falls back to local JSON files.
    database_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # S3-compatible object storage for images
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: str = Field(default="product-images")
    storage_public_url: Optional[str] = Field(default=None)

    # Browser-facing
    client_url: str = Field(default="http://localhost:3000")
    session_secret: str = Field(default="nk-solar-tech-secret-key-2025")
    session_max_age: int = Field(default=24 * 60 * 60)

    # Local fallback
    data_dir: str = Field(default="data")
    public_dir: str = Field(default="public")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024)

    # Default contact link for products
    whatsapp_phone: str = Field(default="233501234567")
    whatsapp_greeting: str = Field(default="Hello NK Solar, I want to buy")

    @property
    def use_remote_store(self) -> bool:
        return bool(self.database_url and self.aws_access_key_id)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
