"""
Application configuration using 12-factor environment variables.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Marketplace Messaging Service")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Caller identity (set by the upstream gateway)
    identity_header: str = Field(default="X-User-Id")
    identity_signature_header: str = Field(default="X-User-Signature")
    identity_secret: Optional[str] = Field(
        default=None,
        description="HMAC-SHA256 secret shared with the gateway that signs caller ids",
    )

    # Database
    database_url: str = Field(default="sqlite:///./data/marketplace.db")

    # Pagination and message limits
    conversations_page_size: int = Field(default=20, ge=1)
    messages_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    max_message_length: int = Field(default=1000, ge=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    @property
    def is_identity_signing_enabled(self) -> bool:
        """Whether caller ids must carry a gateway signature."""
        return bool(self.identity_secret)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
