"""Environment-driven application configuration."""

from __future__ import annotations

import hashlib
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    bot_token: str = Field(alias="BOT_TOKEN")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    sessions_file: str = Field(default="./data/sessions.json", alias="SESSIONS_FILE")
    webhook_url: str | None = Field(default=None, alias="WEBHOOK_URL")

    webhook_secret: str | None = Field(default=None, alias="WEBHOOK_SECRET")
    skip_webhook_setup: bool = Field(default=False, alias="SKIP_WEBHOOK_SETUP")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8080, alias="APP_PORT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url", "webhook_url", "webhook_secret", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized

    @model_validator(mode="after")
    def validate_webhook_url(self) -> "Settings":
        """Validate that WEBHOOK_URL is provided when webhook mode is enabled."""
        if not self.skip_webhook_setup and not self.webhook_url:
            raise ValueError("WEBHOOK_URL is required when SKIP_WEBHOOK_SETUP=false")
        return self

    @property
    def resolved_webhook_secret(self) -> str:
        if self.webhook_secret:
            return self.webhook_secret
        return hashlib.sha256(self.bot_token.encode("utf-8")).hexdigest()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
