"""Exporter configuration loaded from environment variables."""

import logging
from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_URL_PREFIXES = ("http://", "https://")


class Settings(BaseSettings):
    """Validated exporter settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # DefectDojo API: both required, the exporter has nothing to do without them
    DD_URL: str
    DD_TOKEN: SecretStr

    # Exposition server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Collection
    CONCURRENCY: int = 5
    INTERVAL_SEC: float = 300.0
    TIMEOUT_SEC: float = 30.0
    PAGE_SIZE: int = 100
    # Skip products whose engagements did not change since the last cycle.
    # Disable when findings are imported without going through an engagement.
    USE_ENGAGEMENT_UPDATE_CHECK: bool = True

    LOG_LEVEL: str = "INFO"
    SHUTDOWN_GRACE_SEC: float = 5.0

    @field_validator("DD_URL")
    @classmethod
    def validate_dd_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DD_URL must be set and non-empty")
        s = v.strip().rstrip("/")
        if not s.lower().startswith(VALID_URL_PREFIXES):
            raise ValueError(
                "DD_URL must use http or https (e.g. https://defectdojo.example.com)"
            )
        return s

    @field_validator("DD_TOKEN")
    @classmethod
    def validate_dd_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("DD_TOKEN must be set and non-empty")
        return SecretStr(v.get_secret_value().strip())

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("CONCURRENCY")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1 or v > 256:
            raise ValueError("CONCURRENCY must be between 1 and 256")
        return v

    @field_validator("INTERVAL_SEC")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("INTERVAL_SEC must be greater than 0")
        return v

    @field_validator("TIMEOUT_SEC")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0 or v > 600:
            raise ValueError("TIMEOUT_SEC must be greater than 0 and at most 600")
        return v

    @field_validator("PAGE_SIZE")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1 or v > 1000:
            raise ValueError("PAGE_SIZE must be between 1 and 1000")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(
                "LOG_LEVEL must be a logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
            )
        return level

    @field_validator("SHUTDOWN_GRACE_SEC")
    @classmethod
    def validate_shutdown_grace(cls, v: float) -> float:
        if v < 0:
            raise ValueError("SHUTDOWN_GRACE_SEC must not be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
