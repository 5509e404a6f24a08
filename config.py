"""
Configuration for the Doclair tools service.

Settings are loaded from environment variables (prefix ``DOCLAIR_``, nested
sections separated by ``__``) and an optional ``.env`` file, e.g.::

    DOCLAIR_API__PORT=8080
    DOCLAIR_LIMITS__MAX_FILE_SIZE_MB=50
"""

from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import APIConstants, ConversionConstants, LimitConstants


class SystemSettings(BaseModel):
    """Runtime flags."""

    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class APISettings(BaseModel):
    """HTTP server and CORS settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)
    cors_enabled: bool = True
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    expose_headers: List[str] = list(APIConstants.EXPOSED_HEADERS)


class LimitSettings(BaseModel):
    """Upload and rate limits."""

    max_file_size_mb: int = Field(default=LimitConstants.MAX_FILE_SIZE_MB, ge=1)
    max_files: int = Field(default=LimitConstants.MAX_BATCH_FILES, ge=1)
    max_images: int = Field(default=LimitConstants.MAX_COMBINE_IMAGES, ge=1)
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = Field(default=LimitConstants.RATE_LIMIT_WINDOW_SECONDS, ge=1)
    rate_limit_max_requests: int = Field(default=LimitConstants.RATE_LIMIT_MAX_REQUESTS, ge=1)

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class ConversionSettingsConfig(BaseModel):
    """Word to PDF engine settings."""

    timeout_seconds: int = Field(default=ConversionConstants.LIBREOFFICE_TIMEOUT_SECONDS, ge=1)
    libreoffice_binary: Optional[str] = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DOCLAIR_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    system: SystemSettings = SystemSettings()
    api: APISettings = APISettings()
    limits: LimitSettings = LimitSettings()
    conversion: ConversionSettingsConfig = ConversionSettingsConfig()

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict of all settings, stored on app.state.config."""
        return self.model_dump()


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
