"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import logging
import math
import os
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _coerce_quota(raw: Any) -> int | None:
    """Return ``raw`` as a positive integer, or None if it isn't one."""
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None

    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(value) or not value.is_integer() or value < 1:
        return None

    return int(value)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class LLMSettings(BaseSettings):
    """Upstream model provider configuration.

    Validation of provider-specific requirements happens in the factory.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (currently only openai)",
    )
    model: str = Field(
        "gpt-3.5-turbo",
        description="Chat model used for completions",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider (required for OpenAI)",
    )
    organization: str | None = Field(
        None,
        description="Optional OpenAI organization id sent with every request",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (e.g., an OpenAI-compatible gateway)",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )
    temperature: float = Field(
        0.7,
        description="Sampling temperature for chat completions",
        ge=0.0,
        le=2.0,
    )
    max_tokens: int = Field(
        1000,
        description="Maximum tokens generated per completion",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Admission control for the chat endpoint.

    Quota variables are parsed leniently: anything that is not a positive
    integer falls back to the field default.
    """

    enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on the chat endpoint",
    )
    requests_per_minute: int = Field(
        15,
        description="Max chat requests per client in the trailing minute",
    )
    requests_per_hour: int = Field(
        250,
        description="Max chat requests per client in the trailing hour",
    )
    requests_per_day: int = Field(
        500,
        description="Max chat requests per client in the trailing 24 hours",
    )
    client_id_header: str = Field(
        "X-Forwarded-For",
        description="Header identifying the client (set by the edge proxy)",
    )
    anonymous_client_id: str = Field(
        "anonymous",
        description="Bucket used when the client id header is missing",
    )
    sweep_interval_seconds: float = Field(
        300.0,
        description="Interval between sweeps of idle clients (0 disables)",
        ge=0.0,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    @field_validator("requests_per_minute", "requests_per_hour", "requests_per_day", mode="before")
    @classmethod
    def _fallback_to_default_quota(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        parsed = _coerce_quota(value)
        if parsed is None:
            logger.warning(
                "config.invalid_quota",
                extra={"setting": info.field_name, "fallback": default},
            )
            return default
        return parsed


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field("logs/app.log", description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate after this size (0 disables rotation)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation id header")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
