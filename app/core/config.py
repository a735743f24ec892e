"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


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


def _build_gemini_settings() -> "GeminiSettings":
    """Build Gemini settings from environment."""

    return GeminiSettings()


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> parse_csv("http://a, http://b ,")
        ['http://a', 'http://b']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class GeminiSettings(BaseSettings):
    """Upstream generative-language API configuration.

    The API key is optional on purpose: a missing key is reported per request
    (HTTP 500) instead of preventing startup.
    """

    api_key: str | None = Field(
        None,
        description="Google Gemini API key, sent as the `key` query parameter",
    )
    model: str = Field(
        "gemini-2.0-flash",
        description="Model used for content generation",
    )
    base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1",
        description="Root URL of the Generative Language API",
    )
    temperature: float = Field(
        0.1,
        description="Sampling temperature for ingredient generation",
        ge=0.0,
        le=2.0,
    )
    max_output_tokens: int = Field(
        1000,
        description="Maximum number of tokens generated per request",
        ge=1,
    )
    timeout_seconds: float = Field(
        45.0,
        description="Transport timeout for upstream requests in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    host: str = Field(
        "0.0.0.0",
        description="Bind address used when running the server directly",
    )
    port: int = Field(
        3001,
        description="Port used when running the server directly",
    )
    cors_allowed_origins: str = Field(
        "http://localhost:5000,https://jens-kosmetik-labor.web.app",
        description="Comma-separated list of origins allowed by CORS",
    )
    expose_error_details: bool | None = Field(
        None,
        description=(
            "Attach underlying error messages to 500 responses. "
            "Defaults to true only when APP_ENV=development"
        ),
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on the ingredient endpoint",
    )
    rate_limit_requests: int = Field(
        10,
        description="Maximum number of requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Sliding window size in seconds",
        ge=1,
    )
    rate_limit_max_tracked_clients: int = Field(
        10000,
        description="Upper bound on clients kept in the in-memory ledger",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_trust_forwarded_for: bool = Field(
        False,
        description="Key clients on the first X-Forwarded-For hop (behind a proxy)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def cors_origins(self) -> list[str]:
        return parse_csv(self.cors_allowed_origins)


class LogSettings(BaseSettings):
    """Logging configuration consumed by app.core.logging."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(
        "logs/app.log",
        description="Log file path when output=file",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (error details exposed)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    gemini: GeminiSettings = Field(default_factory=_build_gemini_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def expose_error_details(self) -> bool:
        """Whether 500 responses may carry the underlying error message."""
        if self.app.expose_error_details is not None:
            return self.app.expose_error_details
        return self.app_env == "development"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
