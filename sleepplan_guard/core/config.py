"""Service settings, grouped by concern and read from the environment.

``APP_ENV`` (development, testing, staging, production) selects an optional
``.env.<APP_ENV>`` file at the project root. Real environment variables are
overridden by that file when it exists.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {name: f".env.{name}" for name in ("development", "testing", "staging", "production")}

_env_path = PROJECT_ROOT / ENV_FILE_MAP.get(APP_ENV, ENV_FILE_MAP["development"])

# Each settings group is its own BaseSettings, so the file goes into os.environ
if _env_path.is_file():
    from dotenv import load_dotenv
    load_dotenv(_env_path, override=True)


HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class LimiterPolicy(BaseModel):
    """Quota for a single named limiter."""

    max: int = Field(..., ge=1, description="Maximum events per window")
    window_ms: int = Field(..., ge=1, description="Window length in milliseconds")


DEFAULT_POLICIES: dict[str, LimiterPolicy] = {
    # AI endpoints, keyed by user id
    "generate-plan": LimiterPolicy(max=5, window_ms=HOUR_MS),
    "diary-review": LimiterPolicy(max=10, window_ms=HOUR_MS),
    "diary-plan-update": LimiterPolicy(max=5, window_ms=HOUR_MS),
    # Public forms, keyed by client IP
    "contact": LimiterPolicy(max=3, window_ms=HOUR_MS),
    "free-schedule-preview": LimiterPolicy(max=10, window_ms=DAY_MS),
    "free-schedule-pdf-ip": LimiterPolicy(max=5, window_ms=DAY_MS),
    "free-schedule-pdf-email": LimiterPolicy(max=1, window_ms=DAY_MS),
    "maintenance-unlock": LimiterPolicy(max=10, window_ms=15 * 60 * 1000),
}


def _build_app_settings() -> "AppSettings":
    # BaseSettings fills fields from env; type checkers see required args
    return AppSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()  # type: ignore[call-arg]


def _build_maintenance_settings() -> "MaintenanceSettings":
    return MaintenanceSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required on /v1 endpoints",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Named limiter policies and HTTP behaviour on throttling.

    ``policies`` is read from ``RATE_LIMIT_POLICIES`` as JSON, e.g.
    ``{"contact": {"max": 5, "window_ms": 3600000}}``. Entries are merged
    over the built-in defaults, so only overrides need to be listed.
    """

    enabled: bool = Field(
        True,
        description="Enforce limits on protected routes",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers when throttling",
    )
    identity_salt: str | None = Field(
        None,
        description="Salt mixed into hashed identities (client IPs, emails)",
    )
    policies: dict[str, LimiterPolicy] = Field(
        default_factory=dict,
        description="Per-limiter overrides keyed by limiter name",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def resolved_policies(self) -> dict[str, LimiterPolicy]:
        """Return defaults merged with configured overrides."""

        merged = dict(DEFAULT_POLICIES)
        merged.update(self.policies)
        return merged


class MaintenanceSettings(BaseSettings):
    """Maintenance-mode gating configuration."""

    mode: bool = Field(
        False,
        description="Emergency override: force maintenance mode on",
    )
    bypass_token: str | None = Field(
        None,
        description="Token granting access while maintenance mode is on",
    )
    cookie_name: str = Field(
        "maintenance_bypass",
        description="Cookie carrying the bypass token",
    )
    cookie_max_age_seconds: int = Field(
        60 * 60 * 24 * 14,
        description="Lifetime of the bypass cookie set by /maintenance/unlock",
    )
    secure_cookie: bool = Field(
        False,
        description="Mark the bypass cookie Secure (enable in production)",
    )
    flags_url: str | None = Field(
        None,
        description="Base URL of the runtime flags REST API",
    )
    flags_api_key: str | None = Field(
        None,
        description="API key sent to the runtime flags REST API",
    )
    cache_ttl_seconds: float = Field(
        10.0,
        description="How long a runtime flag lookup is reused",
        ge=0,
    )
    timeout_seconds: float = Field(
        2.0,
        description="Timeout for the runtime flag request",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="MAINTENANCE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    maintenance: MaintenanceSettings = Field(default_factory=_build_maintenance_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
