"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production injects via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class StoreSettings(BaseSettings):
    """Hosted database (PostgREST) connection settings.

    Both url and service_role_key are checked when the store is first used,
    so the app can start (and serve health checks) without them.
    """

    url: str = Field(
        "",
        description="Project URL, e.g. https://<ref>.supabase.co",
    )
    service_role_key: str = Field(
        "",
        description="Service role key used for the apikey and Authorization headers",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Timeout for row API requests in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class EmailSettings(BaseSettings):
    """Outbound transactional email configuration.

    When no SendGrid key is configured, emails are rendered and logged but not
    sent (simulation mode).
    """

    sendgrid_api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("email_sendgrid_api_key", "sendgrid_api_key"),
        description="SendGrid API key; leave unset to simulate delivery",
    )
    sendgrid_url: str = Field(
        "https://api.sendgrid.com/v3/mail/send",
        description="SendGrid mail send endpoint",
    )
    from_email: str = Field(
        "noreply@example.com",
        validation_alias=AliasChoices("email_from_email", "from_email"),
        description="Sender address for order notifications",
    )
    from_name: str = Field(
        "E-commerce",
        description="Sender display name",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Timeout for provider requests in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        case_sensitive=False,
        populate_by_name=True,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Expose upstream error details in responses (non-production only)",
    )
    site_url: str = Field(
        "https://example.com",
        validation_alias=AliasChoices("app_site_url", "site_url"),
        description="Storefront base URL used for order links in emails",
    )
    display_timezone: str = Field(
        "America/Sao_Paulo",
        description="Timezone used to display timestamps in CSV exports",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value of Access-Control-Allow-Origin on every response",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per client and endpoint)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        populate_by_name=True,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and propagate request ids",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting has an invalid value.
    """

    app_env: str = APP_ENV
    store: StoreSettings = Field(default_factory=StoreSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
