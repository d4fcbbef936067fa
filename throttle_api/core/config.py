"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Values are read once at startup and treated as immutable afterwards.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_VERSION = "0.1.0"

APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Environments where the identity cookie is marked Secure by default
SECURE_ENVIRONMENTS = frozenset({"staging", "production"})

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class RateLimitSettings(BaseSettings):
    """Sliding-window quota configuration.

    The env prefix keeps the historical variable names: ``RATE_LIMIT`` and
    ``RATE_WINDOW_SEC``.
    """

    limit: int = Field(
        5,
        description="Maximum number of admitted requests per window",
        ge=1,
    )
    window_sec: int = Field(
        60,
        description="Sliding window length in seconds",
        ge=1,
    )
    cleanup_interval_sec: float = Field(
        60.0,
        description="Seconds between two janitor sweeps of the store",
        gt=0,
    )
    exempt_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Request paths that bypass rate limiting entirely",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_",
        case_sensitive=False,
    )

    @property
    def window_ms(self) -> int:
        return self.window_sec * 1000


class IdentitySettings(BaseSettings):
    """How callers are identified and how new identities are handed back."""

    header_name: str = Field(
        "x-user-id",
        description="Trusted request header carrying the caller identity",
    )
    cookie_name: str = Field(
        "userId",
        description="Cookie used to persist generated identities",
    )
    cookie_max_age_sec: int = Field(
        24 * 60 * 60,
        description="Max-Age of the identity cookie in seconds",
        ge=1,
    )
    cookie_secure: bool | None = Field(
        None,
        description="Force the Secure cookie flag; derived from APP_ENV when unset",
    )

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Either 'json' or 'plain'")
    output: str = Field("stdout", description="Either 'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    host: str = Field("0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(3000, description="Bind port for the HTTP server")
    inspect_enabled: bool = Field(
        True,
        description="Expose the read-only /api/rate-limits introspection endpoint",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Raises validation errors on startup if any value is invalid (for example
    ``RATE_LIMIT=0``).
    """

    app_env: str = APP_ENV
    limiter: RateLimitSettings = Field(default_factory=RateLimitSettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def cookie_secure(self) -> bool:
        """Whether the identity cookie should carry the Secure flag."""
        if self.identity.cookie_secure is not None:
            return self.identity.cookie_secure
        return self.app_env.lower() in SECURE_ENVIRONMENTS


settings = Settings()
