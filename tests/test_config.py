"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from throttle_api.core.config import (
    IdentitySettings,
    RateLimitSettings,
    Settings,
)


def test_rate_limit_defaults(monkeypatch) -> None:
    monkeypatch.delenv("RATE_LIMIT", raising=False)
    monkeypatch.delenv("RATE_WINDOW_SEC", raising=False)

    cfg = RateLimitSettings()

    assert cfg.limit == 5
    assert cfg.window_sec == 60
    assert cfg.window_ms == 60_000
    assert cfg.cleanup_interval_sec == 60
    assert cfg.exempt_paths == ["/health"]


def test_rate_limit_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT", "10")
    monkeypatch.setenv("RATE_WINDOW_SEC", "30")
    monkeypatch.setenv("RATE_EXEMPT_PATHS", '["/health", "/metrics"]')

    cfg = RateLimitSettings()

    assert cfg.limit == 10
    assert cfg.window_ms == 30_000
    assert cfg.exempt_paths == ["/health", "/metrics"]


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("RATE_LIMIT", "0"),
        ("RATE_LIMIT", "lots"),
        ("RATE_WINDOW_SEC", "-5"),
    ],
)
def test_invalid_rate_limit_values_fail_fast(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        RateLimitSettings()


def test_identity_defaults() -> None:
    cfg = IdentitySettings()

    assert cfg.header_name == "x-user-id"
    assert cfg.cookie_name == "userId"
    assert cfg.cookie_max_age_sec == 86_400


@pytest.mark.parametrize(
    ("app_env", "expected"),
    [
        ("development", False),
        ("testing", False),
        ("staging", True),
        ("production", True),
        ("PRODUCTION", True),
    ],
)
def test_cookie_secure_follows_environment(app_env: str, expected: bool) -> None:
    cfg = Settings(app_env=app_env, identity=IdentitySettings())

    assert cfg.cookie_secure is expected


def test_cookie_secure_override_wins() -> None:
    cfg = Settings(app_env="production", identity=IdentitySettings(cookie_secure=False))

    assert cfg.cookie_secure is False
