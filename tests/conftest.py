"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports the settings module so
every test sees the same baseline configuration.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("RATE_LIMIT", "5")
os.environ.setdefault("RATE_WINDOW_SEC", "60")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from throttle_api.adapters.rate_limit.in_memory import RateLimitStore
from throttle_api.core.app_factory import create_app
from throttle_api.core.config import (
    AppSettings,
    IdentitySettings,
    RateLimitSettings,
    Settings,
)

T0 = 1_700_000_000_000


class FakeClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, start: int = T0) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


def build_settings(
    *,
    limit: int = 5,
    window_sec: int = 60,
    app_env: str = "testing",
    cookie_secure: bool | None = None,
    inspect_enabled: bool = True,
) -> Settings:
    return Settings(
        app_env=app_env,
        limiter=RateLimitSettings(limit=limit, window_sec=window_sec),
        identity=IdentitySettings(cookie_secure=cookie_secure),
        app=AppSettings(inspect_enabled=inspect_enabled),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> RateLimitStore:
    return RateLimitStore()


@pytest.fixture
def make_app(clock: FakeClock, store: RateLimitStore) -> Callable[..., FastAPI]:
    """Factory for isolated apps sharing the test's clock and store."""

    def _make(**settings_kwargs) -> FastAPI:
        return create_app(build_settings(**settings_kwargs), clock=clock, store=store)

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    return make_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client without lifespan: the janitor is not started."""
    return TestClient(app)
