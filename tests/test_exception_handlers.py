"""Tests for global exception handlers.

Validates that every error type is rendered with the flat
``{"error", "message"}`` shape and that nothing internal leaks to clients.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from throttle_api.core.errors import (
    AppError,
    NotFoundAppError,
    RateLimitedAppError,
    ValidationAppError,
)
from throttle_api.core.exception_handlers import (
    build_error_response,
    general_exception_handler,
    setup_exception_handlers,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def handler_client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


def _body(response) -> dict:
    raw = response.body if isinstance(response.body, bytes) else bytes(response.body)
    return json.loads(raw.decode())


class TestAppErrorHandler:
    """Handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, handler_client, app_with_handlers):
        @app_with_handlers.get("/bad")
        async def endpoint():
            raise ValidationAppError(code="invalid_json", message="Bad body")

        response = handler_client.get("/bad")

        assert response.status_code == 400
        assert response.json() == {"error": "invalid_json", "message": "Bad body"}

    def test_not_found_error_returns_404(self, handler_client, app_with_handlers):
        @app_with_handlers.get("/missing")
        async def endpoint():
            raise NotFoundAppError(code="not_found", message="Nothing here")

        response = handler_client.get("/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_details_are_included_when_present(self, handler_client, app_with_handlers):
        @app_with_handlers.get("/detailed")
        async def endpoint():
            raise ValidationAppError(
                code="invalid_json",
                message="Bad body",
                details={"hint": "Send JSON"},
            )

        response = handler_client.get("/detailed")

        assert response.json()["details"] == {"hint": "Send JSON"}

    def test_base_error_defaults_to_400(self, handler_client, app_with_handlers):
        @app_with_handlers.get("/base")
        async def endpoint():
            raise AppError(code="generic", message="Generic failure")

        assert handler_client.get("/base").status_code == 400

    def test_rate_limited_error_returns_429(self, handler_client, app_with_handlers):
        @app_with_handlers.get("/limited")
        async def endpoint():
            raise RateLimitedAppError()

        response = handler_client.get("/limited")

        assert response.status_code == 429
        assert response.json() == {
            "error": "rate_limited",
            "message": "Too many requests, please try again later.",
        }


class TestGeneralExceptionHandler:
    """Fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_500(self, handler_client, app_with_handlers):
        @app_with_handlers.get("/boom")
        async def endpoint():
            raise RuntimeError("database password is hunter2")

        response = handler_client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {
            "error": "internal_server_error",
            "message": "Something went wrong on our end.",
        }
        assert "hunter2" not in response.text

    def test_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("details")))

        text = json.dumps(_body(response))
        assert response.status_code == 500
        assert "Traceback" not in text
        assert "ValueError" not in text
        assert "details" not in text


class TestRoutingErrors:
    def test_unmatched_route_returns_not_found(self, handler_client):
        response = handler_client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_wrong_method_keeps_allow_header(self, handler_client, app_with_handlers):
        @app_with_handlers.get("/only-get")
        async def endpoint():
            return {}

        response = handler_client.post("/only-get")

        assert response.status_code == 405
        assert response.json()["error"] == "method_not_allowed"
        assert "GET" in response.headers["allow"]


def test_build_error_response_shape() -> None:
    response = build_error_response(
        429, "rate_limited", "Slow down", headers={"X-RateLimit-Remaining": "0"}
    )

    assert response.status_code == 429
    assert _body(response) == {"error": "rate_limited", "message": "Slow down"}
    assert response.headers["X-RateLimit-Remaining"] == "0"


def test_setup_registers_handlers_and_is_repeatable() -> None:
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
    assert Exception in app.exception_handlers
