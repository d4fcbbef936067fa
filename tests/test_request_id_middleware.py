from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient

from throttle_api.core.logging import hash_identity


def test_preserves_incoming_request_id_header(client):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_rejected_requests_carry_request_id(make_app):
    client = TestClient(make_app(limit=1))
    client.get("/api/test", headers={"x-user-id": "alice"})

    resp = client.get(
        "/api/test", headers={"x-user-id": "alice", "X-Request-ID": "req-429"}
    )

    assert resp.status_code == 429
    assert resp.headers.get("X-Request-ID") == "req-429"


def test_response_carries_identity_hash(client):
    resp = client.get("/api/test", headers={"x-user-id": "alice"})

    assert resp.headers.get("X-Identity-Hash") == hash_identity("alice")
    assert "alice" not in resp.headers["X-Identity-Hash"]


def test_generated_identity_hash_matches_issued_identity(client):
    resp = client.get("/api/test")

    assert resp.headers["X-Identity-Hash"] == hash_identity(resp.headers["X-User-ID"])


def test_exempt_path_has_no_identity_hash(client):
    resp = client.get("/health", headers={"x-user-id": "alice"})

    assert resp.status_code == 200
    assert "X-Identity-Hash" not in resp.headers


def test_completed_request_is_logged_with_hashed_identity(client):
    with patch("throttle_api.core.middleware.logger") as logger:
        client.get(
            "/api/test", headers={"x-user-id": "alice", "X-Request-ID": "req-log"}
        )

    logger.info.assert_called_once()
    event, = logger.info.call_args.args
    extra = logger.info.call_args.kwargs["extra"]
    assert event == "request.completed"
    assert extra["request_method"] == "GET"
    assert extra["request_path"] == "/api/test"
    assert extra["status_code"] == 200
    assert extra["identity_hash"] == hash_identity("alice")
    assert "alice" not in str(extra)
