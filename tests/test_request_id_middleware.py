from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_preserves_incoming_request_id_header(client: TestClient) -> None:
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_error_envelope_carries_request_id(client: TestClient) -> None:
    resp = client.post(
        "/api/chat",
        json={"messages": []},
        headers={"X-Request-ID": "req-422", "X-Forwarded-For": "192.0.2.10"},
    )

    assert resp.status_code == 422
    assert resp.headers.get("X-Request-ID") == "req-422"
