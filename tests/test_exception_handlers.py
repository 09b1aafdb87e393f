"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import AppError, LLMAppError, RateLimitAppError, ValidationAppError
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (ValidationAppError(code="bad_input", message="Bad input"), 400),
            (RateLimitAppError(code="rate_limit_exceeded", message="Rate limit exceeded"), 429),
            (LLMAppError(code="llm_upstream_error", message="OpenAI API error: 502"), 500),
        ],
    )
    def test_maps_error_type_to_status(
        self, client: TestClient, app_with_handlers: FastAPI, error: AppError, status_code: int
    ) -> None:
        @app_with_handlers.get("/boom")
        async def boom():
            raise error

        response = client.get("/boom")

        assert response.status_code == status_code
        assert response.headers["content-type"] == "application/json"
        data = response.json()
        assert data["error"]["code"] == error.code
        assert data["error"]["message"] == error.message
        assert "request_id" in data["error"]

    def test_includes_details_when_provided(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/details")
        async def details():
            raise LLMAppError(
                code="llm_upstream_error",
                message="OpenAI API error: 429",
                details={"upstream_status": 429, "provider": "openai"},
            )

        data = client.get("/details").json()

        assert data["error"]["details"] == {"upstream_status": 429, "provider": "openai"}

    def test_omits_details_when_absent(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/plain")
        async def plain():
            raise RateLimitAppError(code="rate_limit_exceeded", message="Rate limit exceeded")

        assert "details" not in client.get("/plain").json()["error"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/crash")
        async def crash():
            raise RuntimeError("database connection failed")

        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "database connection" not in response.text

    def test_never_leaks_stack_trace(self) -> None:
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("Test error with details")))

        text = bytes(response.body).decode()
        assert json.loads(text)["error"]["code"] == "internal_server_error"
        assert "Traceback" not in text
        assert "ValueError" not in text


def test_setup_is_idempotent() -> None:
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
    assert Exception in app.exception_handlers
