"""
Unit tests for error handler middleware.
"""

from unittest.mock import patch

import pytest
import stripe
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from api.middleware.error_handler import setup_exception_handlers
from core.exceptions import (
    AppException,
    ContentBlockedError,
    GenerationError,
    InsufficientCreditsError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)


class EditBody(BaseModel):
    prompt: str
    strength: int


def _create_test_app() -> FastAPI:
    """Create a minimal FastAPI app with exception handlers for testing."""
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/raise-app-exception")
    async def raise_app_exception():
        raise AppException(message="Something broke", error_code="test_error")

    @app.get("/raise-generation-error")
    async def raise_generation_error():
        raise GenerationError(message="Gemini returned no image")

    @app.get("/raise-not-found")
    async def raise_not_found():
        raise NotFoundError(message="Image not found")

    @app.get("/raise-insufficient-credits")
    async def raise_insufficient_credits():
        raise InsufficientCreditsError(details={"required": 2, "available": 1})

    @app.get("/raise-rate-limit")
    async def raise_rate_limit():
        raise RateLimitError(details={"retry_after": 3})

    @app.get("/raise-content-blocked")
    async def raise_content_blocked():
        raise ContentBlockedError(message="Prompt blocked by safety filters")

    @app.get("/raise-validation-error")
    async def raise_validation_error():
        raise ValidationError(message="Invalid prompt")

    @app.get("/raise-stripe-error")
    async def raise_stripe_error():
        raise stripe.InvalidRequestError(
            "No such price: 'price_x'",
            param="price",
            code="resource_missing",
        )

    @app.get("/raise-http-400")
    async def raise_http_400():
        raise HTTPException(status_code=400, detail="Bad input")

    @app.get("/raise-http-418")
    async def raise_http_418():
        raise HTTPException(status_code=418, detail="Teapot")

    @app.post("/validate-body")
    async def validate_body(body: EditBody):
        return body

    @app.get("/raise-unexpected")
    async def raise_unexpected():
        raise RuntimeError("Something unexpected")

    return app


@pytest.fixture
def test_client():
    app = _create_test_app()
    return TestClient(app, raise_server_exceptions=False)


class TestAppExceptionHandler:
    """Test that AppException subclasses produce structured responses."""

    def test_app_exception(self, test_client):
        resp = test_client.get("/raise-app-exception")
        assert resp.status_code == 500
        assert resp.json() == {
            "success": False,
            "error": {"code": "test_error", "message": "Something broke"},
        }

    def test_generation_error(self, test_client):
        resp = test_client.get("/raise-generation-error")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "generation_failed"
        assert body["error"]["message"] == "Gemini returned no image"

    def test_not_found(self, test_client):
        resp = test_client.get("/raise-not-found")
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"]["code"] == "not_found"
        assert "details" not in body["error"]

    def test_insufficient_credits_with_details(self, test_client):
        resp = test_client.get("/raise-insufficient-credits")
        assert resp.status_code == 402
        body = resp.json()
        assert body["error"]["code"] == "insufficient_credits"
        assert body["error"]["details"] == {"required": 2, "available": 1}

    def test_rate_limit(self, test_client):
        resp = test_client.get("/raise-rate-limit")
        assert resp.status_code == 429
        assert resp.json()["error"]["details"]["retry_after"] == 3

    def test_content_blocked(self, test_client):
        resp = test_client.get("/raise-content-blocked")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "content_blocked"

    def test_validation_error(self, test_client):
        resp = test_client.get("/raise-validation-error")
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"]["code"] == "validation_error"


class TestStripeErrorHandler:
    """Stripe SDK errors become payment errors."""

    def test_stripe_error(self, test_client):
        resp = test_client.get("/raise-stripe-error")
        assert resp.status_code == 502
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "payment_error"
        assert body["error"]["details"] == {"stripe_code": "resource_missing"}


class TestHTTPExceptionFallbackHandler:
    """Test that HTTPException is wrapped in structured format."""

    def test_http_400(self, test_client):
        resp = test_client.get("/raise-http-400")
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "bad_request"
        assert body["error"]["message"] == "Bad input"

    def test_unknown_route(self, test_client):
        resp = test_client.get("/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_wrong_method(self, test_client):
        resp = test_client.delete("/raise-http-400")
        assert resp.status_code == 405
        assert resp.json()["error"]["code"] == "method_not_allowed"

    def test_unmapped_status(self, test_client):
        resp = test_client.get("/raise-http-418")
        assert resp.status_code == 418
        assert resp.json()["error"]["code"] == "http_error"


class TestRequestValidationHandler:
    """Malformed request bodies are reported field by field."""

    def test_missing_and_invalid_fields(self, test_client):
        resp = test_client.post("/validate-body", json={"strength": "high"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"]["code"] == "validation_error"
        assert body["error"]["message"] == "Request validation failed"

        fields = {e["field"] for e in body["error"]["details"]["errors"]}
        assert "body -> prompt" in fields
        assert "body -> strength" in fields


class TestGeneralExceptionHandler:
    """Test that unhandled exceptions also produce structured format."""

    def test_unexpected_error(self, test_client):
        resp = test_client.get("/raise-unexpected")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "internal_error"
        assert body["error"]["message"] == "Something unexpected"
        assert body["error"]["details"]["type"] == "RuntimeError"

    def test_unexpected_error_hidden_in_production(self, test_client, settings):
        with patch.object(settings, "environment", "production"):
            resp = test_client.get("/raise-unexpected")

        body = resp.json()
        assert body["error"]["message"] == "An unexpected error occurred"
        assert "details" not in body["error"]
