"""
Integration tests for image generation endpoint.
"""

import base64
from uuid import UUID

from sqlalchemy import select

from database.models import CreditTransaction, ImageGeneration, User
from services.providers import ERROR_TYPE_SAFETY_BLOCKED, GenerationResult
from tests.conftest import PNG_BYTES, fetch, fetch_all, token_for

DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


class TestGenerateImage:
    """Tests for POST /api/generate/image."""

    def test_requires_auth(self, client):
        response = client.post("/api/generate/image", json={"prompt": "a cat"})
        assert response.status_code == 401

    def test_text_to_image(self, client, user, auth_headers, use_image_provider):
        response = client.post(
            "/api/generate/image",
            json={"prompt": "a banana riding a bike"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["credits_used"] == 1
        assert data["remaining_credits"] == 39
        assert data["image_url"].startswith("/api/images/images/generated/")

        assert fetch(User, user.id).credits == 39
        generation = fetch(ImageGeneration, UUID(data["generation_id"]))
        assert generation.status == "completed"
        assert use_image_provider.requests[0].prompt == "a banana riding a bike"

    def test_generated_image_is_served(self, client, auth_headers, use_image_provider):
        data = client.post(
            "/api/generate/image", json={"prompt": "a cat"}, headers=auth_headers
        ).json()

        response = client.get(data["image_url"])

        assert response.status_code == 200
        assert response.content == PNG_BYTES
        assert response.headers["content-type"] == "image/png"

    def test_image_to_image(self, client, user, auth_headers, use_image_provider):
        response = client.post(
            "/api/generate/image",
            json={
                "prompt": "make it look like winter",
                "generation_type": "image-to-image",
                "input_images": [DATA_URL],
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["credits_used"] == 2
        assert fetch(User, user.id).credits == 38

    def test_language_from_body(self, client, auth_headers, use_image_provider):
        response = client.post(
            "/api/generate/image",
            json={"prompt": "a cat", "language": "cn"},
            headers=auth_headers,
        )
        assert response.json()["message"] != "Great! Your image has been successfully modified!"

    def test_insufficient_credits(self, client, make_user, use_image_provider):
        poor = make_user(credits=0, free_attempts=0)

        response = client.post(
            "/api/generate/image",
            json={"prompt": "a cat"},
            headers={"Authorization": f"Bearer {token_for(poor)}", "Accept-Language": "de-DE"},
        )

        assert response.status_code == 402
        body = response.json()
        assert body["error"]["code"] == "insufficient_credits"
        assert body["error"]["message"] == "Unzureichende Credits"
        assert use_image_provider.requests == []

    def test_cooldown(self, client, auth_headers, use_image_provider):
        first = client.post("/api/generate/image", json={"prompt": "a"}, headers=auth_headers)
        second = client.post("/api/generate/image", json={"prompt": "b"}, headers=auth_headers)

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["error"]["details"]["cooldown_remaining"] > 0

    def test_failed_generation_not_charged(
        self, client, user, auth_headers, image_provider, use_image_provider
    ):
        image_provider.result = GenerationResult(
            success=False,
            error="Content blocked by safety filter",
            error_type=ERROR_TYPE_SAFETY_BLOCKED,
            safety_blocked=True,
        )

        response = client.post(
            "/api/generate/image", json={"prompt": "something"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "content_blocked"
        assert fetch(User, user.id).credits == 40
        assert fetch_all(select(CreditTransaction)) == []
        generations = fetch_all(select(ImageGeneration))
        assert [g.status for g in generations] == ["failed"]

    def test_empty_prompt_rejected(self, client, auth_headers):
        response = client.post("/api/generate/image", json={"prompt": ""}, headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_unknown_generation_type_rejected(self, client, auth_headers):
        response = client.post(
            "/api/generate/image",
            json={"prompt": "a cat", "generation_type": "video"},
            headers=auth_headers,
        )
        assert response.status_code == 422
