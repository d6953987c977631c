"""
Unit tests for GenerationService.

Runs the full flow against SQLite with a fake image provider, local
storage and the in-memory Redis double.
"""

import base64
from uuid import uuid4

import pytest

from core.exceptions import (
    ContentBlockedError,
    ExternalServiceError,
    GenerationError,
    InsufficientCreditsError,
    RateLimitError,
    UserNotFoundError,
)
from database.repositories import CreditRepository, GenerationRepository, UserRepository
from services import GenerationService
from services.generation_service import COOLDOWN_KEY, decode_data_url
from services.providers import (
    ERROR_TYPE_RATE_LIMITED,
    ERROR_TYPE_SAFETY_BLOCKED,
    GenerationResult,
)
from services.storage import StorageConfig, StorageManager
from tests.conftest import PNG_BYTES, FakeImageProvider


async def _new_user(session, credits=40, free_attempts=0):
    user = await UserRepository(session).create(
        apple_id=f"apple-{uuid4().hex[:8]}",
        credits=credits,
        free_attempts=free_attempts,
    )
    await session.commit()
    return user


@pytest.fixture
def storage(tmp_path):
    return StorageManager(StorageConfig(backend="local", local_path=str(tmp_path / "storage")))


@pytest.fixture
def make_service(db_session, storage, mock_redis_fixture):
    def build(provider=None):
        return GenerationService(
            db_session,
            provider=provider or FakeImageProvider(),
            storage=storage,
        )

    return build


class TestDecodeDataUrl:
    def test_base64_png(self):
        url = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
        image = decode_data_url(url)

        assert image.data == PNG_BYTES
        assert image.mime_type == "image/png"

    def test_mime_type_sniffed_when_missing(self):
        url = "data:;base64," + base64.b64encode(PNG_BYTES).decode()
        assert decode_data_url(url).mime_type == "image/png"

    @pytest.mark.parametrize("url", ["data:image/png;base64", "data:text/plain,hello"])
    def test_invalid(self, url):
        with pytest.raises(ValueError):
            decode_data_url(url)


class TestGenerate:
    """Tests for GenerationService.generate."""

    async def test_text_to_image_charges_one_credit(self, db_session, make_service):
        user = await _new_user(db_session, credits=40)
        user_id = user.id

        result = await make_service().generate(user, "a banana astronaut")

        assert result["credits_used"] == 1
        assert result["remaining_credits"] == 39
        assert result["image_url"].startswith("/api/images/images/generated/")
        assert result["message"] == "Great! Your image has been successfully modified!"

        generation = await GenerationRepository(db_session).get_by_id(result["generation_id"])
        assert generation.status == "completed"
        assert generation.output_image_url == result["image_url"]
        assert generation.extra_metadata["model"] == "fake-image-model"

        transactions = await CreditRepository(db_session).list_transactions(user_id)
        assert transactions[0].amount == -1
        assert transactions[0].related_id == generation.id

    async def test_image_to_image_charges_two(self, db_session, make_service):
        user = await _new_user(db_session, credits=5)
        provider = FakeImageProvider()
        data_url = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

        result = await make_service(provider).generate(
            user,
            "make it sunset",
            generation_type="image-to-image",
            input_images=[data_url],
        )

        assert result["credits_used"] == 2
        assert result["remaining_credits"] == 3
        assert len(provider.requests[0].input_images) == 1
        assert provider.requests[0].input_images[0].data == PNG_BYTES

    async def test_stored_upload_used_as_input(self, db_session, make_service, storage):
        user = await _new_user(db_session)
        provider = FakeImageProvider()
        stored = await storage.save_user_upload(user.id, "input", PNG_BYTES, "image/png", "png")

        await make_service(provider).generate(
            user,
            "add a hat",
            generation_type="image-to-image",
            input_images=[stored.public_url],
        )

        assert provider.requests[0].input_images[0].data == PNG_BYTES

    async def test_unreadable_input_images(self, db_session, make_service):
        user = await _new_user(db_session)
        user_id = user.id

        with pytest.raises(GenerationError):
            await make_service().generate(
                user,
                "add a hat",
                generation_type="image-to-image",
                input_images=["/api/images/user-uploads/missing.png"],
            )

        generations = await GenerationRepository(db_session).list_by_user(user_id)
        assert generations[0].status == "failed"
        assert await CreditRepository(db_session).get_balance(user_id) == (40, 0)

    async def test_free_attempt_used_first(self, db_session, make_service):
        user = await _new_user(db_session, credits=40, free_attempts=3)

        result = await make_service().generate(user, "a cat")

        assert result["credits_used"] == 0
        assert result["remaining_credits"] == 40
        assert result["free_attempts"] == 2

    async def test_insufficient_credits(self, db_session, make_service):
        user = await _new_user(db_session, credits=1)
        user_id = user.id
        provider = FakeImageProvider()

        with pytest.raises(InsufficientCreditsError) as exc_info:
            await make_service(provider).generate(
                user, "a cat", language="de", generation_type="image-to-image",
                input_images=["data:image/png;base64,AAAA"],
            )

        assert exc_info.value.message == "Unzureichende Credits"
        assert provider.requests == []
        assert await GenerationRepository(db_session).count_by_user(user_id) == 0

    async def test_cooldown(self, db_session, make_service, mock_redis):
        user = await _new_user(db_session)
        await mock_redis.set(COOLDOWN_KEY.format(user_id=user.id), "1", ex=2)

        with pytest.raises(RateLimitError) as exc_info:
            await make_service().generate(user, "a cat")

        assert exc_info.value.details == {"cooldown_remaining": 2}

    async def test_second_request_within_cooldown(self, db_session, make_service):
        user = await _new_user(db_session)
        service = make_service()

        await service.generate(user, "a cat")
        with pytest.raises(RateLimitError):
            await service.generate(user, "another cat")

    async def test_failure_not_charged(self, db_session, make_service):
        user = await _new_user(db_session, credits=40)
        user_id = user.id
        provider = FakeImageProvider(
            GenerationResult(success=False, error="Failed to generate image. Please try again.")
        )

        with pytest.raises(GenerationError):
            await make_service(provider).generate(user, "a cat")

        assert await CreditRepository(db_session).get_balance(user_id) == (40, 0)
        generations = await GenerationRepository(db_session).list_by_user(user_id)
        assert generations[0].status == "failed"
        assert generations[0].error_message == "Failed to generate image. Please try again."

    async def test_safety_block(self, db_session, make_service):
        user = await _new_user(db_session)
        provider = FakeImageProvider(
            GenerationResult(
                success=False,
                error="Content blocked by safety filter",
                error_type=ERROR_TYPE_SAFETY_BLOCKED,
                safety_blocked=True,
            )
        )

        with pytest.raises(ContentBlockedError):
            await make_service(provider).generate(user, "something unsafe")

    async def test_provider_quota(self, db_session, make_service):
        user = await _new_user(db_session)
        provider = FakeImageProvider(
            GenerationResult(
                success=False,
                error="API quota exceeded. Please try again later.",
                error_type=ERROR_TYPE_RATE_LIMITED,
            )
        )

        with pytest.raises(ExternalServiceError):
            await make_service(provider).generate(user, "a cat")

    async def test_provider_crash_marks_generation_failed(self, db_session, make_service):
        user = await _new_user(db_session, credits=40)
        user_id = user.id
        provider = FakeImageProvider()

        async def crash(request):
            raise RuntimeError("malformed response")

        provider.generate = crash

        with pytest.raises(GenerationError):
            await make_service(provider).generate(user, "a cat")

        assert await CreditRepository(db_session).get_balance(user_id) == (40, 0)
        generations = await GenerationRepository(db_session).list_by_user(user_id)
        assert [g.status for g in generations] == ["failed"]
        assert generations[0].error_message == "malformed response"

    async def test_charge_error_marks_generation_failed(self, db_session, make_service):
        user = await _new_user(db_session)
        user_id = user.id
        service = make_service()

        async def user_gone(*args, **kwargs):
            raise UserNotFoundError()

        service.credits.deduct_credits = user_gone

        with pytest.raises(UserNotFoundError):
            await service.generate(user, "a cat")

        generations = await GenerationRepository(db_session).list_by_user(user_id)
        assert [g.status for g in generations] == ["failed"]

    async def test_storage_failure_falls_back_to_data_url(self, db_session, make_service, storage):
        user = await _new_user(db_session)

        async def broken_save(*args, **kwargs):
            raise OSError("disk full")

        storage.save_generated_image = broken_save
        result = await make_service().generate(user, "a cat")

        assert result["image_url"].startswith("data:image/png;base64,")
