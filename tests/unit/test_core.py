"""
Unit tests for core module.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt


class TestSettings:
    """Tests for core.config settings."""

    def test_settings_defaults(self, monkeypatch):
        """Test default settings values."""
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.delenv("DEBUG", raising=False)

        from core.config import Settings
        settings = Settings(_env_file=None)

        assert settings.app_name == "NanoBanana API"
        assert settings.environment == "development"
        assert settings.jwt_algorithm == "HS256"
        assert settings.jwt_expire_days == 30
        assert settings.cors_max_age == 86400
        assert settings.upload_max_size == 10 * 1024 * 1024

    def test_jwt_secret_alias(self, monkeypatch):
        """JWT_SECRET populates secret_key."""
        monkeypatch.setenv("JWT_SECRET", "from-jwt-secret-env")

        from core.config import Settings
        settings = Settings(_env_file=None)

        assert settings.secret_key == "from-jwt-secret-env"

    def test_gemini_key_alias(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")

        from core.config import Settings
        settings = Settings(_env_file=None)

        assert settings.gemini_api_key == "google-key"

    def test_is_production(self, monkeypatch):
        """Test is_production property."""
        monkeypatch.setenv("ENVIRONMENT", "production")

        from core.config import Settings
        settings = Settings(_env_file=None)

        assert settings.is_production is True

    def test_configuration_flags(self, monkeypatch):
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test")
        monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
        monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role")

        from core.config import Settings
        settings = Settings(_env_file=None)

        assert settings.is_stripe_configured is False
        assert settings.is_supabase_configured is True
        assert settings.is_apple_configured is False

    def test_checkout_urls(self, monkeypatch):
        monkeypatch.setenv("APP_URL", "https://app.example.com")

        from core.config import Settings
        settings = Settings(_env_file=None)

        assert settings.checkout_success_url == (
            "https://app.example.com/subscription/success?session_id={CHECKOUT_SESSION_ID}"
        )
        assert settings.checkout_cancel_url == "https://app.example.com/subscription"


class TestSecurity:
    """Tests for core.security module."""

    def test_create_user_token_claims(self):
        """Session tokens carry userId, appleId and email."""
        from core.security import create_user_token, verify_token

        token = create_user_token("user-123", apple_id="apple-abc", email="a@example.com")
        payload = verify_token(token)

        assert payload["userId"] == "user-123"
        assert payload["appleId"] == "apple-abc"
        assert payload["email"] == "a@example.com"

    def test_token_expires_after_30_days(self):
        from core.security import create_user_token

        token = create_user_token("user-123")
        claims = jwt.get_unverified_claims(token)

        lifetime = claims["exp"] - claims["iat"]
        assert lifetime == pytest.approx(timedelta(days=30).total_seconds(), abs=5)

    def test_verify_token_expired(self):
        """Test JWT token verification with expired token."""
        from core.exceptions import AuthenticationError
        from core.security import create_access_token, verify_token

        token = create_access_token(
            data={"userId": "user-123"},
            expires_delta=timedelta(seconds=-100),
        )

        with pytest.raises(AuthenticationError):
            verify_token(token)

    def test_verify_token_invalid(self):
        """Test JWT token verification with invalid token."""
        from core.exceptions import AuthenticationError
        from core.security import verify_token

        with pytest.raises(AuthenticationError):
            verify_token("invalid.token.here")

    def test_verify_token_wrong_secret(self):
        from core.exceptions import AuthenticationError
        from core.security import verify_token

        token = jwt.encode({"userId": "user-123"}, "another-secret", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            verify_token(token)

    def test_verify_token_without_user_id(self):
        from core.exceptions import AuthenticationError
        from core.security import create_access_token, verify_token

        with pytest.raises(AuthenticationError):
            verify_token(create_access_token({"email": "a@example.com"}))

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            ("bearer token", "token"),
            ("Basic dXNlcjpwYXNz", None),
            ("Bearer", None),
            (None, None),
        ],
    )
    def test_extract_token_from_header(self, header, expected):
        from core.security import extract_token_from_header

        assert extract_token_from_header(header) == expected

    def test_decode_apple_id_token(self):
        from core.security import decode_apple_id_token

        token = jwt.encode(
            {"sub": "001234.apple", "email": "a@privaterelay.appleid.com"},
            "apple-signing-key",
            algorithm="HS256",
        )
        claims = decode_apple_id_token(token)

        assert claims["sub"] == "001234.apple"
        assert claims["email"] == "a@privaterelay.appleid.com"

    def test_decode_apple_id_token_expired(self):
        from core.exceptions import AuthenticationError
        from core.security import decode_apple_id_token

        expired = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "001234.apple", "exp": int(expired.timestamp())},
            "apple-signing-key",
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            decode_apple_id_token(token)

    def test_decode_apple_id_token_without_subject(self):
        from core.exceptions import AuthenticationError
        from core.security import decode_apple_id_token

        token = jwt.encode({"email": "a@example.com"}, "k", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            decode_apple_id_token(token)

    def test_decode_apple_id_token_garbage(self):
        from core.exceptions import AuthenticationError
        from core.security import decode_apple_id_token

        with pytest.raises(AuthenticationError):
            decode_apple_id_token("not-a-jwt")

    def test_decode_google_credential(self):
        from core.security import decode_google_credential

        token = jwt.encode(
            {"sub": "google-sub-1", "email": "g@example.com", "name": "G"},
            "google-key",
            algorithm="HS256",
        )

        assert decode_google_credential(token)["sub"] == "google-sub-1"
        assert decode_google_credential("opaque-credential") == {}


class TestExceptions:
    """Tests for core.exceptions module."""

    def test_app_exception(self):
        """Test AppException creation."""
        from core.exceptions import AppException

        exc = AppException(
            message="Test error",
            error_code="test_error",
            details={"field": "value"},
        )

        assert exc.message == "Test error"
        assert exc.error_code == "test_error"
        assert exc.status_code == 500
        assert exc.to_dict() == {
            "code": "test_error",
            "message": "Test error",
            "details": {"field": "value"},
        }

    def test_to_dict_omits_empty_details(self):
        from core.exceptions import NotFoundError

        assert "details" not in NotFoundError().to_dict()

    @pytest.mark.parametrize(
        "name,status_code,error_code",
        [
            ("BadRequestError", 400, "bad_request"),
            ("AuthenticationError", 401, "authentication_failed"),
            ("InsufficientCreditsError", 402, "insufficient_credits"),
            ("AuthorizationError", 403, "authorization_failed"),
            ("NotFoundError", 404, "not_found"),
            ("ValidationError", 422, "validation_error"),
            ("RateLimitError", 429, "rate_limit_exceeded"),
            ("ExternalServiceError", 503, "external_service_error"),
            ("ContentBlockedError", 400, "content_blocked"),
            ("GenerationError", 500, "generation_failed"),
            ("StorageError", 500, "storage_error"),
            ("PaymentError", 502, "payment_error"),
            ("DuplicateTransactionError", 400, "duplicate_transaction"),
            ("SubscriptionNotFoundError", 404, "subscription_not_found"),
        ],
    )
    def test_status_codes(self, name, status_code, error_code):
        import core.exceptions

        exc = getattr(core.exceptions, name)()

        assert exc.status_code == status_code
        assert exc.error_code == error_code


class TestI18n:
    """Tests for core.i18n."""

    def test_translate(self):
        from core.i18n import translate

        assert translate("upload.success", "en") == "Image uploaded successfully"
        assert translate("upload.success", "fr") == "Image téléchargée avec succès"

    def test_translate_unknown_language_falls_back_to_english(self):
        from core.i18n import translate

        assert translate("credits.insufficient", "xx") == "Insufficient credits"

    def test_translate_unknown_key_returns_key(self):
        from core.i18n import translate

        assert translate("does.not.exist", "de") == "does.not.exist"

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("de-CH,de;q=0.9,en;q=0.8", "de"),
            ("zh-CN,zh;q=0.9", "cn"),
            ("ja", "jp"),
            ("ko-KR", "kr"),
            ("pt-BR", "en"),
            (None, "en"),
        ],
    )
    def test_language_from_header(self, header, expected):
        from core.i18n import language_from_header

        assert language_from_header(header) == expected

    def test_resolve_language_prefers_explicit(self):
        from core.i18n import resolve_language

        assert resolve_language("kr", "de-DE") == "kr"
        assert resolve_language("xx", "de-DE") == "de"
        assert resolve_language(None, None) == "en"
