"""
Application configuration using Pydantic Settings.

Supports loading from environment variables and .env files.
"""

from functools import lru_cache
from typing import Optional, List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ============ Application ============
    app_name: str = "NanoBanana API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production, testing

    # ============ Server ============
    host: str = "0.0.0.0"
    port: int = 8000

    # ============ Security ============
    secret_key: str = Field(
        default="change-me-in-production-use-a-long-random-string",
        validation_alias=AliasChoices("JWT_SECRET", "SECRET_KEY"),
    )
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 30

    # ============ CORS ============
    cors_origins: List[str] = ["*"]
    cors_allow_methods: List[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    cors_allow_headers: List[str] = ["Content-Type", "Authorization", "X-Requested-With"]
    cors_max_age: int = 86400

    # ============ Redis ============
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 10

    # ============ Database ============
    database_url: Optional[str] = None
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_echo: bool = False

    # ============ Google Gemini API ============
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash-image-preview"
    gemini_max_retries: int = 3
    gemini_retry_delay: float = 2.0
    gemini_timeout: int = 60

    # ============ Generation ============
    generation_cooldown_seconds: int = 3

    # ============ Storage ============
    storage_backend: str = "local"  # local, supabase
    local_storage_path: str = "outputs/storage"
    storage_public_url: Optional[str] = None
    generated_images_bucket: str = "images"
    user_uploads_bucket: str = "user-uploads"

    # ============ Uploads ============
    upload_max_size: int = 10 * 1024 * 1024
    upload_allowed_types: List[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/gif",
    ]

    # ============ Supabase ============
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None

    # ============ Stripe ============
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_price_id_basic: str = "price_basic_placeholder"
    stripe_price_id_pro: str = "price_pro_placeholder"
    stripe_price_id_premium: str = "price_premium_placeholder"
    stripe_event_ttl_seconds: int = 7 * 24 * 3600
    app_url: str = "http://localhost:3000"

    # ============ Apple Sign In ============
    apple_client_id: Optional[str] = None
    apple_team_id: Optional[str] = None
    apple_key_id: Optional[str] = None
    apple_private_key: Optional[str] = None

    # ============ Logging ============
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ============ Defaults ============
    default_language: str = "en"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_database_configured(self) -> bool:
        """Check if a database URL is set."""
        return bool(self.database_url)

    @property
    def is_supabase_configured(self) -> bool:
        """Check if Supabase storage credentials are set."""
        return all([
            self.supabase_url,
            self.supabase_service_role_key,
        ])

    @property
    def is_stripe_configured(self) -> bool:
        """Check if Stripe is properly configured."""
        return all([
            self.stripe_secret_key,
            self.stripe_webhook_secret,
        ])

    @property
    def is_apple_configured(self) -> bool:
        """Check if Sign in with Apple is configured."""
        return all([
            self.apple_client_id,
            self.apple_team_id,
            self.apple_key_id,
            self.apple_private_key,
        ])

    @property
    def stripe_price_ids(self) -> dict[str, str]:
        """Stripe price id for each paid tier."""
        return {
            "basic": self.stripe_price_id_basic,
            "pro": self.stripe_price_id_pro,
            "premium": self.stripe_price_id_premium,
        }

    @property
    def checkout_success_url(self) -> str:
        return f"{self.app_url}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def checkout_cancel_url(self) -> str:
        return f"{self.app_url}/subscription"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
