"""
FastAPI application entry point.

This is the main entry point for the NanoBanana API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import RequestContextMiddleware, setup_exception_handlers
from api.routers import (
    auth_router,
    chat_router,
    generate_router,
    health_router,
    images_router,
    status_router,
    stripe_router,
    subscription_router,
    upload_router,
    user_router,
)
from core.config import get_settings
from core.redis import close_redis, init_redis
from database import close_database, init_database

# Configure logging
_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format=_settings.log_format,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()

    # ============ Startup ============
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    # Initialize Redis
    try:
        await init_redis()
        logger.info("Redis initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize Redis: {e}")
        raise

    # Initialize Database
    if settings.is_database_configured:
        try:
            await init_database()
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            # Don't raise - health endpoints report the database as down
    else:
        logger.warning("DATABASE_URL not configured, API endpoints will return 503")

    logger.info("Application startup complete")

    yield

    # ============ Shutdown ============
    logger.info("Shutting down application...")

    # Close Redis
    await close_redis()

    # Close Database
    await close_database()

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Credit-metered AI image editing API with Apple/Google sign-in and subscriptions",
        version=settings.app_version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # ============ Middleware ============

    # Request id, request logging, cross-origin isolation headers
    app.add_middleware(RequestContextMiddleware)

    # CORS (outermost, so preflight responses carry the headers too)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    # ============ Exception Handlers ============
    setup_exception_handlers(app)

    # ============ Routers ============

    # Health check and service status
    app.include_router(health_router, prefix="/api")
    app.include_router(status_router, prefix="/api")

    # Authentication
    app.include_router(auth_router, prefix="/api")

    # Image generation
    app.include_router(generate_router, prefix="/api")

    # Chat history
    app.include_router(chat_router, prefix="/api")

    # Profile, credits and generation history
    app.include_router(user_router, prefix="/api")

    # Input image uploads
    app.include_router(upload_router, prefix="/api")

    # Image serving (for local storage proxy)
    app.include_router(images_router, prefix="/api")

    # Stripe subscriptions
    app.include_router(stripe_router, prefix="/api")

    # App Store subscriptions
    app.include_router(subscription_router, prefix="/api")

    # ============ Root Endpoint ============

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if not settings.is_production else None,
            "health": "/api/health",
        }

    return app


# Create application instance
app = create_app()


def run():
    """Run the application with uvicorn (for development)."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
