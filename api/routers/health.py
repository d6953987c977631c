"""
Health check endpoints.

Provides configuration health, liveness/readiness probes and a per-service
status report.
"""

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from api.schemas.common import (
    ComponentHealth,
    HealthCheckResponse,
    HealthStatus,
    StatusResponse,
)
from core.config import Settings, get_settings
from core.redis import RedisHealthCheck
from database import DatabaseHealthCheck
from services.providers import get_image_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

status_router = APIRouter(tags=["health"])

DEFAULT_SECRET_KEY = Settings.model_fields["secret_key"].default


def configuration_checks(settings: Settings) -> dict[str, bool]:
    """Which external integrations have their credentials set."""
    return {
        "supabase": settings.is_supabase_configured,
        "gemini": bool(settings.gemini_api_key),
        "jwt": settings.secret_key != DEFAULT_SECRET_KEY,
        "stripe": settings.is_stripe_configured,
    }


@router.get(
    "",
    response_model=HealthCheckResponse,
    summary="Health check",
    description="Database probe plus configuration checks.",
)
async def health_check(settings: Settings = Depends(get_settings)):
    """
    Health check.

    healthy when the database answers and every integration is configured,
    degraded otherwise. 503 if the check itself fails.
    """
    try:
        database = await DatabaseHealthCheck.check()
        db_status = "healthy" if database["status"] == "healthy" else "unhealthy"

        env_details = configuration_checks(settings)
        all_configured = all(env_details.values())

        return HealthCheckResponse(
            status=(
                HealthStatus.HEALTHY
                if db_status == "healthy" and all_configured
                else HealthStatus.DEGRADED
            ),
            version=settings.app_version,
            checks={
                "database": db_status,
                "environment": "configured" if all_configured else "incomplete",
                "envDetails": env_details,
            },
        )
    except Exception:
        logger.exception("Health check error")
        return JSONResponse(
            status_code=503,
            content={
                "status": HealthStatus.UNHEALTHY.value,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": "Health check failed",
            },
        )


@router.get(
    "/live",
    response_model=HealthCheckResponse,
    summary="Liveness check",
    description="Check if the application is alive.",
)
async def liveness_check(settings: Settings = Depends(get_settings)) -> HealthCheckResponse:
    """
    Liveness check for Kubernetes.

    Simple check that the application process is running.
    """
    return HealthCheckResponse(status=HealthStatus.HEALTHY, version=settings.app_version)


@router.get(
    "/ready",
    response_model=HealthCheckResponse,
    summary="Readiness check",
    description="Check if the application is ready to accept traffic.",
)
async def readiness_check(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> HealthCheckResponse:
    """
    Readiness check for Kubernetes.

    Verifies that the database and Redis are reachable.
    """
    database, redis = await asyncio.gather(
        DatabaseHealthCheck.check(),
        RedisHealthCheck.check(),
    )
    ready = database["status"] == "healthy" and redis["status"] == "healthy"
    if not ready:
        response.status_code = 503

    return HealthCheckResponse(
        status=HealthStatus.HEALTHY if ready else HealthStatus.UNHEALTHY,
        version=settings.app_version,
        checks={"database": database["status"], "redis": redis["status"]},
    )


# ============ Service Status ============


def _probe_to_component(probe: dict) -> ComponentHealth:
    """Map a database/redis probe result onto a service status."""
    return ComponentHealth(
        status="operational" if probe["status"] == "healthy" else "down",
        response_time_ms=probe.get("response_time_ms"),
        error=probe.get("error") or (
            "Not initialized" if probe["status"] == "not_initialized" else None
        ),
    )


async def check_gemini(settings: Settings) -> ComponentHealth:
    if not settings.gemini_api_key:
        return ComponentHealth(status="down", error="GEMINI_API_KEY not configured")

    probe = await get_image_provider().health_check()
    return ComponentHealth(
        status="operational" if probe["status"] == "healthy" else "degraded",
        response_time_ms=probe.get("response_time_ms"),
        error=probe.get("message"),
    )


def check_apple_auth(settings: Settings) -> ComponentHealth:
    if not settings.is_apple_configured:
        return ComponentHealth(status="down", error="Missing configuration")
    return ComponentHealth(status="operational")


def overall_status(services: dict[str, ComponentHealth]) -> HealthStatus:
    """unhealthy if anything is down, degraded if anything is degraded."""
    statuses = [s.status for s in services.values()]
    if "down" in statuses:
        return HealthStatus.UNHEALTHY
    if "degraded" in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


_STATUS_CODES = {
    HealthStatus.HEALTHY: 200,
    HealthStatus.DEGRADED: 206,
    HealthStatus.UNHEALTHY: 503,
}


@status_router.get(
    "/status",
    response_model=StatusResponse,
    summary="Service status",
    description="Status of the database, Redis, Gemini and Sign in with Apple.",
)
async def service_status(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> StatusResponse:
    """
    Per-service status report.

    HTTP 200 when healthy, 206 when degraded, 503 when any service is down.
    """
    database, redis, gemini = await asyncio.gather(
        DatabaseHealthCheck.check(),
        RedisHealthCheck.check(),
        check_gemini(settings),
    )

    services = {
        "database": _probe_to_component(database),
        "redis": _probe_to_component(redis),
        "gemini": gemini,
        "apple_auth": check_apple_auth(settings),
    }
    status = overall_status(services)
    response.status_code = _STATUS_CODES[status]

    if status != HealthStatus.HEALTHY:
        down = [name for name, s in services.items() if s.status != "operational"]
        logger.warning(f"Service status {status.value}: {', '.join(down)}")

    return StatusResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        services=services,
    )
