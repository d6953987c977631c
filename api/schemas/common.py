"""
Common Pydantic schemas used across the API.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Error detail for API responses."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )


class ErrorResponse(BaseModel):
    """Envelope for every failed request."""

    success: bool = False
    error: ErrorDetail


class HealthStatus(str, Enum):
    """Health check status enum."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    status: str
    response_time_ms: Optional[float] = None
    error: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class HealthCheckResponse(BaseModel):
    """Health check response with configuration checks."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str
    checks: Dict[str, Any] = Field(default_factory=dict)


class StatusResponse(BaseModel):
    """Per-service status report."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str
    environment: str
    services: Dict[str, ComponentHealth] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
    success: bool = True
