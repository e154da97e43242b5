"""
Health check schemas.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # serving, but uploads only go to local disk
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Status of one storage destination."""

    status: HealthStatus
    error: Optional[str] = None
    details: Optional[dict[str, Any]] = None


class HealthCheckResponse(BaseModel):
    status: HealthStatus
    timestamp: datetime = Field(default_factory=_utcnow)


class DetailedHealthCheckResponse(HealthCheckResponse):
    """Health of the remote accounts and the local fallback directory."""

    version: str
    environment: str
    uptime_seconds: float
    components: dict[str, ComponentHealth] = Field(
        default_factory=dict,
        description="Keyed by remote_storage and local_storage",
    )
