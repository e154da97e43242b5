"""
Health check endpoints.

Uploads never fail while the local fallback directory is writable, so
readiness only depends on local disk. Missing remote accounts degrade the
service but do not take it down.
"""

import os
import time

from fastapi import APIRouter, Depends

from api.dependencies import get_ingress
from api.schemas.health import (
    ComponentHealth,
    DetailedHealthCheckResponse,
    HealthCheckResponse,
    HealthStatus,
)
from core.config import get_settings, Settings
from services.storage import UploadIngress

router = APIRouter(prefix="/health", tags=["health"])

# Track application start time for uptime calculation
_start_time = time.time()


def _local_storage_writable(ingress: UploadIngress) -> bool:
    base_path = ingress.local_store.base_path
    return base_path.is_dir() and os.access(base_path, os.W_OK)


def _remote_component(ingress: UploadIngress) -> ComponentHealth:
    if not ingress.remote_enabled:
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            error="Remote storage not configured, using local storage",
        )
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        details={
            "backend": ingress.gateway.drive.name,
            "accounts": ingress.gateway.account_count,
        },
    )


def _local_component(ingress: UploadIngress) -> ComponentHealth:
    if not _local_storage_writable(ingress):
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            error="Upload directory is not writable",
        )
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        details={"path": str(ingress.local_store.base_path)},
    )


@router.get(
    "",
    response_model=HealthCheckResponse,
    summary="Basic health check",
    description="Quick health check endpoint for load balancers and container orchestration.",
)
async def health_check() -> HealthCheckResponse:
    return HealthCheckResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/detailed",
    response_model=DetailedHealthCheckResponse,
    summary="Detailed health check",
    description="Status of remote storage accounts and the local fallback directory.",
)
async def detailed_health_check(
    settings: Settings = Depends(get_settings),
    ingress: UploadIngress = Depends(get_ingress),
) -> DetailedHealthCheckResponse:
    """
    Detailed health check with component status.

    The overall status is the worst component status. Account quotas are
    not queried here; use /api/storage/status for that.
    """
    components = {
        "remote_storage": _remote_component(ingress),
        "local_storage": _local_component(ingress),
    }

    statuses = {c.status for c in components.values()}
    if HealthStatus.UNHEALTHY in statuses:
        overall_status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return DetailedHealthCheckResponse(
        status=overall_status,
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _start_time, 2),
        components=components,
    )


@router.get(
    "/ready",
    response_model=HealthCheckResponse,
    summary="Readiness check",
    description="Check if the application is ready to accept uploads.",
)
async def readiness_check(
    ingress: UploadIngress = Depends(get_ingress),
) -> HealthCheckResponse:
    """Readiness check for Kubernetes."""
    if _local_storage_writable(ingress):
        return HealthCheckResponse(status=HealthStatus.HEALTHY)
    return HealthCheckResponse(status=HealthStatus.UNHEALTHY)


@router.get(
    "/live",
    response_model=HealthCheckResponse,
    summary="Liveness check",
    description="Check if the application is alive.",
)
async def liveness_check() -> HealthCheckResponse:
    """Liveness check for Kubernetes."""
    return HealthCheckResponse(status=HealthStatus.HEALTHY)
