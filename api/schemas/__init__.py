"""
API schemas for request/response validation.
"""

from .common import ErrorDetail, ErrorResponse
from .health import (
    ComponentHealth,
    DetailedHealthCheckResponse,
    HealthCheckResponse,
    HealthStatus,
)
from .storage import AccountUsageResponse, StorageStatusResponse, UploadResponse

__all__ = [
    # Errors
    "ErrorDetail",
    "ErrorResponse",
    # Health
    "HealthStatus",
    "ComponentHealth",
    "HealthCheckResponse",
    "DetailedHealthCheckResponse",
    # Storage
    "UploadResponse",
    "AccountUsageResponse",
    "StorageStatusResponse",
]
