"""
Multi-account image storage for TaskShare.

Uploads are distributed round-robin over the configured OneDrive accounts,
with failover between accounts and a local disk fallback.

Usage:
    from services.storage import get_upload_ingress

    ingress = get_upload_ingress()

    # Store an upload, returns a locator to keep with the task
    result = await ingress.ingest(UploadedBlob(data, "photo.jpg", "image/jpeg"))

    # Later, read it back
    resolved = await ingress.resolve(result.locator)
"""

from core.config import get_settings

from .base import (
    LOCAL_LOCATOR_PREFIX,
    OBJECT_LOCATOR_PREFIX,
    AccessToken,
    AccountUsage,
    ObjectReference,
    RemoteDrive,
    StoreResult,
    UploadedBlob,
)
from .capacity import CapacityReporter
from .credentials import CredentialBroker
from .gateway import ObjectGateway
from .ingress import IngestResult, ResolvedObject, UploadIngress
from .local import LocalBlobStore
from .onedrive import OneDriveClient
from .placement import PlacementStrategy, RoundRobinPlacement
from .reader import ObjectReader
from .writer import ObjectWriter

# Process-wide instances, created on first use
_gateway: ObjectGateway | None = None
_ingress: UploadIngress | None = None


def get_object_gateway() -> ObjectGateway | None:
    """
    Get the shared gateway.

    Returns:
        ObjectGateway, or None when remote storage is not configured
    """
    global _gateway

    settings = get_settings()
    if not settings.is_gateway_configured:
        return None

    if _gateway is None:
        _gateway = ObjectGateway.from_settings(settings)
    return _gateway


def get_upload_ingress() -> UploadIngress:
    """Get the shared upload ingress."""
    global _ingress

    if _ingress is None:
        settings = get_settings()
        _ingress = UploadIngress(
            local_store=LocalBlobStore(settings.local_upload_path),
            gateway=get_object_gateway(),
            max_upload_bytes=settings.max_upload_bytes,
        )
    return _ingress


async def close_storage() -> None:
    """Close network clients and drop the shared instances."""
    global _gateway, _ingress

    if _gateway is not None:
        await _gateway.aclose()
    _gateway = None
    _ingress = None


def reset_storage() -> None:
    """Drop the shared instances without closing them (mainly for testing)."""
    global _gateway, _ingress
    _gateway = None
    _ingress = None


__all__ = [
    # Data types
    "AccessToken",
    "AccountUsage",
    "IngestResult",
    "ObjectReference",
    "ResolvedObject",
    "StoreResult",
    "UploadedBlob",
    "OBJECT_LOCATOR_PREFIX",
    "LOCAL_LOCATOR_PREFIX",
    # Components
    "CapacityReporter",
    "CredentialBroker",
    "LocalBlobStore",
    "ObjectGateway",
    "ObjectReader",
    "ObjectWriter",
    "OneDriveClient",
    "PlacementStrategy",
    "RemoteDrive",
    "RoundRobinPlacement",
    "UploadIngress",
    # Factory functions
    "get_object_gateway",
    "get_upload_ingress",
    "close_storage",
    "reset_storage",
]
