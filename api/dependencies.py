"""
FastAPI dependency injection for storage services.
"""

from services.storage import ObjectGateway, UploadIngress, get_object_gateway, get_upload_ingress


def get_ingress() -> UploadIngress:
    """Get UploadIngress dependency."""
    return get_upload_ingress()


def get_gateway() -> ObjectGateway | None:
    """
    Get ObjectGateway dependency.

    Returns None if remote storage is not configured.
    """
    return get_object_gateway()
