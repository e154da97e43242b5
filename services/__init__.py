"""
Services module for the TaskShare storage gateway.
"""
from .storage import UploadIngress, get_object_gateway, get_upload_ingress

__all__ = ["UploadIngress", "get_object_gateway", "get_upload_ingress"]
