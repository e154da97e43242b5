"""
Core modules for the TaskShare storage gateway.

This package contains fundamental utilities used across the application:
- config: Application settings and configuration
- exceptions: Custom exception classes
"""

from .config import Settings, StorageAccount, get_settings
from .exceptions import (
    AppException,
    NotFoundError,
    ObjectNotFoundError,
    PayloadTooLargeError,
    StorageAuthenticationError,
    StorageError,
    StorageUnavailableError,
    UnsupportedMediaTypeError,
    ValidationError,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    "StorageAccount",
    # Exceptions
    "AppException",
    "NotFoundError",
    "ObjectNotFoundError",
    "ValidationError",
    "StorageAuthenticationError",
    "StorageUnavailableError",
    "UnsupportedMediaTypeError",
    "PayloadTooLargeError",
    "StorageError",
]
