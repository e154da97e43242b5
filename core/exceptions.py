"""
Exception hierarchy for the storage gateway.

Every error carries a machine-readable code and the HTTP status the API
answers with. Storage failures share the StorageError base so callers can
tell them apart from client input errors.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors."""

    error_code: str = "internal_error"
    message: str = "An unexpected error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = dict(details or {})
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Error body for API responses; details only when present."""
        body: dict[str, Any] = {"code": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


# ============ Client Errors ============


class ValidationError(AppException):
    error_code = "validation_error"
    message = "Invalid input"
    status_code = 422


class NotFoundError(AppException):
    error_code = "not_found"
    message = "Resource not found"
    status_code = 404


class ObjectNotFoundError(NotFoundError):
    """A locator points at nothing: unknown account, deleted item or missing file."""

    error_code = "object_not_found"
    message = "Image not found"


class UnsupportedMediaTypeError(AppException):
    error_code = "unsupported_media_type"
    message = "Only image files are allowed"
    status_code = 415


class PayloadTooLargeError(AppException):
    error_code = "payload_too_large"
    message = "File too large"
    status_code = 413


# ============ Storage Errors ============


class StorageError(AppException):
    """
    Base for storage failures.

    Raised directly when neither remote nor local storage could keep a file.
    The account_index, when given, is recorded in details so the API response
    says which account failed.
    """

    error_code = "storage_error"
    message = "Storage operation failed"
    status_code = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        account_index: int | None = None,
    ):
        super().__init__(message=message, error_code=error_code, details=details)
        if account_index is not None:
            self.details["account_index"] = account_index

    @property
    def account_index(self) -> int | None:
        return self.details.get("account_index")


class StorageAuthenticationError(StorageError):
    """An account's refresh token was rejected, or the account does not exist."""

    error_code = "storage_authentication_failed"
    message = "Storage account authentication failed"
    status_code = 502


class StorageUnavailableError(StorageError):
    """Remote storage timed out, was unreachable or answered with a server error."""

    error_code = "storage_unavailable"
    message = "Remote storage unavailable"
    status_code = 503
