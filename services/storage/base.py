"""
Storage data types and the remote drive interface.

This module defines the values passed between the gateway components and
the interface that every remote drive backend must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from pathlib import PurePosixPath
from typing import Any

from PIL import Image, UnidentifiedImageError

from core.exceptions import (
    AppException,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)

# Locators handed out by the gateway start with this prefix
OBJECT_LOCATOR_PREFIX = "/api/objects/"
# Locators for files written by the local fallback
LOCAL_LOCATOR_PREFIX = "/uploads/"

ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
ALLOWED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})

_EXTENSION_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class AccessToken:
    """Short-lived bearer token for one account."""

    value: str
    account_index: int
    expires_in: int = 0

    def __repr__(self) -> str:
        return f"AccessToken(account_index={self.account_index}, expires_in={self.expires_in})"


@dataclass(frozen=True)
class ObjectReference:
    """
    Durable pointer to an object on one account.

    Serialized as a resolvable path rather than a provider share link,
    so reads always go back through the gateway and re-authenticate.
    """

    account_index: int
    item_id: str

    def to_locator(self) -> str:
        return f"{OBJECT_LOCATOR_PREFIX}{self.account_index}/{self.item_id}"

    @classmethod
    def from_locator(cls, locator: str) -> "ObjectReference | None":
        """
        Parse a gateway locator.

        Returns:
            ObjectReference or None if the locator is not a gateway locator
        """
        if not locator.startswith(OBJECT_LOCATOR_PREFIX):
            return None

        parts = locator[len(OBJECT_LOCATOR_PREFIX):].split("/")
        if len(parts) != 2 or not (parts[0].isascii() and parts[0].isdigit()) or not parts[1]:
            return None

        return cls(account_index=int(parts[0]), item_id=parts[1])


@dataclass
class UploadedBlob:
    """In-memory upload for the duration of one request."""

    data: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename).suffix.lower()


@dataclass
class AccountUsage:
    """Quota usage of one account, or the reason it could not be read."""

    account: str
    used: int | None = None
    total: int | None = None
    error: str | None = None

    @property
    def used_display(self) -> str:
        return "Error" if self.used is None else format_bytes(self.used)

    @property
    def total_display(self) -> str:
        return "Error" if self.total is None else format_bytes(self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "used": self.used_display,
            "total": self.total_display,
            "used_bytes": self.used,
            "total_bytes": self.total,
            "error": self.error,
        }


@dataclass
class StoreResult:
    """Outcome of an object write."""

    success: bool
    reference: ObjectReference | None = None
    account_name: str | None = None
    error: AppException | None = None
    attempts: int = 0

    @property
    def locator(self) -> str | None:
        return self.reference.to_locator() if self.reference else None


def validate_blob(blob: UploadedBlob, max_bytes: int) -> None:
    """
    Reject client input errors before any network call.

    Raises:
        PayloadTooLargeError: If the blob exceeds max_bytes
        UnsupportedMediaTypeError: If the type or extension is not an allowed image
    """
    if blob.size > max_bytes:
        raise PayloadTooLargeError(
            message=f"File exceeds the {max_bytes} byte limit",
            details={"size": blob.size, "limit": max_bytes},
        )

    content_type = (blob.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES or blob.extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedMediaTypeError(
            details={"content_type": blob.content_type, "filename": blob.filename},
        )


def format_bytes(size: int) -> str:
    """Format a byte count for display, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    i = 0
    while size >= 1024 ** (i + 1) and i < len(units) - 1:
        i += 1
    value = round(size / 1024**i, 2)
    return f"{value:g} {units[i]}"


def sniff_content_type(data: bytes, filename: str | None = None) -> str:
    """
    Determine the MIME type of stored image bytes.

    Falls back to the filename extension, then to a generic binary type.
    """
    try:
        with Image.open(BytesIO(data)) as image:
            mime = Image.MIME.get(image.format or "")
            if mime:
                return mime
    except (UnidentifiedImageError, OSError):
        pass

    if filename:
        mime = _EXTENSION_CONTENT_TYPES.get(PurePosixPath(filename).suffix.lower())
        if mime:
            return mime

    return "application/octet-stream"


class RemoteDrive(ABC):
    """
    Interface to a remote drive account.

    Every call takes the bearer token for the account it targets.
    Implementations convert provider failures into
    StorageAuthenticationError, StorageUnavailableError or ObjectNotFoundError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name."""
        pass

    @abstractmethod
    async def get_item(self, token: AccessToken, path: str) -> dict[str, Any] | None:
        """
        Get item metadata by drive path.

        Returns:
            Item metadata or None if the path does not exist
        """
        pass

    @abstractmethod
    async def create_folder(self, token: AccessToken, parent_path: str, name: str) -> dict[str, Any]:
        """
        Create a folder under parent_path.

        Creating a folder that already exists must not raise.
        """
        pass

    @abstractmethod
    async def upload(
        self,
        token: AccessToken,
        path: str,
        data: bytes,
        content_type: str,
    ) -> dict[str, Any]:
        """
        Upload bytes to a drive path.

        Returns:
            Item metadata including the provider item id under "id"
        """
        pass

    @abstractmethod
    async def download(self, token: AccessToken, item_id: str) -> bytes:
        """Download the raw bytes of an item."""
        pass

    @abstractmethod
    async def delete(self, token: AccessToken, item_id: str) -> bool:
        """
        Delete an item.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def get_quota(self, token: AccessToken) -> dict[str, Any]:
        """Get drive quota with at least "used" and "total" byte counts."""
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        return None
