"""
Upload ingress.

Entry point for callers that need to store or read an image by locator.
Prefers the remote gateway and falls back to local disk, so an upload only
fails when neither destination can keep the file.
"""

import logging
import random
import time
from dataclasses import dataclass

from core.exceptions import ObjectNotFoundError

from .base import ObjectReference, UploadedBlob, sniff_content_type, validate_blob
from .gateway import ObjectGateway
from .local import LocalBlobStore

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Where an upload ended up."""

    locator: str
    backend: str  # onedrive or local
    account: str | None = None


@dataclass
class ResolvedObject:
    """Bytes behind a locator."""

    data: bytes
    content_type: str


def generate_filename(original_name: str) -> str:
    """Unique stored name that keeps the original extension."""
    suffix = ""
    if "." in original_name:
        suffix = "." + original_name.rsplit(".", 1)[1].lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


class UploadIngress:
    """Store uploads remotely when possible, locally otherwise."""

    def __init__(
        self,
        local_store: LocalBlobStore,
        gateway: ObjectGateway | None = None,
        max_upload_bytes: int = 10 * 1024 * 1024,
    ):
        self.local_store = local_store
        self.gateway = gateway
        self.max_upload_bytes = max_upload_bytes

    @property
    def remote_enabled(self) -> bool:
        return self.gateway is not None and self.gateway.is_configured

    async def ingest(self, blob: UploadedBlob) -> IngestResult:
        """
        Store an uploaded image and return its locator.

        Raises:
            PayloadTooLargeError: If the blob exceeds the size limit
            UnsupportedMediaTypeError: If the blob is not an allowed image
            StorageError: If remote storage failed and the local write failed too
        """
        validate_blob(blob, self.max_upload_bytes)

        stored = UploadedBlob(
            data=blob.data,
            filename=generate_filename(blob.filename),
            content_type=blob.content_type,
        )

        if not self.remote_enabled:
            locator = await self.local_store.save(stored.filename, stored.data)
            logger.info(f"Using local storage (remote storage not configured): {locator}")
            return IngestResult(locator=locator, backend=self.local_store.name)

        try:
            result = await self.gateway.store(stored)
        except Exception as e:
            logger.error(f"Remote upload raised, falling back to local storage: {e}")
        else:
            if result.success:
                return IngestResult(
                    locator=result.locator,
                    backend=self.gateway.drive.name,
                    account=result.account_name,
                )
            logger.warning(
                f"Remote upload failed after {result.attempts} attempt(s), "
                f"falling back to local storage: {result.error.message}"
            )

        locator = await self.local_store.save(stored.filename, stored.data)
        logger.info(f"Image saved to local storage: {locator}")
        return IngestResult(locator=locator, backend=self.local_store.name)

    async def resolve(self, locator: str) -> ResolvedObject:
        """
        Load the bytes behind a locator.

        Raises:
            ObjectNotFoundError: If the locator cannot be resolved
            StorageAuthenticationError: If the owning account cannot authenticate
            StorageUnavailableError: On transient remote failures
        """
        reference = ObjectReference.from_locator(locator)
        if reference is not None:
            if self.gateway is None:
                raise ObjectNotFoundError(message="Remote storage not configured")
            data = await self.gateway.fetch_reference(reference)
            return ResolvedObject(data=data, content_type=sniff_content_type(data))

        filename = self.local_store.filename_from_locator(locator)
        if filename is not None:
            data = await self.local_store.load(filename)
            if data is not None:
                return ResolvedObject(data=data, content_type=sniff_content_type(data, filename))

        raise ObjectNotFoundError(details={"locator": locator})

    async def discard(self, locator: str) -> bool:
        """
        Delete the object behind a locator.

        Called by the owner of the locator when it drops its record.

        Returns:
            True if something was deleted
        """
        reference = ObjectReference.from_locator(locator)
        if reference is not None:
            if self.gateway is None:
                return False
            try:
                return await self.gateway.delete(reference)
            except ObjectNotFoundError:
                return False

        filename = self.local_store.filename_from_locator(locator)
        if filename is not None:
            return await self.local_store.delete(filename)
        return False
