"""
Object writer.

Places an upload on one of the configured accounts, failing over to the
remaining accounts when authentication, provisioning or the upload itself
fails. Each account is tried at most once per upload.
"""

import logging

from core.exceptions import (
    ObjectNotFoundError,
    StorageAuthenticationError,
    StorageUnavailableError,
)

from .base import AccessToken, ObjectReference, RemoteDrive, StoreResult, UploadedBlob, validate_blob
from .credentials import CredentialBroker
from .placement import PlacementStrategy

logger = logging.getLogger(__name__)

# Failures that move the upload on to the next account
_RETRYABLE = (StorageAuthenticationError, StorageUnavailableError, ObjectNotFoundError)


class ObjectWriter:
    """Write uploads to remote drive accounts."""

    def __init__(
        self,
        broker: CredentialBroker,
        drive: RemoteDrive,
        placement: PlacementStrategy,
        max_upload_bytes: int,
        app_folder: str = "TaskShare",
        images_folder: str = "images",
    ):
        self.broker = broker
        self.drive = drive
        self.placement = placement
        self.max_upload_bytes = max_upload_bytes
        self.app_folder = app_folder.strip("/")
        self.images_folder = images_folder.strip("/")

    @property
    def folder_path(self) -> str:
        return f"{self.app_folder}/{self.images_folder}"

    def _next_untried(self, tried: set[int]) -> int:
        """
        Ask placement for the next account, skipping ones already tried.

        Concurrent uploads share the cursor, so placement may hand back an
        account this upload has already tried; walk forward from it instead.
        """
        count = self.placement.account_count
        index = self.placement.next_account()
        for offset in range(count):
            candidate = (index + offset) % count
            if candidate not in tried:
                return candidate
        return index

    async def ensure_folder(self, token: AccessToken, path: str) -> None:
        """
        Make sure a folder exists, creating it when missing.

        Safe to call repeatedly and concurrently; an existing folder is
        left as is.
        """
        path = path.strip("/")
        if await self.drive.get_item(token, path) is not None:
            return

        parent, _, name = path.rpartition("/")
        await self.drive.create_folder(token, parent, name)
        logger.info(f"Created folder {path} on account {token.account_index}")

    async def provision(self, token: AccessToken) -> None:
        """Ensure the app root and images folders exist."""
        await self.ensure_folder(token, self.app_folder)
        await self.ensure_folder(token, self.folder_path)

    async def _store_on(self, account_index: int, blob: UploadedBlob) -> ObjectReference:
        token = await self.broker.get_access_token(account_index)
        try:
            await self.provision(token)
            item = await self.drive.upload(
                token,
                f"{self.folder_path}/{blob.filename}",
                blob.data,
                blob.content_type,
            )
        except StorageAuthenticationError:
            self.broker.invalidate(account_index)
            raise
        return ObjectReference(account_index=account_index, item_id=item["id"])

    async def store(self, blob: UploadedBlob) -> StoreResult:
        """
        Store an upload on the next account in placement order.

        Args:
            blob: The uploaded image

        Returns:
            StoreResult with the reference, or with StorageUnavailableError
            once every account has failed

        Raises:
            PayloadTooLargeError: If the blob exceeds the size limit
            UnsupportedMediaTypeError: If the blob is not an allowed image
        """
        validate_blob(blob, self.max_upload_bytes)

        count = self.placement.account_count
        if count == 0:
            return StoreResult(
                success=False,
                error=StorageUnavailableError(message="No storage accounts configured"),
            )

        tried: set[int] = set()
        last_error = None

        while len(tried) < count:
            account_index = self._next_untried(tried)
            tried.add(account_index)
            account_name = self.broker.account(account_index).name

            try:
                reference = await self._store_on(account_index, blob)
            except _RETRYABLE as e:
                last_error = e
                logger.warning(
                    f"Upload failed for account {account_name}: {e.message}"
                    + (", retrying with next account" if len(tried) < count else "")
                )
                continue

            logger.info(f"Image uploaded to account {account_name}: {reference.to_locator()}")
            return StoreResult(
                success=True,
                reference=reference,
                account_name=account_name,
                attempts=len(tried),
            )

        logger.error(f"All {count} storage accounts failed to upload {blob.filename}")
        return StoreResult(
            success=False,
            error=StorageUnavailableError(
                message="All storage accounts failed to upload image",
                details={
                    "attempts": len(tried),
                    "last_error": last_error.error_code if last_error else None,
                },
            ),
            attempts=len(tried),
        )
