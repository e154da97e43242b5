"""
Object reader.

Resolves a stored reference back to bytes on the account recorded at
write time. Reads never round-robin.
"""

import logging

from core.exceptions import ObjectNotFoundError

from .base import ObjectReference, RemoteDrive
from .credentials import CredentialBroker

logger = logging.getLogger(__name__)


class ObjectReader:
    """Fetch objects from the account they were written to."""

    def __init__(self, broker: CredentialBroker, drive: RemoteDrive):
        self.broker = broker
        self.drive = drive

    def _check_account(self, account_index: int, item_id: str) -> None:
        if account_index < 0 or account_index >= len(self.broker.accounts):
            # Account removed from configuration after the upload
            raise ObjectNotFoundError(
                details={"account_index": account_index, "item_id": item_id},
            )

    async def fetch(self, account_index: int, item_id: str) -> bytes:
        """
        Download an object's bytes.

        Raises:
            ObjectNotFoundError: If the account or object no longer exists
            StorageAuthenticationError: If the account's token exchange fails
            StorageUnavailableError: On transient provider errors
        """
        self._check_account(account_index, item_id)

        token = await self.broker.get_access_token(account_index)
        data = await self.drive.download(token, item_id)
        logger.debug(f"Fetched {item_id} from account {account_index} ({len(data)} bytes)")
        return data

    async def fetch_reference(self, reference: ObjectReference) -> bytes:
        return await self.fetch(reference.account_index, reference.item_id)

    async def delete(self, account_index: int, item_id: str) -> bool:
        """
        Delete an object from its account.

        Returns:
            True if deleted, False if it was already gone
        """
        self._check_account(account_index, item_id)

        token = await self.broker.get_access_token(account_index)
        deleted = await self.drive.delete(token, item_id)
        if deleted:
            logger.info(f"Deleted {item_id} from account {account_index}")
        return deleted
