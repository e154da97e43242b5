"""
Object storage gateway.

This module wires the credential broker, placement policy, remote drive,
writer, reader and capacity reporter into one object for a configuration.
"""

import logging

from core.config import Settings, StorageAccount

from .base import AccountUsage, ObjectReference, RemoteDrive, StoreResult, UploadedBlob
from .capacity import CapacityReporter
from .credentials import CredentialBroker
from .onedrive import OneDriveClient
from .placement import PlacementStrategy, RoundRobinPlacement
from .reader import ObjectReader
from .writer import ObjectWriter

logger = logging.getLogger(__name__)


class ObjectGateway:
    """
    Multi-account object storage gateway.

    Routes writes across accounts and resolves references back to bytes.
    """

    def __init__(
        self,
        broker: CredentialBroker,
        drive: RemoteDrive,
        placement: PlacementStrategy | None = None,
        max_upload_bytes: int = 10 * 1024 * 1024,
        app_folder: str = "TaskShare",
        images_folder: str = "images",
    ):
        """
        Initialize the gateway.

        Args:
            broker: Credential broker for the configured accounts
            drive: Remote drive backend
            placement: Placement strategy, round-robin by default
            max_upload_bytes: Largest accepted upload
            app_folder: Top-level folder on every account
            images_folder: Subfolder that receives images
        """
        self.broker = broker
        self.drive = drive
        self.placement = placement or RoundRobinPlacement(len(broker.accounts))
        self.writer = ObjectWriter(
            broker,
            drive,
            self.placement,
            max_upload_bytes=max_upload_bytes,
            app_folder=app_folder,
            images_folder=images_folder,
        )
        self.reader = ObjectReader(broker, drive)
        self.reporter = CapacityReporter(broker, drive)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectGateway":
        broker = CredentialBroker(
            client_id=settings.onedrive_client_id or "",
            client_secret=settings.onedrive_client_secret or "",
            accounts=settings.storage_accounts,
            tenant_id=settings.onedrive_tenant_id,
            scope=settings.onedrive_scope,
            login_base_url=settings.login_base_url,
            timeout=settings.token_timeout,
            cache_ttl=settings.token_cache_ttl,
        )
        drive = OneDriveClient(
            graph_base_url=settings.graph_base_url,
            upload_timeout=settings.upload_timeout,
            request_timeout=settings.download_timeout,
        )
        return cls(
            broker,
            drive,
            max_upload_bytes=settings.max_upload_bytes,
            app_folder=settings.onedrive_app_folder,
            images_folder=settings.onedrive_images_folder,
        )

    @property
    def accounts(self) -> list[StorageAccount]:
        return self.broker.accounts

    @property
    def account_count(self) -> int:
        return len(self.broker.accounts)

    @property
    def is_configured(self) -> bool:
        return self.account_count > 0

    async def store(self, blob: UploadedBlob) -> StoreResult:
        return await self.writer.store(blob)

    async def fetch(self, account_index: int, item_id: str) -> bytes:
        return await self.reader.fetch(account_index, item_id)

    async def fetch_reference(self, reference: ObjectReference) -> bytes:
        return await self.reader.fetch_reference(reference)

    async def delete(self, reference: ObjectReference) -> bool:
        return await self.reader.delete(reference.account_index, reference.item_id)

    async def report_all(self) -> list[AccountUsage]:
        return await self.reporter.report_all()

    async def aclose(self) -> None:
        await self.drive.aclose()
        await self.broker.aclose()
