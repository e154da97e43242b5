"""
Per-account capacity reporting.
"""

import logging

from core.exceptions import AppException, StorageUnavailableError

from .base import AccountUsage, RemoteDrive
from .credentials import CredentialBroker

logger = logging.getLogger(__name__)


class CapacityReporter:
    """
    Report used/total space for every configured account.

    A failing account yields an entry with its error set; it never stops
    the remaining accounts from being reported.
    """

    def __init__(self, broker: CredentialBroker, drive: RemoteDrive):
        self.broker = broker
        self.drive = drive

    async def report(self, account_index: int) -> AccountUsage:
        account = self.broker.account(account_index)
        try:
            token = await self.broker.get_access_token(account_index)
            quota = await self.drive.get_quota(token)
        except AppException as e:
            logger.warning(f"Failed to read quota for account {account.name}: {e.message}")
            return AccountUsage(account=account.name, error=e.error_code)

        try:
            used = int(quota.get("used") or 0)
            total = int(quota.get("total") or 0)
        except (ValueError, TypeError):
            logger.warning(f"Unreadable quota for account {account.name}: {quota}")
            return AccountUsage(account=account.name, error=StorageUnavailableError.error_code)

        return AccountUsage(account=account.name, used=used, total=total)

    async def report_all(self) -> list[AccountUsage]:
        """Usage for all accounts in configuration order."""
        return [await self.report(i) for i in range(len(self.broker.accounts))]
