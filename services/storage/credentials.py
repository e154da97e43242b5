"""
Credential broker for remote drive accounts.

Exchanges each account's long-lived refresh token for a short-lived
access token using the OAuth2 refresh_token grant.
"""

import logging
import threading
import time

import httpx

from core.config import StorageAccount
from core.exceptions import StorageAuthenticationError, StorageUnavailableError

from .base import AccessToken

logger = logging.getLogger(__name__)


class CredentialBroker:
    """
    Obtain access tokens for configured accounts.

    Tokens are fetched fresh for every operation unless a positive
    cache_ttl is given. Cached entries are dropped on any failed exchange
    and whenever a caller reports the token as rejected.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        accounts: list[StorageAccount],
        tenant_id: str = "common",
        scope: str = "https://graph.microsoft.com/Files.ReadWrite.All offline_access",
        login_base_url: str = "https://login.microsoftonline.com",
        timeout: float = 15.0,
        cache_ttl: int = 0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.accounts = list(accounts)
        self.tenant_id = tenant_id
        self.scope = scope
        self.login_base_url = login_base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None
        self._cache: dict[int, tuple[AccessToken, float]] = {}
        self._cache_lock = threading.Lock()

    @property
    def token_url(self) -> str:
        return f"{self.login_base_url}/{self.tenant_id}/oauth2/v2.0/token"

    def account(self, account_index: int) -> StorageAccount:
        """
        Get the account at an index.

        Raises:
            StorageAuthenticationError: If the index is not configured
        """
        if account_index < 0 or account_index >= len(self.accounts):
            raise StorageAuthenticationError(
                message=f"No storage account at index {account_index}",
                account_index=account_index,
            )
        return self.accounts[account_index]

    async def get_access_token(self, account_index: int) -> AccessToken:
        """
        Exchange the account's refresh token for an access token.

        Args:
            account_index: Index into the configured account list

        Returns:
            AccessToken for that account

        Raises:
            StorageAuthenticationError: If the exchange is rejected
            StorageUnavailableError: If the identity provider is unreachable
        """
        account = self.account(account_index)

        cached = self._get_cached(account_index)
        if cached:
            return cached

        try:
            response = await self._client.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": account.refresh_secret,
                    "grant_type": "refresh_token",
                    "scope": self.scope,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            self.invalidate(account_index)
            logger.warning(f"Token exchange timed out for account {account.name}")
            raise StorageUnavailableError(
                message=f"Token exchange timed out for account {account.name}",
                account_index=account_index,
            ) from e
        except httpx.HTTPError as e:
            self.invalidate(account_index)
            logger.warning(f"Token exchange failed for account {account.name}: {e}")
            raise StorageUnavailableError(
                message=f"Token exchange failed for account {account.name}",
                account_index=account_index,
            ) from e

        if response.status_code >= 500:
            self.invalidate(account_index)
            logger.warning(
                f"Identity provider error for account {account.name}: {response.status_code}"
            )
            raise StorageUnavailableError(
                message=f"Identity provider unavailable for account {account.name}",
                account_index=account_index,
                details={"status_code": response.status_code},
            )

        if response.status_code != 200:
            self.invalidate(account_index)
            logger.error(
                f"Failed to get access token for account {account.name}: {response.status_code}"
            )
            raise StorageAuthenticationError(
                message=f"Authentication failed for storage account {account.name}",
                account_index=account_index,
                details={"status_code": response.status_code},
            )

        try:
            payload = response.json()
            value = payload["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            self.invalidate(account_index)
            raise StorageAuthenticationError(
                message=f"Token response for account {account.name} has no access token",
                account_index=account_index,
            ) from e

        token = AccessToken(
            value=value,
            account_index=account_index,
            expires_in=int(payload.get("expires_in", 0) or 0),
        )
        self._put_cached(token)
        return token

    def invalidate(self, account_index: int) -> None:
        """Drop any cached token for an account."""
        with self._cache_lock:
            self._cache.pop(account_index, None)

    def _get_cached(self, account_index: int) -> AccessToken | None:
        if self.cache_ttl <= 0:
            return None
        with self._cache_lock:
            entry = self._cache.get(account_index)
            if entry is None:
                return None
            token, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._cache[account_index]
                return None
            return token

    def _put_cached(self, token: AccessToken) -> None:
        if self.cache_ttl <= 0:
            return
        ttl = self.cache_ttl
        if token.expires_in:
            # Keep a minute of headroom before the provider's own expiry
            ttl = min(ttl, max(token.expires_in - 60, 0))
        if ttl <= 0:
            return
        with self._cache_lock:
            self._cache[token.account_index] = (token, time.monotonic() + ttl)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
