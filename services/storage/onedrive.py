"""
OneDrive remote drive backend.

Talks to the Microsoft Graph drive API with a bearer token per call.
HTTP failures are mapped onto the storage error taxonomy so callers
never see raw httpx exceptions.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from core.exceptions import (
    ObjectNotFoundError,
    StorageAuthenticationError,
    StorageUnavailableError,
)

from .base import AccessToken, RemoteDrive

logger = logging.getLogger(__name__)


class OneDriveClient(RemoteDrive):
    """Microsoft Graph (OneDrive) drive client."""

    def __init__(
        self,
        graph_base_url: str = "https://graph.microsoft.com/v1.0",
        upload_timeout: float = 30.0,
        request_timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the OneDrive client.

        Args:
            graph_base_url: Graph API root
            upload_timeout: Timeout in seconds for content uploads
            request_timeout: Timeout in seconds for metadata calls and downloads
            http_client: Optional shared httpx client
        """
        self.graph_base_url = graph_base_url.rstrip("/")
        self.upload_timeout = upload_timeout
        self.request_timeout = request_timeout
        self._client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None

    @property
    def name(self) -> str:
        """Backend name."""
        return "onedrive"

    @property
    def drive_url(self) -> str:
        return f"{self.graph_base_url}/me/drive"

    def _headers(self, token: AccessToken, **extra: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token.value}", **extra}

    async def _request(
        self,
        method: str,
        url: str,
        token: AccessToken,
        operation: str,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, converting transport failures to StorageUnavailableError."""
        try:
            return await self._client.request(
                method,
                url,
                timeout=timeout or self.request_timeout,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"OneDrive {operation} timed out (account {token.account_index})")
            raise StorageUnavailableError(
                message=f"OneDrive {operation} timed out",
                account_index=token.account_index,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"OneDrive {operation} failed (account {token.account_index}): {e}")
            raise StorageUnavailableError(
                message=f"OneDrive {operation} failed",
                account_index=token.account_index,
            ) from e

    def _raise_for_status(self, response: httpx.Response, token: AccessToken, operation: str) -> None:
        """Map a non-success response onto the storage error taxonomy."""
        if response.is_success:
            return

        details = {"account_index": token.account_index, "status_code": response.status_code}

        if response.status_code == 404:
            raise ObjectNotFoundError(details=details)
        if response.status_code in (401, 403):
            raise StorageAuthenticationError(
                message=f"OneDrive rejected the token during {operation}",
                details=details,
            )

        logger.warning(
            f"OneDrive {operation} returned {response.status_code} (account {token.account_index})"
        )
        raise StorageUnavailableError(
            message=f"OneDrive {operation} returned {response.status_code}",
            details=details,
        )

    def _json(self, response: httpx.Response, token: AccessToken, operation: str) -> dict[str, Any]:
        """Decode a success body, treating anything but a JSON object as a provider failure."""
        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"OneDrive {operation} returned a non-JSON body (account {token.account_index})")
            raise StorageUnavailableError(
                message=f"OneDrive {operation} returned an unreadable response",
                account_index=token.account_index,
            ) from e
        if not isinstance(payload, dict):
            raise StorageUnavailableError(
                message=f"OneDrive {operation} returned an unexpected response",
                account_index=token.account_index,
            )
        return payload

    def _path_url(self, path: str) -> str:
        path = path.strip("/")
        if not path:
            return f"{self.drive_url}/root"
        return f"{self.drive_url}/root:/{quote(path)}"

    async def get_item(self, token: AccessToken, path: str) -> dict[str, Any] | None:
        response = await self._request(
            "GET",
            self._path_url(path),
            token,
            "item lookup",
            headers=self._headers(token),
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response, token, "item lookup")
        return self._json(response, token, "item lookup")

    async def create_folder(self, token: AccessToken, parent_path: str, name: str) -> dict[str, Any]:
        parent_path = parent_path.strip("/")
        if parent_path:
            url = f"{self._path_url(parent_path)}:/children"
        else:
            url = f"{self.drive_url}/root/children"

        response = await self._request(
            "POST",
            url,
            token,
            "folder create",
            headers=self._headers(token, **{"Content-Type": "application/json"}),
            json={
                "name": name,
                "folder": {},
                "@microsoft.graph.conflictBehavior": "fail",
            },
        )

        # Another upload created it between our check and create
        if response.status_code == 409:
            logger.debug(f"Folder {parent_path}/{name} already exists")
            return {"name": name, "folder": {}}

        self._raise_for_status(response, token, "folder create")
        return self._json(response, token, "folder create")

    async def upload(
        self,
        token: AccessToken,
        path: str,
        data: bytes,
        content_type: str,
    ) -> dict[str, Any]:
        response = await self._request(
            "PUT",
            f"{self._path_url(path)}:/content",
            token,
            "upload",
            timeout=self.upload_timeout,
            headers=self._headers(token, **{"Content-Type": content_type}),
            content=data,
        )
        self._raise_for_status(response, token, "upload")

        item = self._json(response, token, "upload")
        if not item.get("id"):
            raise StorageUnavailableError(
                message="OneDrive upload response has no item id",
                account_index=token.account_index,
            )
        return item

    async def download(self, token: AccessToken, item_id: str) -> bytes:
        # The content endpoint answers with a redirect to a pre-authenticated URL
        response = await self._request(
            "GET",
            f"{self.drive_url}/items/{quote(item_id)}/content",
            token,
            "download",
            headers=self._headers(token),
            follow_redirects=True,
        )
        self._raise_for_status(response, token, "download")
        return response.content

    async def delete(self, token: AccessToken, item_id: str) -> bool:
        response = await self._request(
            "DELETE",
            f"{self.drive_url}/items/{quote(item_id)}",
            token,
            "delete",
            headers=self._headers(token),
        )
        if response.status_code == 404:
            return False
        self._raise_for_status(response, token, "delete")
        return True

    async def get_quota(self, token: AccessToken) -> dict[str, Any]:
        response = await self._request(
            "GET",
            self.drive_url,
            token,
            "quota lookup",
            headers=self._headers(token),
        )
        self._raise_for_status(response, token, "quota lookup")
        quota = self._json(response, token, "quota lookup").get("quota") or {}
        if not isinstance(quota, dict):
            raise StorageUnavailableError(
                message="OneDrive quota lookup returned an unexpected response",
                account_index=token.account_index,
            )
        return quota

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
