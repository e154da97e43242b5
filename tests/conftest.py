"""
Pytest configuration and fixtures.
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from io import BytesIO
from typing import Any

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from PIL import Image

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "true"
os.environ["LOCAL_UPLOAD_PATH"] = tempfile.mkdtemp(prefix="taskshare-uploads-")
for _key in ("ONEDRIVE_CLIENT_ID", "ONEDRIVE_CLIENT_SECRET", "ONEDRIVE_REFRESH_TOKENS", "ONEDRIVE_REFRESH_TOKEN_1"):
    os.environ.pop(_key, None)

from core.config import StorageAccount  # noqa: E402
from core.exceptions import (  # noqa: E402
    ObjectNotFoundError,
    StorageAuthenticationError,
    StorageUnavailableError,
)
from services.storage import (  # noqa: E402
    AccessToken,
    CredentialBroker,
    LocalBlobStore,
    ObjectGateway,
    RemoteDrive,
    UploadIngress,
)


# ============ App Fixtures ============


@pytest.fixture
def client() -> TestClient:
    """Synchronous test client."""
    from api.main import app

    return TestClient(app)


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Asynchronous test client."""
    from api.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


# ============ Fake Remote Storage ============


class StubBroker(CredentialBroker):
    """Credential broker that hands out tokens without network calls."""

    def __init__(self, accounts: list[StorageAccount], fail_auth: set[int] | None = None):
        super().__init__(client_id="test-client", client_secret="test-secret", accounts=accounts)
        self.fail_auth = fail_auth or set()
        self.calls: list[int] = []
        self.invalidated: list[int] = []

    async def get_access_token(self, account_index: int) -> AccessToken:
        self.account(account_index)
        self.calls.append(account_index)
        if account_index in self.fail_auth:
            raise StorageAuthenticationError(
                message=f"Authentication failed for storage account {account_index}",
                account_index=account_index,
            )
        return AccessToken(value=f"token-{account_index}", account_index=account_index)

    def invalidate(self, account_index: int) -> None:
        self.invalidated.append(account_index)

    async def aclose(self) -> None:
        pass


class FakeDrive(RemoteDrive):
    """In-memory drive shared by all accounts, partitioned by account index."""

    def __init__(self):
        self.folders: dict[int, set[str]] = {}
        self.items: dict[str, tuple[int, str, bytes]] = {}
        self.fail_upload: set[int] = set()
        self.fail_quota: set[int] = set()
        self.quotas: dict[int, dict[str, Any]] = {}
        self.uploads: list[int] = []
        self.created_folders: list[tuple[int, str]] = []
        self._next_id = 0

    @property
    def name(self) -> str:
        return "onedrive"

    async def get_item(self, token: AccessToken, path: str) -> dict[str, Any] | None:
        if path in self.folders.get(token.account_index, set()):
            return {"name": path.rsplit("/", 1)[-1], "folder": {}}
        return None

    async def create_folder(self, token: AccessToken, parent_path: str, name: str) -> dict[str, Any]:
        path = f"{parent_path}/{name}" if parent_path else name
        self.folders.setdefault(token.account_index, set()).add(path)
        self.created_folders.append((token.account_index, path))
        return {"name": name, "folder": {}}

    async def upload(self, token: AccessToken, path: str, data: bytes, content_type: str) -> dict[str, Any]:
        self.uploads.append(token.account_index)
        if token.account_index in self.fail_upload:
            raise StorageUnavailableError(message="OneDrive upload returned 500")
        self._next_id += 1
        item_id = f"ITEM{self._next_id}"
        self.items[item_id] = (token.account_index, path, data)
        return {"id": item_id, "name": path.rsplit("/", 1)[-1]}

    async def download(self, token: AccessToken, item_id: str) -> bytes:
        item = self.items.get(item_id)
        if item is None or item[0] != token.account_index:
            raise ObjectNotFoundError()
        return item[2]

    async def delete(self, token: AccessToken, item_id: str) -> bool:
        item = self.items.get(item_id)
        if item is None or item[0] != token.account_index:
            return False
        del self.items[item_id]
        return True

    async def get_quota(self, token: AccessToken) -> dict[str, Any]:
        if token.account_index in self.fail_quota:
            raise StorageUnavailableError(message="OneDrive quota lookup returned 503")
        return self.quotas.get(token.account_index, {"used": 1024, "total": 5 * 1024**3})


def make_accounts(count: int) -> list[StorageAccount]:
    return [
        StorageAccount(name=f"Account {i + 1}", refresh_secret=f"refresh-{i}", account_ref=f"user{i + 1}")
        for i in range(count)
    ]


@pytest.fixture
def fake_drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def make_gateway(fake_drive):
    """Factory for gateways over the fake drive."""

    def _make(count: int = 3, fail_auth: set[int] | None = None, max_upload_bytes: int = 10 * 1024 * 1024):
        broker = StubBroker(make_accounts(count), fail_auth=fail_auth)
        return ObjectGateway(broker, fake_drive, max_upload_bytes=max_upload_bytes)

    return _make


@pytest.fixture
def local_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "uploads")


@pytest.fixture
def make_ingress(local_store):
    def _make(gateway: ObjectGateway | None = None, max_upload_bytes: int = 10 * 1024 * 1024):
        return UploadIngress(local_store, gateway=gateway, max_upload_bytes=max_upload_bytes)

    return _make


# ============ Test Data Fixtures ============


@pytest.fixture
def png_bytes() -> bytes:
    """A small real PNG image."""
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color="red").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color="blue").save(buffer, format="JPEG")
    return buffer.getvalue()


# ============ Test Settings ============


@pytest.fixture
def test_settings(monkeypatch):
    """Clear cached settings around a test that changes the environment."""
    from core.config import get_settings
    from services.storage import reset_storage

    get_settings.cache_clear()
    reset_storage()

    yield

    get_settings.cache_clear()
    reset_storage()
