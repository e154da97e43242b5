"""
Unit tests for the object writer.
"""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from core.exceptions import (
    PayloadTooLargeError,
    StorageUnavailableError,
    UnsupportedMediaTypeError,
)
from services.storage import ObjectGateway, ObjectReference, OneDriveClient, UploadedBlob
from tests.conftest import StubBroker, make_accounts


def _blob(data: bytes = b"\x89PNG-data", name: str = "photo.png", content_type: str = "image/png"):
    return UploadedBlob(data=data, filename=name, content_type=content_type)


class TestPlacement:
    """Writes follow round-robin placement when accounts are healthy."""

    @pytest.mark.asyncio
    async def test_three_accounts_four_uploads(self, make_gateway):
        gateway = make_gateway(3)

        results = [await gateway.store(_blob()) for _ in range(4)]

        assert all(r.success for r in results)
        assert [r.reference.account_index for r in results] == [0, 1, 2, 0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count,uploads", [(1, 3), (2, 5), (4, 9)])
    async def test_round_robin_sequence(self, make_gateway, count, uploads):
        gateway = make_gateway(count)
        start = gateway.placement.peek()

        chosen = [(await gateway.store(_blob())).reference.account_index for _ in range(uploads)]

        assert chosen == [(start + i) % count for i in range(uploads)]

    @pytest.mark.asyncio
    async def test_reference_locator(self, make_gateway, fake_drive):
        gateway = make_gateway(2)

        result = await gateway.store(_blob(name="cat.png"))

        assert result.locator == f"/api/objects/0/{result.reference.item_id}"
        assert result.account_name == "Account 1"
        assert result.attempts == 1
        _, path, _ = fake_drive.items[result.reference.item_id]
        assert path == "TaskShare/images/cat.png"


class TestFailover:
    """Failed accounts are skipped in favour of the next one."""

    @pytest.mark.asyncio
    async def test_auth_failure_moves_to_next_account(self, make_gateway):
        gateway = make_gateway(2, fail_auth={0})

        for _ in range(3):
            gateway.broker.calls.clear()
            result = await gateway.store(_blob())

            assert result.success
            assert result.reference.account_index == 1
            assert gateway.broker.calls == [0, 1]

    @pytest.mark.asyncio
    async def test_upload_failure_moves_to_next_account(self, make_gateway, fake_drive):
        fake_drive.fail_upload = {0}
        gateway = make_gateway(3)

        result = await gateway.store(_blob())

        assert result.success
        assert result.reference.account_index == 1
        assert result.attempts == 2
        assert gateway.broker.calls == [0, 1]

    @pytest.mark.asyncio
    async def test_each_account_tried_once(self, make_gateway, fake_drive):
        fake_drive.fail_upload = {0, 1}
        gateway = make_gateway(3)

        result = await gateway.store(_blob())

        assert result.reference.account_index == 2
        assert sorted(gateway.broker.calls) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_all_accounts_fail(self, make_gateway, fake_drive):
        fake_drive.fail_upload = {1}
        gateway = make_gateway(3, fail_auth={0, 2})

        result = await gateway.store(_blob())

        assert result.success is False
        assert result.reference is None
        assert result.locator is None
        assert isinstance(result.error, StorageUnavailableError)
        assert result.attempts == 3
        assert sorted(gateway.broker.calls) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_single_account_failure_is_final(self, make_gateway):
        gateway = make_gateway(1, fail_auth={0})

        result = await gateway.store(_blob())

        assert result.success is False
        assert gateway.broker.calls == [0]

    @pytest.mark.asyncio
    async def test_rejected_token_is_invalidated(self, make_gateway, fake_drive):
        from core.exceptions import StorageAuthenticationError

        gateway = make_gateway(2)
        fake_drive.upload = AsyncMock(side_effect=[StorageAuthenticationError(), {"id": "X1"}])

        result = await gateway.store(_blob())

        assert result.reference == ObjectReference(account_index=1, item_id="X1")
        assert gateway.broker.invalidated == [0]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, make_gateway, fake_drive):
        gateway = make_gateway(2)
        fake_drive.upload = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await gateway.store(_blob())

        assert fake_drive.items == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_response",
        [
            httpx.Response(200, content=b"<html>proxy error</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    async def test_malformed_upload_response_moves_to_next_account(self, bad_response):
        def graph(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"id": "FOLDER", "folder": {}})
            if request.headers["Authorization"] == "Bearer token-0":
                return bad_response
            return httpx.Response(201, json={"id": "OK1"})

        drive = OneDriveClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(graph)))
        gateway = ObjectGateway(StubBroker(make_accounts(2)), drive, max_upload_bytes=1024)

        result = await gateway.store(_blob())

        assert result.success
        assert result.reference == ObjectReference(account_index=1, item_id="OK1")
        assert result.attempts == 2


class TestValidation:
    """Client input errors are rejected before any network call."""

    @pytest.mark.asyncio
    async def test_exact_limit_accepted(self, make_gateway):
        gateway = make_gateway(1, max_upload_bytes=1024)

        result = await gateway.store(_blob(data=b"x" * 1024))

        assert result.success

    @pytest.mark.asyncio
    async def test_one_byte_over_rejected(self, make_gateway):
        gateway = make_gateway(1, max_upload_bytes=1024)

        with pytest.raises(PayloadTooLargeError):
            await gateway.store(_blob(data=b"x" * 1025))

        assert gateway.broker.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_content_type(self, make_gateway):
        gateway = make_gateway(2)

        with pytest.raises(UnsupportedMediaTypeError):
            await gateway.store(_blob(name="doc.pdf", content_type="application/pdf"))

        assert gateway.broker.calls == []

    @pytest.mark.asyncio
    async def test_extension_must_match_image(self, make_gateway):
        gateway = make_gateway(2)

        with pytest.raises(UnsupportedMediaTypeError):
            await gateway.store(_blob(name="script.sh", content_type="image/png"))

    @pytest.mark.asyncio
    async def test_rejection_does_not_advance_placement(self, make_gateway):
        gateway = make_gateway(3)

        with pytest.raises(UnsupportedMediaTypeError):
            await gateway.store(_blob(content_type="text/plain"))

        assert gateway.placement.peek() == 0


class TestProvisioning:
    """Folder provisioning is idempotent."""

    @pytest.mark.asyncio
    async def test_folders_created_once(self, make_gateway, fake_drive):
        gateway = make_gateway(1)

        await gateway.store(_blob())
        await gateway.store(_blob())

        assert fake_drive.created_folders == [(0, "TaskShare"), (0, "TaskShare/images")]

    @pytest.mark.asyncio
    async def test_provision_twice_is_noop(self, make_gateway, fake_drive):
        gateway = make_gateway(1)
        token = await gateway.broker.get_access_token(0)

        await gateway.writer.provision(token)
        await gateway.writer.provision(token)

        assert len(fake_drive.created_folders) == 2

    @pytest.mark.asyncio
    async def test_folder_created_concurrently(self, make_gateway, fake_drive):
        """Folder appears between the existence check and the create call."""
        gateway = make_gateway(1)
        token = await gateway.broker.get_access_token(0)
        fake_drive.get_item = AsyncMock(return_value=None)

        await gateway.writer.ensure_folder(token, "TaskShare")
        await gateway.writer.ensure_folder(token, "TaskShare")

        assert fake_drive.created_folders == [(0, "TaskShare"), (0, "TaskShare")]
