"""
Integration tests for the storage status endpoint.
"""

from api.dependencies import get_gateway


class TestStorageStatus:
    """Tests for GET /api/storage/status."""

    def test_not_enabled(self, client):
        client.app.dependency_overrides[get_gateway] = lambda: None
        try:
            response = client.get("/api/storage/status")
        finally:
            client.app.dependency_overrides.clear()

        assert response.status_code == 200
        data = response.json()
        assert data["enabled"] is False
        assert data["accounts"] is None
        assert "ONEDRIVE_CLIENT_ID" in data["setup"]

    def test_reports_accounts(self, client, make_gateway, fake_drive):
        fake_drive.quotas = {0: {"used": 2048, "total": 1024**3}}
        fake_drive.fail_quota = {1}
        gateway = make_gateway(2)

        client.app.dependency_overrides[get_gateway] = lambda: gateway
        try:
            response = client.get("/api/storage/status")
        finally:
            client.app.dependency_overrides.clear()

        assert response.status_code == 200
        data = response.json()
        assert data["enabled"] is True
        assert data["total_accounts"] == 2
        first, second = data["accounts"]
        assert first == {
            "account": "Account 1",
            "used": "2 KB",
            "total": "1 GB",
            "used_bytes": 2048,
            "total_bytes": 1024**3,
            "error": None,
        }
        assert second["used"] == "Error"
        assert second["total"] == "Error"
        assert second["error"] == "storage_unavailable"

    def test_all_accounts_unreachable(self, client, make_gateway):
        gateway = make_gateway(2, fail_auth={0, 1})

        client.app.dependency_overrides[get_gateway] = lambda: gateway
        try:
            data = client.get("/api/storage/status").json()
        finally:
            client.app.dependency_overrides.clear()

        assert data["enabled"] is True
        assert [a["error"] for a in data["accounts"]] == ["storage_authentication_failed"] * 2
