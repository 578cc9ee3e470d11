"""
API endpoint tests for health and basic endpoints
"""
import pytest


class TestHealthEndpoints:
    """Tests for health check endpoints"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_health_check(self, client):
        """Test health check endpoint"""
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "timestamp" in data

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_root_endpoint(self, client):
        """Test root endpoint"""
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert "SmartFarm" in data["message"]


class TestAuthRequired:
    """Tests that verify auth is required"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", [
        ("get", "/api/loans/my-loans"),
        ("get", "/api/loans/"),
        ("get", "/api/loans/1"),
        ("post", "/api/loans/1/approve"),
        ("get", "/api/users/profile"),
        ("get", "/api/users/stats"),
        ("get", "/api/auth/verify"),
        ("get", "/api/marketplace/orders"),
        ("get", "/api/marketplace/farmer/products"),
    ])
    async def test_endpoint_requires_auth(self, client, method, path):
        response = await getattr(client, method)(path)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disabled_account_forbidden(self, client, db_session, buyer, buyer_headers):
        buyer.is_active = False
        await db_session.commit()

        response = await client.get("/api/users/profile", headers=buyer_headers)

        assert response.status_code == 403
