"""
Tests for registration, login and profile endpoints
"""
import pytest
from decimal import Decimal

from smartfarm.core.exceptions import ConflictError
from smartfarm.core.security import decode_token
from smartfarm.modules.users.schemas import UserProfileUpdate, UserRegistrationRequest
from smartfarm.modules.users.services import UserService
from conftest import TEST_PASSWORD


def _registration(**overrides):
    data = {
        "name": "Wanjiru Grower",
        "email": "Wanjiru@Example.com",
        "password": "harvest2026!",
        "user_type": "farmer",
        "phone": "+254 711 222333",
        "farm_name": "Sunrise Farm",
        "crops_grown": "tea, avocado",
        "farm_location": "Kericho"
    }
    data.update(overrides)
    return data


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_farmer(self, client):
        response = await client.post("/api/auth/register", json=_registration())

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered successfully"
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "wanjiru@example.com"
        assert data["user"]["user_type"] == "farmer"

        payload = decode_token(data["token"])
        assert payload["sub"] == str(data["user"]["id"])
        assert payload["user_type"] == "farmer"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, farmer):
        response = await client.post(
            "/api/auth/register",
            json=_registration(email="FARMER@example.com")
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Email already registered"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"email": "not-an-email"},
        {"password": "short"},
        {"user_type": "admin"},
        {"name": "   "},
        {"phone": "call me maybe"},
    ])
    async def test_register_rejects_invalid_payload(self, client, overrides):
        response = await client.post("/api/auth/register", json=_registration(**overrides))

        assert response.status_code == 422


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, client, farmer):
        response = await client.post(
            "/api/auth/login",
            json={"email": farmer.email, "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["id"] == farmer.id

        verify = await client.get(
            "/api/auth/verify",
            headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert verify.status_code == 200
        assert verify.json()["valid"] is True

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, farmer):
        response = await client.post(
            "/api/auth/login",
            json={"email": farmer.email, "password": "WrongPassword"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client):
        response = await client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_disabled_account(self, client, db_session, buyer):
        buyer.is_active = False
        await db_session.commit()

        response = await client.post(
            "/api/auth/login",
            json={"email": buyer.email, "password": TEST_PASSWORD}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_change_password(self, client, farmer, farmer_headers):
        response = await client.post(
            "/api/auth/change-password",
            json={"old_password": TEST_PASSWORD, "new_password": "NewPassword456"},
            headers=farmer_headers
        )
        assert response.status_code == 200

        old = await client.post("/api/auth/login", json={"email": farmer.email, "password": TEST_PASSWORD})
        new = await client.post("/api/auth/login", json={"email": farmer.email, "password": "NewPassword456"})
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_old_password(self, client, farmer_headers):
        response = await client.post(
            "/api/auth/change-password",
            json={"old_password": "guess", "new_password": "NewPassword456"},
            headers=farmer_headers
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Old password is incorrect"


class TestProfile:

    @pytest.mark.asyncio
    async def test_get_profile(self, client, farmer, farmer_headers):
        response = await client.get("/api/users/profile", headers=farmer_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == farmer.email
        assert data["farm_location"] == "Nakuru"
        assert "hashed_password" not in data

    @pytest.mark.asyncio
    async def test_update_profile_keeps_unsent_fields(self, client, farmer_headers):
        response = await client.put(
            "/api/users/profile",
            json={"bio": "Third-generation maize grower", "farm_name": "Green Acres Co-op"},
            headers=farmer_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Third-generation maize grower"
        assert data["farm_name"] == "Green Acres Co-op"
        assert data["farm_location"] == "Nakuru"
        assert data["crops_grown"] == "maize, beans"

    @pytest.mark.asyncio
    async def test_stats(self, client, ledger, farmer, farmer_headers, pending_loan, interest_free_loan, maize_listing):
        await ledger.record_payment(farmer, interest_free_loan, Decimal("1200.00"), "cash")

        response = await client.get("/api/users/stats", headers=farmer_headers)

        assert response.status_code == 200
        data = response.json()
        counts = {entry["status"]: entry["count"] for entry in data["loans"]}
        assert counts == {"pending": 1, "completed": 1}
        assert data["products_listed"] == 1
        assert data["orders_made"] == 0


class TestUserDirectory:

    @pytest.mark.asyncio
    async def test_search_by_type(self, client, farmer, other_farmer, buyer, admin):
        response = await client.get("/api/users/search", params={"type": "farmer"})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert {user["id"] for user in data["users"]} == {farmer.id, other_farmer.id}
        assert "email" not in data["users"][0]

    @pytest.mark.asyncio
    async def test_search_excludes_admins(self, client, farmer, buyer, admin):
        response = await client.get("/api/users/search")

        ids = {user["id"] for user in response.json()["users"]}
        assert admin.id not in ids
        assert ids == {farmer.id, buyer.id}

    @pytest.mark.asyncio
    async def test_search_by_location_and_crop(self, client, farmer, other_farmer):
        response = await client.get("/api/users/search", params={"location": "nakuru", "crop": "beans"})

        users = response.json()["users"]
        assert [user["id"] for user in users] == [farmer.id]

    @pytest.mark.asyncio
    async def test_public_profile(self, client, farmer):
        response = await client.get(f"/api/users/{farmer.id}/public")

        assert response.status_code == 200
        assert response.json()["name"] == farmer.name

    @pytest.mark.asyncio
    async def test_public_profile_not_found(self, client):
        response = await client.get("/api/users/9999/public")

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"


class TestUserService:

    @pytest.mark.integration
    async def test_register_race_reports_duplicate_email(self, persistence, farmer, monkeypatch):
        """The unique index still catches an email registered after the lookup"""
        service = UserService(persistence)

        async def missed_lookup(email):
            return None

        monkeypatch.setattr(service, "get_user_by_email", missed_lookup)
        registration = UserRegistrationRequest(**_registration(email=farmer.email))

        with pytest.raises(ConflictError) as exc_info:
            await service.register_user(registration)

        assert exc_info.value.detail == "Email already registered"

    @pytest.mark.integration
    async def test_profile_update_goes_through_transaction(self, persistence, farmer):
        service = UserService(persistence)

        updated = await service.update_profile(farmer, UserProfileUpdate(bio="<b>Dairy</b> & maize"))

        assert updated.bio == "bDairy/b  maize"
        assert updated.updated_at is not None
