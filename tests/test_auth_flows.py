"""Tests for login, logout, password change, registration and profile age."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from winetrail.models import User


async def _login(client: AsyncClient, email: str, password: str):
    return await client.post(
        "/api/auth/token",
        data={"username": email, "password": password},
    )


class TestTokenLogin:
    @pytest.mark.asyncio
    async def test_login_returns_bearer_token(self, unauthenticated_client, test_user):
        response = await _login(unauthenticated_client, "test@example.com", "testpassword")
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]

        me = await unauthenticated_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == "test@example.com"

    @pytest.mark.asyncio
    async def test_login_records_last_login(self, unauthenticated_client, test_user):
        await _login(unauthenticated_client, "test@example.com", "testpassword")
        user = await User.get(test_user.id)
        assert user.last_login is not None

    @pytest.mark.asyncio
    async def test_wrong_password_is_rejected(self, unauthenticated_client, test_user):
        response = await _login(unauthenticated_client, "test@example.com", "nope")
        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email or password"

    @pytest.mark.asyncio
    async def test_unknown_email_is_rejected(self, unauthenticated_client, test_user):
        response = await _login(unauthenticated_client, "ghost@example.com", "testpassword")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_repeated_failures_lock_the_account(self, unauthenticated_client, test_user):
        for _ in range(5):
            response = await _login(unauthenticated_client, "test@example.com", "wrong")
            assert response.status_code == 401

        # The right password no longer helps while locked
        response = await _login(unauthenticated_client, "test@example.com", "testpassword")
        assert response.status_code == 429
        assert "Retry-After" in response.headers

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_log_in(self, unauthenticated_client, test_user):
        test_user.is_active = False
        await test_user.save()

        response = await _login(unauthenticated_client, "test@example.com", "testpassword")
        assert response.status_code == 401


class TestCurrentUser:
    @pytest.mark.asyncio
    async def test_me_requires_auth(self, unauthenticated_client):
        response = await unauthenticated_client.get("/api/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_returns_profile(self, client, test_user):
        response = await client.get("/api/auth/me")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(test_user.id)
        assert data["is_admin"] is False
        assert data["date_of_birth"].startswith("1990-01-01")

    @pytest.mark.asyncio
    async def test_admin_flag(self, admin_client):
        response = await admin_client.get("/api/auth/me")
        assert response.json()["is_admin"] is True

    @pytest.mark.asyncio
    async def test_garbage_token_is_rejected(self, unauthenticated_client):
        response = await unauthenticated_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, client):
        response = await client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Successfully logged out"

        response = await client.get("/api/auth/me")
        assert response.status_code == 401


class TestPasswordChange:
    @pytest.mark.asyncio
    async def test_change_password(self, client, unauthenticated_client):
        response = await client.put(
            "/api/auth/password",
            json={"current_password": "testpassword", "new_password": "n3w-passw0rd"},
        )
        assert response.status_code == 200

        # The token used for the change is revoked
        assert (await client.get("/api/auth/me")).status_code == 401

        assert (await _login(unauthenticated_client, "test@example.com", "testpassword")).status_code == 401
        assert (await _login(unauthenticated_client, "test@example.com", "n3w-passw0rd")).status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client):
        response = await client.put(
            "/api/auth/password",
            json={"current_password": "wrong", "new_password": "whatever123"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Current password is incorrect"


class TestRegistration:
    @pytest.mark.asyncio
    async def test_register_with_date_of_birth(self, unauthenticated_client, mock_email_service):
        response = await unauthenticated_client.post(
            "/api/auth/register",
            json={
                "email": "newbie@example.com",
                "password": "a-strong-passw0rd",
                "full_name": "New Taster",
                "date_of_birth": "1995-07-14",
            },
        )
        assert response.status_code == 201
        assert response.json()["email"] == "newbie@example.com"

        user = await User.find_one(User.email == "newbie@example.com")
        assert user is not None
        assert user.full_name == "New Taster"
        assert user.date_of_birth.date() == date(1995, 7, 14)

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, unauthenticated_client, test_user, mock_email_service):
        response = await unauthenticated_client.post(
            "/api/auth/register",
            json={"email": "test@example.com", "password": "a-strong-passw0rd"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_fastapi_users_login(self, unauthenticated_client, test_user):
        response = await unauthenticated_client.post(
            "/api/auth/login",
            data={"username": "test@example.com", "password": "testpassword"},
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await unauthenticated_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == "test@example.com"


class TestDateOfBirth:
    @pytest.mark.asyncio
    async def test_set_date_of_birth_adult(self, client, test_user):
        response = await client.put(
            "/api/users/me/date-of-birth", json={"date_of_birth": "1980-03-15"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["is_of_age"] is True
        assert data["user"]["date_of_birth"].startswith("1980-03-15")

        user = await User.get(test_user.id)
        assert user.date_of_birth.date() == date(1980, 3, 15)

    @pytest.mark.asyncio
    async def test_set_date_of_birth_underage(self, client):
        recent = date.today() - timedelta(days=365 * 18)
        response = await client.put(
            "/api/users/me/date-of-birth", json={"date_of_birth": recent.isoformat()}
        )
        assert response.status_code == 200
        assert response.json()["is_of_age"] is False

    @pytest.mark.asyncio
    async def test_future_date_rejected(self, client):
        future = date.today() + timedelta(days=30)
        response = await client.put(
            "/api/users/me/date-of-birth", json={"date_of_birth": future.isoformat()}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Date of birth cannot be in the future"

    @pytest.mark.asyncio
    async def test_requires_auth(self, unauthenticated_client):
        response = await unauthenticated_client.put(
            "/api/users/me/date-of-birth", json={"date_of_birth": "1980-03-15"}
        )
        assert response.status_code == 401
