"""
API tests for sign-in, the current user endpoint and logout.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from hold_tracker.core.config import settings
from hold_tracker.core.security import hash_password
from hold_tracker.modules.auth.google import (
    GoogleIdentity,
    GoogleTokenError,
    verify_google_id_token,
)
from hold_tracker.modules.users.models import UserRole
from hold_tracker.modules.users.repository import UserRepository

PASSWORD = "correct horse battery"


@pytest.fixture
async def staff_user(db_session):
    return await UserRepository.create(
        db_session,
        email="Staff@Example.com",
        name="Alice",
        password_hash=hash_password(PASSWORD),
    )


async def _activities(client, headers):
    return (await client.get("/api/v1/activities", headers=headers)).json()


class TestPasswordLogin:
    @pytest.mark.asyncio
    async def test_login_returns_token_and_logs(self, client, staff_user):
        response = await client.post(
            "/api/v1/auth/login", json={"email": "staff@example.com", "password": PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "staff@example.com"

        headers = {"Authorization": f"Bearer {body['access_token']}"}
        me = await client.get("/api/v1/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["name"] == "Alice"

        activities = await _activities(client, headers)
        assert activities[0]["action"] == "LOGIN"
        assert activities[0]["user"] == "staff@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password_is_rejected_and_audited(self, client, staff_user, admin_headers):
        response = await client.post(
            "/api/v1/auth/login", json={"email": "staff@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "INVALID_CREDENTIALS"
        activities = await _activities(client, admin_headers)
        assert activities[0]["action"] == "UNAUTHORIZED_ACCESS"
        assert PASSWORD not in activities[0]["details"]

    @pytest.mark.asyncio
    async def test_unknown_email_gets_same_error(self, client):
        response = await client.post(
            "/api/v1/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_inactive_account_is_forbidden(self, client, db_session):
        await UserRepository.create(
            db_session,
            email="gone@example.com",
            name="Gone",
            password_hash=hash_password(PASSWORD),
            is_active=False,
        )

        response = await client.post(
            "/api/v1/auth/login", json={"email": "gone@example.com", "password": PASSWORD}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_logout_is_logged(self, client, staff_headers, admin_headers):
        response = await client.post("/api/v1/auth/logout", headers=staff_headers)

        assert response.status_code == 200
        activities = await _activities(client, admin_headers)
        assert activities[0]["action"] == "LOGOUT"


class TestGoogleLogin:
    @pytest.mark.asyncio
    async def test_disabled_without_client_id(self, client, monkeypatch):
        monkeypatch.setattr(settings, "google_client_id", None)

        response = await client.post("/api/v1/auth/google", json={"id_token": "abc"})

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_first_sign_in_provisions_user(self, client, monkeypatch):
        monkeypatch.setattr(settings, "google_client_id", "client-123")
        monkeypatch.setattr(settings, "admin_emails", "boss@example.com")

        with patch(
            "hold_tracker.modules.auth.router.verify_google_id_token",
            new=AsyncMock(return_value=GoogleIdentity(email="boss@example.com", name="Boss")),
        ):
            response = await client.post("/api/v1/auth/google", json={"id_token": "abc"})

        assert response.status_code == 200
        assert response.json()["user"]["role"] == UserRole.ADMIN.value

    @pytest.mark.asyncio
    async def test_rejected_token(self, client, monkeypatch):
        monkeypatch.setattr(settings, "google_client_id", "client-123")

        with patch(
            "hold_tracker.modules.auth.router.verify_google_id_token",
            new=AsyncMock(side_effect=GoogleTokenError("Google rejected the ID token")),
        ):
            response = await client.post("/api/v1/auth/google", json={"id_token": "abc"})

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "INVALID_GOOGLE_TOKEN"


def _mock_tokeninfo(status_code: int, claims: dict):
    """Patch httpx.AsyncClient so tokeninfo returns the given response."""
    response = httpx.Response(status_code, json=claims)
    http_client = MagicMock()
    http_client.get = AsyncMock(return_value=response)
    http_client.__aenter__ = AsyncMock(return_value=http_client)
    http_client.__aexit__ = AsyncMock(return_value=None)
    return patch(
        "hold_tracker.modules.auth.google.httpx.AsyncClient", return_value=http_client
    )


class TestVerifyGoogleIdToken:
    CLAIMS = {
        "aud": "client-123",
        "email": "Staff@Example.com",
        "email_verified": "true",
        "name": "Alice",
    }

    @pytest.mark.asyncio
    async def test_valid_token(self):
        with _mock_tokeninfo(200, self.CLAIMS):
            identity = await verify_google_id_token("tok", "client-123", "example.com")

        assert identity == GoogleIdentity(email="staff@example.com", name="Alice")

    @pytest.mark.asyncio
    async def test_wrong_audience(self):
        with _mock_tokeninfo(200, {**self.CLAIMS, "aud": "someone-else"}):
            with pytest.raises(GoogleTokenError):
                await verify_google_id_token("tok", "client-123")

    @pytest.mark.asyncio
    async def test_unverified_email(self):
        with _mock_tokeninfo(200, {**self.CLAIMS, "email_verified": "false"}):
            with pytest.raises(GoogleTokenError):
                await verify_google_id_token("tok", "client-123")

    @pytest.mark.asyncio
    async def test_other_domain(self):
        with _mock_tokeninfo(200, self.CLAIMS):
            with pytest.raises(GoogleTokenError):
                await verify_google_id_token("tok", "client-123", "school.org")

    @pytest.mark.asyncio
    async def test_google_rejects_token(self):
        with _mock_tokeninfo(400, {"error": "invalid_token"}):
            with pytest.raises(GoogleTokenError):
                await verify_google_id_token("tok", "client-123")
