"""Tests for auth dependencies — bearer validation and the admin gate."""

import uuid
from datetime import timedelta

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.auth.jwt import create_access_token, issue_token
from gymapp.models.user import User


class TestGetCurrentUser:
    """Test get_current_user via the /api/protected/me endpoint."""

    async def test_missing_header(self, client: AsyncClient):
        response = await client.get("/api/protected/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Missing or invalid Authorization header"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_expired_token_rejected(self, client: AsyncClient, test_user: User):
        token = create_access_token({"sub": str(test_user.id)}, expires_delta=timedelta(seconds=-1))
        response = await client.get("/api/protected/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    async def test_invalid_token_format(self, client: AsyncClient):
        response = await client.get("/api/protected/me", headers={"Authorization": "Bearer not.a.valid.jwt"})
        assert response.status_code == 401

    async def test_wrong_token_type_rejected(self, client: AsyncClient, test_user: User):
        # Forge a token of another type with the same signing key
        from jose import jwt

        from gymapp.config import settings

        payload = {"sub": str(test_user.id), "type": "refresh", "jti": "abc"}
        token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
        response = await client.get("/api/protected/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token type"

    async def test_nonexistent_user_id_rejected(self, client: AsyncClient):
        response = await client.get(
            "/api/protected/me", headers={"Authorization": f"Bearer {issue_token(uuid.uuid4())}"}
        )
        assert response.status_code == 401

    async def test_non_uuid_subject_rejected(self, client: AsyncClient):
        token = create_access_token({"sub": "not-a-uuid"})
        response = await client.get("/api/protected/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"


class TestRequireAdmin:
    """Test the admin gate via GET /api/admin/classes."""

    async def test_member_forbidden(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/admin/classes", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"

    async def test_admin_allowed(self, client: AsyncClient, admin_headers: dict):
        response = await client.get("/api/admin/classes", headers=admin_headers)
        assert response.status_code == 200

    async def test_unauthenticated_is_401_not_403(self, client: AsyncClient):
        response = await client.get("/api/admin/classes")
        assert response.status_code == 401

    async def test_revoked_admin_flag_takes_effect_immediately(
        self, client: AsyncClient, admin_user: User, admin_headers: dict, db_session: AsyncSession
    ):
        assert (await client.get("/api/admin/classes", headers=admin_headers)).status_code == 200

        admin_user.is_admin = False
        await db_session.flush()

        # Same token, flag re-read from storage
        response = await client.get("/api/admin/classes", headers=admin_headers)
        assert response.status_code == 403
