"""
Tests for authentication endpoints.
"""
import pytest
from httpx import AsyncClient
from unittest.mock import patch, AsyncMock

from app.models.user import User
from tests.utils.factories import UserFactory
from tests.utils.mocks import MockDBConnection


class TestSignup:
    """Tests for POST /auth"""

    @pytest.mark.asyncio
    async def test_signup_creates_user_and_session(self, client: AsyncClient, mock_db: MockDBConnection):
        """New email gets an account, a session row and the cookie."""
        new_user = UserFactory.create(email="new@test.com", name="New Fan")
        mock_db.set_fetchrow_return("SELECT id FROM users", None)
        mock_db.set_fetchrow_return("INSERT INTO users", new_user)

        response = await client.post("/auth", json={
            "name": "New Fan",
            "email": "New@Test.com",
            "password": "supersecret"
        })

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User created"
        assert data["user"]["email"] == "new@test.com"
        assert "password_hash" not in data["user"]
        assert "session-token=" in response.headers["set-cookie"]

        insert = mock_db.calls("fetchrow", "INSERT INTO users")[0]
        assert insert[2][2] == "new@test.com"
        assert insert[2][3].startswith("$2b$")
        assert insert[2][3] != "supersecret"
        assert mock_db.was_called_with("execute", "INSERT INTO sessions")

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, client: AsyncClient, mock_db: MockDBConnection):
        """Registered email returns 400 and writes nothing."""
        mock_db.set_fetchrow_return("SELECT id FROM users", {"id": "existing"})

        response = await client.post("/auth", json={
            "name": "Someone",
            "email": "taken@test.com",
            "password": "supersecret"
        })

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"
        assert not mock_db.was_called_with("fetchrow", "INSERT INTO users")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"name": "A", "email": "not-an-email", "password": "supersecret"},
        {"name": "A", "email": "a@test.com", "password": "short"},
        {"name": "   ", "email": "a@test.com", "password": "supersecret"},
        {"email": "a@test.com", "password": "supersecret"},
    ])
    async def test_signup_invalid_input(self, client: AsyncClient, mock_db: MockDBConnection, payload):
        """Malformed input returns 400 with a list of errors."""
        response = await client.post("/auth", json=payload)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] is True
        assert len(data["errors"]) >= 1
        assert mock_db.get_call_history() == []


class TestLogin:
    """Tests for POST /auth/login"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient):
        """Correct password starts a session."""
        row = UserFactory.create(email="fan@test.com", password="supersecret")
        user = User(id=row["id"], name=row["name"], email=row["email"])

        with patch("app.services.users_service.get_user_credentials", new_callable=AsyncMock) as mock_creds, \
             patch("app.services.users_service.get_user", new_callable=AsyncMock) as mock_get_user, \
             patch("app.services.sessions_service.start_session", new_callable=AsyncMock) as mock_start:
            mock_creds.return_value = {"id": row["id"], "password_hash": row["password_hash"]}
            mock_get_user.return_value = user
            mock_start.return_value = "session-abc"

            response = await client.post("/auth/login", json={
                "email": "fan@test.com",
                "password": "supersecret"
            })

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Logged in"
        assert data["user"]["id"] == row["id"]
        assert "session-token=session-abc" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient):
        row = UserFactory.create(email="fan@test.com", password="supersecret")

        with patch("app.services.users_service.get_user_credentials", new_callable=AsyncMock) as mock_creds, \
             patch("app.services.sessions_service.start_session", new_callable=AsyncMock) as mock_start:
            mock_creds.return_value = {"id": row["id"], "password_hash": row["password_hash"]}

            response = await client.post("/auth/login", json={
                "email": "fan@test.com",
                "password": "not-the-password"
            })

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"
        mock_start.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        with patch("app.services.users_service.get_user_credentials", new_callable=AsyncMock) as mock_creds:
            mock_creds.return_value = None

            response = await client.post("/auth/login", json={
                "email": "ghost@test.com",
                "password": "supersecret"
            })

        assert response.status_code == 401


class TestLogout:
    """Tests for GET /auth/logout"""

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, client: AsyncClient, auth_context):
        with patch("app.services.sessions_service.end_session", new_callable=AsyncMock) as mock_end:
            mock_end.return_value = True
            response = await client.get("/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out"}
        mock_end.assert_awaited_once_with(auth_context.session_id)

    @pytest.mark.asyncio
    async def test_logout_without_session(self, client: AsyncClient):
        with patch("app.services.sessions_service.end_session", new_callable=AsyncMock) as mock_end:
            response = await client.get("/auth/logout")

        assert response.status_code == 200
        mock_end.assert_not_called()


class TestCurrentUser:
    """Tests for GET /auth/me"""

    @pytest.mark.asyncio
    async def test_me_requires_session(self, client: AsyncClient):
        response = await client.get("/auth/me")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_returns_user(self, client: AsyncClient, auth_context):
        user = User(id=auth_context.user_id, name=auth_context.name, email=auth_context.email)

        with patch("app.services.users_service.get_user", new_callable=AsyncMock) as mock_get_user:
            mock_get_user.return_value = user
            response = await client.get("/auth/me")

        assert response.status_code == 200
        assert response.json()["user"]["email"] == auth_context.email

    @pytest.mark.asyncio
    async def test_unknown_session_cookie_is_anonymous(self, client: AsyncClient, auth_headers, mock_db):
        """A cookie that matches no live session is treated as signed out."""
        mock_db.set_fetchrow_return("FROM sessions s", None)

        response = await client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 401
        assert mock_db.was_called_with("fetchrow", "FROM sessions s")
