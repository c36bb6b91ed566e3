"""
Tests para GET /dashboard.
"""
import pytest
from decimal import Decimal
from httpx import AsyncClient
from unittest.mock import patch, AsyncMock

from app.models.user import User, StreamingAccount, StreamingProvider
from tests.utils.factories import EventFactory, TicketFactory
from tests.utils.mocks import MockDBConnection


class TestDashboard:

    @pytest.mark.asyncio
    async def test_dashboard_requires_session(self, client: AsyncClient):
        response = await client.get("/dashboard")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_dashboard_user_gone(self, client: AsyncClient, auth_context):
        """Sesión válida pero el usuario ya no existe."""
        with patch("app.services.users_service.get_user", new_callable=AsyncMock) as mock_get_user:
            mock_get_user.return_value = None
            response = await client.get("/dashboard")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_dashboard_overview(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        user = User(
            id=auth_context.user_id,
            name=auth_context.name,
            email=auth_context.email,
            engagementScore=42,
            streamingAccounts=[StreamingAccount(provider=StreamingProvider.SPOTIFY, accountId="sp-1")]
        )
        event = EventFactory.create(title="Summer Tour")
        tickets = [
            TicketFactory.create(event["id"]),
            TicketFactory.create(event["id"], type="priority", price=Decimal("120.00"), is_redeemed=True),
        ]
        mock_db.set_fetch_return("FROM tickets t", tickets)
        mock_db.set_fetch_return("FROM events e", [event])

        with patch("app.services.users_service.get_user", new_callable=AsyncMock) as mock_get_user:
            mock_get_user.return_value = user
            response = await client.get("/dashboard")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == auth_context.name
        assert data["email"] == auth_context.email
        assert data["engagementScore"] == 42
        assert data["streamingAccounts"][0]["provider"] == "Spotify"
        assert "accessToken" not in data["streamingAccounts"][0]

        assert len(data["ticketsPurchased"]) == 2
        priority = data["ticketsPurchased"][1]
        assert priority["type"] == "priority"
        assert priority["price"] == 120.0
        assert priority["isRedeemed"] is True
        assert priority["eventId"] == event["id"]

        assert [e["title"] for e in data["registeredEvents"]] == ["Summer Tour"]

        _, _, args = mock_db.calls("fetch", "FROM tickets t")[0]
        assert args == (auth_context.user_id,)
