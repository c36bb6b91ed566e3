"""
Configuración global de pytest y fixtures compartidos.
"""
import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from unittest.mock import patch
import sys
import os

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.main import app
from app.core.dependencies import RequestContext, get_request_context, require_authenticated_context
from app.services import spotify_service
from tests.utils.mocks import MockDBConnection, Record, db_connection_factory

# Modules that open their own connections
DB_MODULES = [
    "app.services.events_service",
    "app.services.purchase_service",
    "app.services.users_service",
    "app.services.sessions_service",
    "app.services.dashboard_service",
]


# ============================================================================
# Cliente HTTP Async
# ============================================================================

@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP async para hacer requests al API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Mock de Base de Datos
# ============================================================================

@pytest.fixture
def mock_db_connection() -> MockDBConnection:
    return MockDBConnection()


@pytest.fixture(autouse=True)
def mock_db(mock_db_connection):
    """Route every service's get_db_connection to the mock connection."""
    patchers = [
        patch(f"{module}.get_db_connection", side_effect=db_connection_factory(mock_db_connection))
        for module in DB_MODULES
    ]
    for p in patchers:
        p.start()
    yield mock_db_connection
    for p in patchers:
        p.stop()


@pytest.fixture(autouse=True)
def clear_spotify_cache():
    spotify_service.clear_cache()
    yield
    spotify_service.clear_cache()


# ============================================================================
# Autenticación
# ============================================================================

@pytest.fixture
def test_user_data():
    return {
        "id": "7f1c2d3e-0000-4000-8000-000000000001",
        "email": "fan@test.com",
        "name": "Test Fan"
    }


@pytest.fixture
def auth_context(test_user_data):
    """Authenticate every request as the test user."""
    ctx = RequestContext(
        user_id=test_user_data["id"],
        email=test_user_data["email"],
        name=test_user_data["name"],
        session_id="test-session-123"
    )
    app.dependency_overrides[get_request_context] = lambda: ctx
    app.dependency_overrides[require_authenticated_context] = lambda: ctx
    yield ctx
    app.dependency_overrides.pop(get_request_context, None)
    app.dependency_overrides.pop(require_authenticated_context, None)


@pytest.fixture
def auth_headers():
    """Headers con cookie de sesión."""
    return {"Cookie": "session-token=test-session-token-123"}


# ============================================================================
# Utilidades
# ============================================================================

@pytest.fixture
def make_db_row():
    """Factory para crear rows de base de datos."""
    def _make_row(data: dict):
        return Record(data)

    return _make_row
