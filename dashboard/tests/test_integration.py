"""
Integration Tests
=================

The session shell talking HTTP to the mock auth backend, in process:
- Real HttpAuthenticator over httpx.ASGITransport
- Backend rejections mapped to failure kinds
- Full login -> guard -> switch -> logout flow through the API
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from mock_auth.main import app as mock_backend
from multiauth.core.exceptions import (
    ForbiddenError,
    InvalidCredentialsError,
    RateLimitedError,
    ServerError,
)
from multiauth.main import create_app
from multiauth.models.role_enum import RoleKey
from multiauth.services.auth_client import HttpAuthenticator
from multiauth.services.session_manager import SessionManager
from multiauth.storage import MemoryKeyValueBackend, SessionStore


pytestmark = pytest.mark.integration


@pytest.fixture
def backend_authenticator(settings) -> HttpAuthenticator:
    return HttpAuthenticator(
        base_url="http://mock-backend",
        login_endpoint=settings.login_endpoint,
        transport=httpx.ASGITransport(app=mock_backend),
    )


@pytest.fixture
def live_manager(backend_authenticator) -> SessionManager:
    manager = SessionManager(SessionStore(MemoryKeyValueBackend()), backend_authenticator)
    manager.init()
    return manager


class TestAgainstMockBackend:
    """Session manager against the mock backend."""

    @pytest.mark.asyncio
    async def test_multi_token_account(self, live_manager):
        # Act
        result = await live_manager.login("omar@stockship.com", "omar123", "trader")

        # Assert
        assert result.token == "tok-trader"
        assert result.profile["name"] == "Omar Trading Co."
        assert live_manager.get_active_roles() == [RoleKey.TRADER, RoleKey.CLIENT]

    @pytest.mark.asyncio
    async def test_linked_profile_account(self, live_manager):
        # Act
        result = await live_manager.login("sara@stockship.com", "sara123", "trader")

        # Assert
        assert result.role is RoleKey.TRADER
        assert result.token == "tok-sara"
        assert result.profile["name"] == "Sara Imports"
        assert live_manager.get_auth("client").token == "tok-sara"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, password, error", [
        ("admin@stockship.com", "wrong", InvalidCredentialsError),
        ("locked@stockship.com", "x", ForbiddenError),
        ("busy@stockship.com", "x", RateLimitedError),
        ("broken@stockship.com", "x", ServerError),
    ])
    async def test_backend_rejections(self, live_manager, email, password, error):
        # Act & Assert
        with pytest.raises(error):
            await live_manager.login(email, password)
        assert live_manager.get_active_roles() == []

    @pytest.mark.asyncio
    async def test_retry_after_from_backend(self, live_manager):
        # Act
        with pytest.raises(RateLimitedError) as exc_info:
            await live_manager.login("busy@stockship.com", "x")

        # Assert
        assert exc_info.value.retry_after == 30


class TestFullFlow:
    """The HTTP surface end to end."""

    def test_login_guard_switch_logout(self, settings, live_manager):
        # Arrange
        app = create_app(settings=settings, manager=live_manager)

        with TestClient(app, follow_redirects=False) as client:
            # Act: log in as employee, then as admin
            client.post("/session/login", json={"email": "omar@stockship.com", "password": "omar123"})
            client.post("/session/login", json={"email": "admin@stockship.com", "password": "admin123"})

            # Assert: admin active, employee page denied
            assert client.get("/stockship/admin/dashboard").status_code == 200
            assert client.get("/stockship/employee/dashboard").status_code == 403

            # Act: switch to employee
            client.post("/session/switch", json={"role": "employee"})

            # Assert
            assert client.get("/stockship/employee/dashboard").status_code == 200
            assert client.get("/session/token").json() == {"role": "admin", "token": "tok-admin"}

            # Act: logout everything
            client.post("/session/logout")

            # Assert
            response = client.get("/stockship/employee/dashboard")
            assert response.status_code == 307
            assert response.headers["location"].startswith("/multi-login?next=")
