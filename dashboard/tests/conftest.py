"""
Test Configuration and Fixtures
================================

Central configuration for pytest with all shared fixtures.

Features:
- In-memory key-value backend for session persistence
- Scripted authenticator standing in for the backend
- Session manager fixtures (restored and still loading)
- TestClient wired to an explicit manager
"""

import json
from typing import Any, Dict, Generator, List, Optional, Union

import pytest
from fastapi.testclient import TestClient

from multiauth.core.config import Settings
from multiauth.main import create_app
from multiauth.models.role_enum import RoleKey
from multiauth.services.session_manager import SessionManager
from multiauth.storage import MemoryKeyValueBackend, SessionStore


# =====================================
# Scripted Authenticator
# =====================================

class FakeAuthenticator:
    """
    Authenticator returning canned bodies, or raising canned errors, per email.
    """

    def __init__(self, responses: Optional[Dict[str, Union[Dict[str, Any], Exception]]] = None):
        self.responses: Dict[str, Union[Dict[str, Any], Exception]] = dict(responses or {})
        self.calls: List[Dict[str, Any]] = []

    async def login(self, email: str, password: str, role: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append({"email": email, "password": password, "role": role})
        response = self.responses[email]
        if isinstance(response, Exception):
            raise response
        return response


def profile(user_id: int, user_type: str, email: str = "omar@stockship.com") -> Dict[str, Any]:
    return {"id": user_id, "email": email, "userType": user_type}


def employee_with_trader_tokens() -> Dict[str, Any]:
    """Backend answer for an employee who is also a trader and a client."""
    return {
        "success": True,
        "data": {
            "token": "tok-employee",
            "user": profile(2, "EMPLOYEE"),
            "availableRoles": ["EMPLOYEE", "TRADER", "CLIENT"],
            "roleTokens": {"TRADER": "tok-trader", "CLIENT": "tok-client"},
            "roleProfiles": {"TRADER": profile(7, "TRADER"), "CLIENT": profile(11, "CLIENT")},
        },
    }


def single_role(token: str, user_type: str, user_id: int = 1) -> Dict[str, Any]:
    return {"data": {"token": token, "user": profile(user_id, user_type)}}


def seed_session(
    backend: MemoryKeyValueBackend,
    role: RoleKey,
    token: str,
    user: Optional[Dict[str, Any]] = None,
) -> None:
    """Write a session slot straight into persistence."""
    backend.set(f"{role.value}_token", token)
    backend.set(f"{role.value}_user", json.dumps(user or profile(1, role.value.upper())))


# =====================================
# Persistence Fixtures
# =====================================

@pytest.fixture
def memory_backend() -> MemoryKeyValueBackend:
    return MemoryKeyValueBackend()


@pytest.fixture
def session_store(memory_backend: MemoryKeyValueBackend) -> SessionStore:
    return SessionStore(memory_backend)


# =====================================
# Manager Fixtures
# =====================================

@pytest.fixture
def authenticator() -> FakeAuthenticator:
    return FakeAuthenticator({
        "omar@stockship.com": employee_with_trader_tokens(),
        "admin@stockship.com": single_role("tok-admin", "ADMIN"),
        "trader@stockship.com": single_role("tok-trader-only", "TRADER", 30),
        "client@stockship.com": single_role("tok-client-only", "USER", 40),
    })


@pytest.fixture
def loading_manager(session_store: SessionStore, authenticator: FakeAuthenticator) -> SessionManager:
    """Manager whose persisted sessions have not been restored yet."""
    return SessionManager(session_store, authenticator)


@pytest.fixture
def manager(loading_manager: SessionManager) -> SessionManager:
    loading_manager.init()
    return loading_manager


# =====================================
# Application Fixtures
# =====================================

@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage_backend="memory",
        api_base_url="http://backend.test/api",
        login_path="/multi-login",
        debug=True,
    )


@pytest.fixture
def client(settings: Settings, loading_manager: SessionManager) -> Generator[TestClient, None, None]:
    """
    TestClient around an app using the fixture manager.

    Entering the client runs the lifespan, which restores sessions.
    """
    app = create_app(settings=settings, manager=loading_manager)
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
