"""
Session Routes Module
=====================

Handles:
- Login as a role (possibly populating several role sessions)
- Logout of one role or of every role
- Explicit active-role switch
- Query surface: state, token lookup, route guard decision

Failures propagate as MultiAuthException and are rendered by the
application's exception handler as ``{kind, message, details}``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from multiauth.core.dependencies.route_guard import (
    evaluate_route,
    get_session_manager,
)
from multiauth.core.exceptions import UnknownRoleError
from multiauth.core.logging import get_logger
from multiauth.models.role_enum import RoleKey, normalize_role
from multiauth.schemas import (
    ErrorResponse,
    GuardDecisionResponse,
    LoginRequest,
    LoginResult,
    LogoutRequest,
    SessionStateResponse,
    SwitchRoleRequest,
    TokenResponse,
)
from multiauth.services.session_manager import SessionManager

# Initialize logger
logger = get_logger(__name__)


# =====================================
# Router Setup
# =====================================

router = APIRouter(
    prefix="/session",
    tags=["Session"],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Role access forbidden"},
        422: {"model": ErrorResponse, "description": "Unknown role"},
        429: {"model": ErrorResponse, "description": "Too many login attempts"},
        502: {"model": ErrorResponse, "description": "Backend error"},
        503: {"model": ErrorResponse, "description": "Backend unreachable"},
    },
)


def build_state(manager: SessionManager) -> SessionStateResponse:
    return SessionStateResponse(
        loading=manager.loading,
        active_role=manager.active_role,
        active_roles=manager.get_active_roles(),
        profiles={
            role: record.profile
            for role, record in manager.sessions().items()
            if not record.is_empty
        },
    )


# =====================================
# Login / Logout / Switch
# =====================================

@router.post(
    "/login",
    response_model=LoginResult,
    summary="Login as a role",
)
async def login(
    login_data: LoginRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> LoginResult:
    """
    Authenticate against the backend and make the requested role active.

    Other roles' sessions are kept whether the login succeeds or fails.
    """
    return await manager.login(
        email=login_data.email,
        password=login_data.password,
        requested_role=login_data.role,
    )


@router.post(
    "/logout",
    response_model=SessionStateResponse,
    summary="Logout one role or all roles",
)
async def logout(
    logout_data: Optional[LogoutRequest] = None,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    role = logout_data.role if logout_data else None
    await manager.logout(role)
    return build_state(manager)


@router.post(
    "/switch",
    response_model=SessionStateResponse,
    summary="Switch the active role",
)
async def switch_role(
    switch_data: SwitchRoleRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    await manager.switch_role(switch_data.role)
    return build_state(manager)


# =====================================
# Queries
# =====================================

@router.get(
    "/state",
    response_model=SessionStateResponse,
    summary="Current session state",
)
def get_state(
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    return build_state(manager)


@router.get(
    "/token",
    response_model=TokenResponse,
    summary="Token for API calls",
)
def get_token(
    role: Optional[str] = Query(default=None, description="Preferred role"),
    manager: SessionManager = Depends(get_session_manager),
) -> TokenResponse:
    role_key: Optional[RoleKey] = None
    if role is not None:
        role_key = normalize_role(role)
        if role_key is None:
            raise UnknownRoleError(role)
    else:
        active_roles = manager.get_active_roles()
        role_key = active_roles[0] if active_roles else None

    return TokenResponse(role=role_key, token=manager.get_active_token(role_key))


@router.get(
    "/guard",
    response_model=GuardDecisionResponse,
    summary="Route guard decision",
)
def get_guard_decision(
    request: Request,
    required: list[str] = Query(..., description="Role(s) the route accepts"),
    path: Optional[str] = Query(default=None, description="Path being navigated to"),
    manager: SessionManager = Depends(get_session_manager),
) -> GuardDecisionResponse:
    """
    Evaluate a navigation without performing it.

    Lets a UI render a loading placeholder, redirect to login, or show an
    access-denied page.
    """
    required_roles = []
    for entry in required:
        role = normalize_role(entry)
        if role is None:
            raise UnknownRoleError(entry)
        required_roles.append(role)

    decision = evaluate_route(
        manager,
        required_roles,
        requested_path=path,
        login_path=request.app.state.settings.login_path,
    )
    return GuardDecisionResponse(
        state=decision.state.value,
        role=decision.role,
        required_roles=list(decision.required_roles),
        redirect_to=decision.redirect_to,
    )
