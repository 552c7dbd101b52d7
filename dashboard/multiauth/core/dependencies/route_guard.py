"""
Route Guard Module
==================

Decides whether a protected navigation may proceed, and exposes that
decision as a FastAPI dependency.

States:
- LOADING: persisted sessions not restored yet; no decision is taken
- UNAUTHENTICATED: no role holds a session; go to login, keep the path
- AUTHORIZED: the active role is required by the route and has a session
- DENIED: some session exists but the active role does not qualify

Strict role check: a stored token for the required role is not enough,
that role must also be the active one.

Usage:
    @router.get("/stockship/admin/dashboard")
    def admin_dashboard(record: SessionRecord = Depends(require_active_role(RoleKey.ADMIN))):
        return {"profile": record.profile}
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Tuple, Union
from urllib.parse import urlencode

from fastapi import Depends, HTTPException, Request, status

from multiauth.core.exceptions import AccessDeniedError, SessionsLoadingError
from multiauth.core.logging import get_logger, session_logger
from multiauth.models.role_enum import RoleKey, normalize_role
from multiauth.schemas.session import SessionRecord
from multiauth.services.session_manager import SessionManager

logger = get_logger(__name__)


# =====================================
# Dashboards
# =====================================

DEFAULT_LOGIN_PATH = "/multi-login"

ROLE_DASHBOARDS: dict[RoleKey, str] = {
    RoleKey.ADMIN: "/stockship/admin/dashboard",
    RoleKey.MODERATOR: "/moderator-dashboard",
    RoleKey.EMPLOYEE: "/stockship/employee/dashboard",
    RoleKey.TRADER: "/stockship/trader/dashboard",
    RoleKey.CLIENT: "/",
}

# Order used to pick a dashboard when the active role has none
DASHBOARD_FALLBACK_ORDER: tuple[RoleKey, ...] = (
    RoleKey.ADMIN,
    RoleKey.MODERATOR,
    RoleKey.EMPLOYEE,
    RoleKey.TRADER,
    RoleKey.CLIENT,
)


# =====================================
# Decision
# =====================================

class GuardState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHORIZED = "authorized"
    DENIED = "denied"


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of evaluating one navigation."""

    state: GuardState
    role: Optional[RoleKey] = None
    required_roles: Tuple[RoleKey, ...] = ()
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.state is GuardState.AUTHORIZED


RequiredRoles = Union[RoleKey, str, Iterable[Union[RoleKey, str]]]


def normalize_required_roles(required: RequiredRoles) -> Tuple[RoleKey, ...]:
    """
    Turn a role or collection of roles into a tuple of RoleKeys.

    Raises:
        ValueError: If any entry is not a known role, or none is given
    """
    entries = [required] if isinstance(required, (str, RoleKey)) else list(required)
    roles: list[RoleKey] = []
    for entry in entries:
        role = normalize_role(entry)
        if role is None:
            raise ValueError(f"Unknown required role: {entry!r}")
        if role not in roles:
            roles.append(role)
    if not roles:
        raise ValueError("At least one required role must be given")
    return tuple(roles)


def login_redirect(login_path: str, requested_path: Optional[str] = None) -> str:
    """Login URL carrying the originally requested path for the return trip."""
    if not requested_path:
        return login_path
    return f"{login_path}?{urlencode({'next': requested_path})}"


def resolve_dashboard(manager: SessionManager, login_path: str = DEFAULT_LOGIN_PATH) -> str:
    """
    Dashboard a denied navigation should be sent to.

    The active role's dashboard wins when that role has a session; then the
    first role of DASHBOARD_FALLBACK_ORDER holding a session; then login.
    """
    active_role = manager.active_role
    if (
        active_role is not None
        and active_role in ROLE_DASHBOARDS
        and manager.is_logged_in(active_role)
    ):
        return ROLE_DASHBOARDS[active_role]

    for role in DASHBOARD_FALLBACK_ORDER:
        if manager.is_logged_in(role):
            return ROLE_DASHBOARDS[role]
    return login_path


def evaluate_route(
    manager: SessionManager,
    required_roles: RequiredRoles,
    requested_path: Optional[str] = None,
    login_path: str = DEFAULT_LOGIN_PATH,
) -> GuardDecision:
    """
    Evaluate a navigation against the current session state.

    Pure and synchronous: repeated calls with unchanged state return equal
    decisions.

    Args:
        manager: Session manager whose state is consulted
        required_roles: Role, or roles, the route accepts
        requested_path: Path the user tried to reach
        login_path: Where unauthenticated users are sent

    Returns:
        GuardDecision
    """
    required = normalize_required_roles(required_roles)

    if manager.loading:
        return GuardDecision(state=GuardState.LOADING, required_roles=required)

    if not manager.get_active_roles():
        return GuardDecision(
            state=GuardState.UNAUTHENTICATED,
            required_roles=required,
            redirect_to=login_redirect(login_path, requested_path),
        )

    active_role = manager.active_role
    if active_role in required and manager.is_logged_in(active_role):
        return GuardDecision(
            state=GuardState.AUTHORIZED,
            role=active_role,
            required_roles=required,
        )

    return GuardDecision(
        state=GuardState.DENIED,
        role=active_role,
        required_roles=required,
        redirect_to=resolve_dashboard(manager, login_path),
    )


# =====================================
# FastAPI Dependencies
# =====================================

def get_session_manager(request: Request) -> SessionManager:
    """Session manager constructed for this application instance."""
    return request.app.state.session_manager


def _login_path(request: Request) -> str:
    settings = getattr(request.app.state, "settings", None)
    return settings.login_path if settings is not None else DEFAULT_LOGIN_PATH


def _requested_path(request: Request) -> str:
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path


def require_active_role(*allowed_roles: Union[RoleKey, str]) -> Callable:
    """
    Create a dependency that requires one of the given roles to be active.

    Args:
        *allowed_roles: Roles accepted by the route

    Returns:
        Dependency function yielding the active role's SessionRecord
    """
    required = normalize_required_roles(allowed_roles)

    async def role_checker(
        request: Request,
        manager: SessionManager = Depends(get_session_manager),
    ) -> SessionRecord:
        path = _requested_path(request)
        decision = evaluate_route(
            manager,
            required,
            requested_path=path,
            login_path=_login_path(request),
        )

        if decision.state is GuardState.LOADING:
            raise SessionsLoadingError()

        if decision.state is GuardState.UNAUTHENTICATED:
            logger.info("route_requires_login", path=path)
            raise HTTPException(
                status_code=status.HTTP_307_TEMPORARY_REDIRECT,
                detail="Login required",
                headers={"Location": decision.redirect_to},
            )

        if decision.state is GuardState.DENIED:
            session_logger.log_route_denied(
                path=path,
                required_roles=[r.value for r in required],
                active_role=decision.role.value if decision.role else None,
                redirect_to=decision.redirect_to,
            )
            raise AccessDeniedError(
                required_roles=[r.value for r in required],
                active_role=decision.role.value if decision.role else None,
                redirect_to=decision.redirect_to,
            )

        return manager.get_auth(decision.role)

    return role_checker
