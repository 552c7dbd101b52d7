"""
Session Manager Module
======================

Stateful orchestrator of the multi-role sessions held by one dashboard.

Responsibilities:
- Restoring persisted sessions once at startup
- Login: calling the authenticator, resolving which role/token becomes the
  primary session, distributing linked role sessions into the store
- Logout of one role or of every role
- Tracking the single active role used for authorization

It is the only component that mutates the session store or the active
role. Mutations are serialized through one asyncio lock; reads are plain
attribute lookups on state that is swapped in a single step.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError

from multiauth.core.exceptions import (
    LoginFailedError,
    MalformedResponseError,
    MultiAuthException,
    RoleNotAvailableError,
    SessionMissingError,
    SessionStorageError,
    UnknownRoleError,
)
from multiauth.core.logging import get_logger, session_logger
from multiauth.models.role_enum import (
    ROLE_PRIORITY,
    RoleKey,
    normalize_role,
    to_backend_role,
)
from multiauth.schemas.auth import AuthPayload, LoginResult
from multiauth.schemas.session import SessionRecord
from multiauth.services.auth_client import Authenticator
from multiauth.storage.session_store import SessionStore

logger = get_logger(__name__)

RoleLike = Union[RoleKey, str]


def _role_label(role: Optional[RoleLike]) -> Optional[str]:
    if isinstance(role, RoleKey):
        return role.value
    return role


def _empty_records() -> Dict[RoleKey, SessionRecord]:
    return {role: SessionRecord.empty(role) for role in ROLE_PRIORITY}


class SessionManager:
    """
    Multi-role session manager.

    Usage:
        manager = SessionManager(store, authenticator)
        manager.init()
        result = await manager.login("a@b.com", "secret", "trader")
        token = manager.get_active_token("trader")
    """

    def __init__(self, store: SessionStore, authenticator: Authenticator):
        """
        Args:
            store: Persistent session slots
            authenticator: Backend login collaborator
        """
        self.store = store
        self.authenticator = authenticator
        self._records: Dict[RoleKey, SessionRecord] = _empty_records()
        self._active_role: Optional[RoleKey] = None
        self._loading = True
        self._lock = asyncio.Lock()

    # --------------------------
    # Lifecycle
    # --------------------------

    def init(self) -> None:
        """
        Restore persisted sessions; runs once, later calls are no-ops.

        A persisted active role whose slot is empty is not restored.
        """
        if not self._loading:
            return

        self._reload_from_store()
        self._loading = False

        logger.info(
            "sessions_restored",
            roles=[role.value for role in self.get_active_roles()],
            active_role=self._active_role.value if self._active_role else None,
        )

    def _reload_from_store(self) -> None:
        """Replace in-memory state with what persistence currently holds."""
        records = self.store.read()
        active_role = self.store.read_active_role()
        if active_role is not None and records[active_role].is_empty:
            logger.warning("stale_active_role_ignored", role=active_role.value)
            active_role = None

        self._records = records
        self._active_role = active_role

    def _recover_from_storage_error(self, operation: str, error: OSError) -> None:
        logger.error(
            "session_persist_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )
        self._reload_from_store()

    @property
    def loading(self) -> bool:
        return self._loading

    # --------------------------
    # Queries
    # --------------------------

    @property
    def active_role(self) -> Optional[RoleKey]:
        return self._active_role

    def sessions(self) -> Dict[RoleKey, SessionRecord]:
        """Copy of every role slot, empty ones included."""
        return dict(self._records)

    def get_auth(self, role: RoleLike) -> SessionRecord:
        role_key = normalize_role(role)
        if role_key is None:
            raise UnknownRoleError(_role_label(role))
        return self._records[role_key]

    def is_logged_in(self, role: RoleLike) -> bool:
        role_key = normalize_role(role)
        return role_key is not None and not self._records[role_key].is_empty

    def get_active_roles(self) -> List[RoleKey]:
        """Roles holding a session, in ROLE_PRIORITY order."""
        return [role for role in ROLE_PRIORITY if not self._records[role].is_empty]

    def get_active_token(self, preferred_role: Optional[RoleLike] = None) -> Optional[str]:
        """
        Token for API calls.

        Args:
            preferred_role: Role whose token is wanted. When omitted, the
                first logged-in role in ROLE_PRIORITY is used.

        Returns:
            The token, or None when no matching session exists
        """
        if preferred_role is not None:
            role_key = normalize_role(preferred_role)
            if role_key is None:
                return None
            return self._records[role_key].token

        for role in ROLE_PRIORITY:
            record = self._records[role]
            if not record.is_empty:
                return record.token
        return None

    # --------------------------
    # Login
    # --------------------------

    async def login(
        self,
        email: str,
        password: str,
        requested_role: Optional[RoleLike] = None,
    ) -> LoginResult:
        """
        Authenticate and store the resulting role sessions.

        Args:
            email: Account email
            password: Account password
            requested_role: Role the user asked to operate as

        Returns:
            LoginResult for the role that became active

        Raises:
            MultiAuthException: InvalidCredentials, Forbidden, RateLimited,
                ServerError, NetworkError, UnknownRole, MalformedResponse
                or LoginFailed. Slots written before a storage failure are
                rolled back.
        """
        async with self._lock:
            self.init()
            try:
                return await self._login(email, password, requested_role)
            except MultiAuthException as e:
                session_logger.log_login_failure(
                    email=email,
                    kind=e.kind,
                    reason=e.message,
                    requested_role=_role_label(requested_role),
                )
                raise

    async def _login(
        self,
        email: str,
        password: str,
        requested_role: Optional[RoleLike],
    ) -> LoginResult:
        requested_key: Optional[RoleKey] = None
        if requested_role:
            requested_key = normalize_role(requested_role)
            if requested_key is None:
                raise UnknownRoleError(_role_label(requested_role))

        try:
            raw = await self.authenticator.login(
                email,
                password,
                role=to_backend_role(requested_key) if requested_key else None,
            )
        except MultiAuthException:
            raise
        except Exception as e:
            logger.exception("authenticator_failed", error_type=type(e).__name__)
            raise LoginFailedError() from e

        payload = self._parse_payload(raw)
        selected_role, token, profile = self._resolve_primary(payload, requested_key)

        now = datetime.now(timezone.utc)
        updates: Dict[RoleKey, SessionRecord] = {
            selected_role: SessionRecord(
                role=selected_role,
                token=token,
                profile={**profile, "userType": to_backend_role(selected_role)},
                last_updated=now,
            )
        }
        for role, linked_token, linked_profile in self._linked_sessions(payload, selected_role):
            updates[role] = SessionRecord(
                role=role,
                token=linked_token,
                profile={**linked_profile, "userType": to_backend_role(role)},
                last_updated=now,
            )

        # Records first, active role last; memory swapped only after both persisted
        try:
            for role, record in updates.items():
                self.store.write(role, record)
            self.store.write_active_role(selected_role)
        except OSError as e:
            self._rollback_login(updates)
            self._recover_from_storage_error("login", e)
            raise LoginFailedError(
                message="Could not save the session. Please try again.",
                details={"reason": "storage"},
            ) from e

        records = dict(self._records)
        records.update(updates)
        self._records = records
        self._active_role = selected_role

        session_logger.log_login_success(
            email=email,
            role=selected_role.value,
            stored_roles=[role.value for role in updates],
        )

        primary = updates[selected_role]
        return LoginResult(
            role=selected_role,
            token=primary.token,
            profile=primary.profile,
            available_roles=self._available_roles(payload, selected_role),
        )

    def _rollback_login(self, updates: Dict[RoleKey, SessionRecord]) -> None:
        """Put back the slots and active role a failed login may have overwritten."""
        try:
            for role in updates:
                self.store.write(role, self._records[role])
            self.store.write_active_role(self._active_role)
        except OSError as e:
            logger.error("login_rollback_failed", error=str(e))

    @staticmethod
    def _parse_payload(raw: Any) -> AuthPayload:
        if not isinstance(raw, dict):
            raise MalformedResponseError(missing=["body"])

        body = raw["data"] if isinstance(raw.get("data"), dict) else raw
        try:
            payload = AuthPayload.model_validate(body)
        except ValidationError as e:
            fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
            raise MalformedResponseError(missing=fields) from e

        missing = []
        if not payload.primary_token:
            missing.append("token")
        if not payload.user:
            missing.append("user")
        if missing:
            raise MalformedResponseError(missing=missing)
        return payload

    @staticmethod
    def _resolve_primary(
        payload: AuthPayload,
        requested_role: Optional[RoleKey],
    ) -> Tuple[RoleKey, str, Dict[str, Any]]:
        """
        Pick the role, token and profile of the primary session.

        With a requested role: its own roleTokens entry and profile, else the
        primary token (with the role's own profile when one was sent) if the
        role is listed as available or is the backend's primary role.
        """
        primary_role = normalize_role(payload.primary_role)

        if requested_role is None:
            if primary_role is None:
                raise UnknownRoleError(payload.primary_role)
            return primary_role, payload.primary_token, payload.user

        role_token = payload.role_token(requested_role)
        role_profile = payload.profile_for(requested_role)
        if role_token and role_profile:
            return requested_role, role_token, role_profile

        if payload.lists_role(requested_role) or primary_role == requested_role:
            return requested_role, payload.primary_token, role_profile or payload.user

        raise RoleNotAvailableError(
            requested_role=requested_role.value,
            available_roles=payload.available_roles or ([payload.primary_role] if payload.primary_role else []),
        )

    @staticmethod
    def _linked_sessions(
        payload: AuthPayload,
        primary_role: RoleKey,
    ) -> Iterator[Tuple[RoleKey, str, Dict[str, Any]]]:
        """
        Additional role sessions granted by the same login.

        Uses roleTokens when present; otherwise every available role reuses
        the primary token. Roles without a resolvable profile are skipped.
        """
        if payload.role_tokens:
            candidates = list(payload.role_tokens.items())
        elif len(payload.available_roles) > 1:
            candidates = [(name, payload.primary_token) for name in payload.available_roles]
        else:
            return

        seen = {primary_role}
        for role_name, token in candidates:
            role = normalize_role(role_name)
            if role is None:
                logger.warning("linked_role_unknown", role=role_name)
                continue
            if role in seen or not token:
                continue
            profile = payload.profile_for(role)
            if profile is None:
                logger.debug("linked_role_without_profile", role=role.value)
                continue
            seen.add(role)
            yield role, token, profile

    @staticmethod
    def _available_roles(payload: AuthPayload, selected_role: RoleKey) -> List[RoleKey]:
        roles: List[RoleKey] = []
        for role_name in payload.available_roles:
            role = normalize_role(role_name)
            if role is not None and role not in roles:
                roles.append(role)
        return roles or [selected_role]

    # --------------------------
    # Logout & Role Switch
    # --------------------------

    async def logout(self, role: Optional[RoleLike] = None) -> None:
        """
        Erase one role's session, or every session when no role is given.

        Logging out the active role clears the active role; it never falls
        back to another logged-in role.
        """
        async with self._lock:
            self.init()

            if role is None:
                had_active = self._active_role is not None
                try:
                    self.store.clear_all()
                except OSError as e:
                    self._recover_from_storage_error("logout", e)
                    raise SessionStorageError("logout") from e
                self._records = _empty_records()
                self._active_role = None
                session_logger.log_logout(
                    roles=[r.value for r in ROLE_PRIORITY],
                    active_cleared=had_active,
                )
                return

            role_key = normalize_role(role)
            if role_key is None:
                raise UnknownRoleError(_role_label(role))

            clears_active = self._active_role == role_key
            try:
                self.store.write(role_key, SessionRecord.empty(role_key))
                if clears_active:
                    self.store.write_active_role(None)
            except OSError as e:
                self._recover_from_storage_error("logout", e)
                raise SessionStorageError("logout") from e

            records = dict(self._records)
            records[role_key] = SessionRecord.empty(role_key)
            self._records = records
            if clears_active:
                self._active_role = None

            session_logger.log_logout(roles=[role_key.value], active_cleared=clears_active)

    async def switch_role(self, role: RoleLike) -> RoleKey:
        """
        Make another logged-in role the active one.

        Raises:
            UnknownRoleError: If the role does not normalize
            SessionMissingError: If the role has no stored session
            SessionStorageError: If the new active role cannot be persisted
        """
        async with self._lock:
            self.init()

            role_key = normalize_role(role)
            if role_key is None:
                raise UnknownRoleError(_role_label(role))
            if self._records[role_key].is_empty:
                raise SessionMissingError(role_key.value)

            previous = self._active_role
            try:
                self.store.write_active_role(role_key)
            except OSError as e:
                self._recover_from_storage_error("switch_role", e)
                raise SessionStorageError("switch_role") from e
            self._active_role = role_key

            session_logger.log_role_switch(
                previous=previous.value if previous else None,
                current=role_key.value,
            )
            return role_key
