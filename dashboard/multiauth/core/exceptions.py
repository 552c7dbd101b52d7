"""
Centralized Exception Handling Module
=====================================

Defines the exception taxonomy of the session manager.

Every failure carries:
- a stable ``kind`` string the UI can switch on
- a human-readable message
- the HTTP status code the dashboard shell answers with
- structured details

Usage:
    raise InvalidCredentialsError()
    raise RateLimitedError(retry_after=30)
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class MultiAuthException(Exception):
    """
    Base exception class for the session manager.

    All custom exceptions should inherit from this class.
    """

    kind: str = "Error"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the exception as a rejected-operation payload."""
        return {
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


# ==========================
# Login Exceptions
# ==========================

class LoginFailedError(MultiAuthException):
    """Raised when a login fails for a reason outside the known taxonomy."""

    kind = "LoginFailed"

    def __init__(
        self,
        message: str = "Login failed. Please try again.",
        status_code: int = status.HTTP_502_BAD_GATEWAY,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            details=details,
        )


class MalformedResponseError(LoginFailedError):
    """Raised when a successful login response lacks a token or user."""

    kind = "MalformedResponse"

    def __init__(self, missing: List[str]):
        super().__init__(
            message="Login response is missing required fields",
            details={"missing": missing},
        )


class InvalidCredentialsError(MultiAuthException):
    """Raised when the backend rejects the email/password pair."""

    kind = "InvalidCredentials"

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message=message or "Invalid email or password",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class ForbiddenError(MultiAuthException):
    """Raised when the backend, or role resolution, denies the requested role."""

    kind = "Forbidden"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Access to this role is forbidden",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class RoleNotAvailableError(ForbiddenError):
    """Raised when the requested role is not among the roles the account holds."""

    def __init__(self, requested_role: str, available_roles: List[str]):
        listed = ", ".join(available_roles) or "none"
        super().__init__(
            message=f"You do not have access to the {requested_role} role. "
                    f"Available roles: {listed}",
            details={
                "requested_role": requested_role,
                "available_roles": available_roles,
            },
        )


class RateLimitedError(MultiAuthException):
    """Raised when the backend throttles login attempts."""

    kind = "RateLimited"

    def __init__(self, retry_after: int = 15):
        super().__init__(
            message=f"Too many login attempts. Please wait {retry_after} seconds "
                    "before trying again.",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details={"retry_after_seconds": retry_after},
        )
        self.retry_after = retry_after


class ServerError(MultiAuthException):
    """Raised when the backend answers with a server fault."""

    kind = "ServerError"

    def __init__(self, upstream_status: int = 500, message: Optional[str] = None):
        super().__init__(
            message=message or "The server encountered an error. Please try again later.",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"upstream_status": upstream_status},
        )


class NetworkError(MultiAuthException):
    """Raised when no response reached the dashboard."""

    kind = "NetworkError"

    def __init__(self, reason: str = "No response from server"):
        super().__init__(
            message="Could not reach the server. Check your connection.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"reason": reason},
        )


# ==========================
# Role Exceptions
# ==========================

class UnknownRoleError(MultiAuthException):
    """Raised when a requested or returned role string does not normalize."""

    kind = "UnknownRole"

    def __init__(self, role: Optional[str]):
        super().__init__(
            message=f"Unknown user role: {role!r}",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"role": role},
        )


class SessionMissingError(MultiAuthException):
    """Raised when switching to a role that has no stored session."""

    kind = "SessionMissing"

    def __init__(self, role: str):
        super().__init__(
            message=f"No active session for the {role} role. Please log in first.",
            status_code=status.HTTP_409_CONFLICT,
            details={"role": role},
        )


class SessionStorageError(MultiAuthException):
    """Raised when session persistence fails during logout or a role switch."""

    kind = "StorageError"

    def __init__(self, operation: str):
        super().__init__(
            message="Could not update the stored sessions. Please try again.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"operation": operation},
        )


# ==========================
# Route Guard Exceptions
# ==========================

class SessionsLoadingError(MultiAuthException):
    """Raised by protected routes while persisted sessions are being restored."""

    kind = "Loading"

    def __init__(self, retry_after: int = 1):
        super().__init__(
            message="Sessions are still loading",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"retry_after_seconds": retry_after},
        )
        self.retry_after = retry_after


class AccessDeniedError(MultiAuthException):
    """Raised when the active role does not satisfy a route's requirement."""

    kind = "AccessDenied"

    def __init__(
        self,
        required_roles: List[str],
        active_role: Optional[str],
        redirect_to: Optional[str],
    ):
        super().__init__(
            message="Your active role is not authorized for this page",
            status_code=status.HTTP_403_FORBIDDEN,
            details={
                "required_roles": required_roles,
                "active_role": active_role,
                "redirect_to": redirect_to,
            },
        )
