"""
Schemas Package Initialization
==============================

Exports all Pydantic schemas for the application.

Usage:
    from multiauth.schemas import LoginRequest, SessionRecord
"""

# Auth schemas
from multiauth.schemas.auth import (
    AuthPayload,
    ErrorResponse,
    LoginRequest,
    LoginResult,
    LogoutRequest,
    SwitchRoleRequest,
)

# Session schemas
from multiauth.schemas.session import (
    GuardDecisionResponse,
    SessionRecord,
    SessionStateResponse,
    TokenResponse,
)

__all__ = [
    # Auth
    "AuthPayload",
    "ErrorResponse",
    "LoginRequest",
    "LoginResult",
    "LogoutRequest",
    "SwitchRoleRequest",
    # Session
    "GuardDecisionResponse",
    "SessionRecord",
    "SessionStateResponse",
    "TokenResponse",
]
