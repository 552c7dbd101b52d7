"""
Authentication Schemas Module
=============================

Pydantic models for the login flow:
- Requests accepted by the dashboard shell
- The backend login payload (trusted shape, tolerant parsing)
- The login result handed back to the UI
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from multiauth.models.role_enum import RoleKey, same_role


# ==========================
# Request Schemas
# ==========================

class LoginRequest(BaseModel):
    """Login request schema."""

    email: str = Field(
        ...,
        min_length=1,
        description="Login identifier, validated by the backend",
        examples=["trader@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        description="User password",
    )
    role: Optional[str] = Field(
        default=None,
        description="Role the user wants to operate as",
        examples=["trader"]
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "trader@example.com",
                "password": "SecureP@ss123",
                "role": "trader",
            }
        }
    )


class LogoutRequest(BaseModel):
    """Logout request schema; no role means logout of every role."""

    role: Optional[str] = None


class SwitchRoleRequest(BaseModel):
    """Explicit active-role switch."""

    role: str = Field(..., min_length=1)


# ==========================
# Backend Payload
# ==========================

class AuthPayload(BaseModel):
    """
    Body of a successful backend login, after the ``data`` envelope.

    One person may hold several roles, so besides the primary token and
    user the backend can send per-role tokens and profiles.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: Optional[str] = None
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    user: Optional[Dict[str, Any]] = None
    role_tokens: Dict[str, Optional[str]] = Field(default_factory=dict, alias="roleTokens")
    role_profiles: Dict[str, Optional[Dict[str, Any]]] = Field(default_factory=dict, alias="roleProfiles")
    linked_profiles: List[Dict[str, Any]] = Field(default_factory=list, alias="linkedProfiles")
    available_roles: List[str] = Field(default_factory=list, alias="availableRoles")

    @field_validator("role_tokens", "role_profiles", mode="before")
    @classmethod
    def none_as_empty_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("linked_profiles", "available_roles", mode="before")
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def primary_token(self) -> Optional[str]:
        return self.token or self.access_token

    @property
    def primary_role(self) -> Optional[str]:
        if not self.user:
            return None
        return self.user.get("userType") or self.user.get("role")

    def lists_role(self, role: RoleKey) -> bool:
        """Check whether ``availableRoles`` names the role."""
        return any(same_role(entry, role) for entry in self.available_roles)

    def role_token(self, role: RoleKey) -> Optional[str]:
        """Dedicated token for a role, if the backend issued one."""
        for role_name, token in self.role_tokens.items():
            if token and same_role(role_name, role):
                return token
        return None

    def profile_for(self, role: RoleKey) -> Optional[Dict[str, Any]]:
        """
        Find the profile belonging to a role.

        Looks at ``roleProfiles`` first, then ``linkedProfiles``, then the
        primary user when it already carries that role.
        """
        for role_name, profile in self.role_profiles.items():
            if profile and same_role(role_name, role):
                return profile
        for profile in self.linked_profiles:
            if same_role(profile.get("userType"), role):
                return profile
        if same_role(self.primary_role, role):
            return self.user
        return None


# ==========================
# Response Schemas
# ==========================

class LoginResult(BaseModel):
    """Outcome of a successful login."""

    role: RoleKey = Field(..., description="Role that became active")
    token: str = Field(..., description="Token stored for the active role")
    profile: Dict[str, Any] = Field(..., description="Profile stored for the active role")
    available_roles: List[RoleKey] = Field(
        default_factory=list,
        description="Roles the account holds according to the backend",
    )


class ErrorResponse(BaseModel):
    """Rejected-operation payload."""

    kind: str = Field(..., description="Failure kind")
    message: str = Field(..., description="Human-readable message")
    details: Dict[str, Any] = Field(default_factory=dict)
