"""
Session Schemas Module
======================

Pydantic models describing one role's stored credentials and the
dashboard-facing view of the whole session state.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from multiauth.models.role_enum import RoleKey


class SessionRecord(BaseModel):
    """
    Credential bundle stored for a single role.

    A record is empty unless both token and profile are present.
    """

    model_config = ConfigDict(frozen=True)

    role: RoleKey
    token: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def empty(cls, role: RoleKey) -> "SessionRecord":
        """Build the explicit empty record for a role."""
        return cls(role=role)

    @property
    def is_empty(self) -> bool:
        return not self.token or self.profile is None


class SessionStateResponse(BaseModel):
    """Query surface of the session manager as seen by the UI."""

    loading: bool = Field(..., description="True until persisted sessions are restored")
    active_role: Optional[RoleKey] = Field(default=None, description="Role the UI operates as")
    active_roles: List[RoleKey] = Field(
        default_factory=list,
        description="Roles holding a session, in priority order",
    )
    profiles: Dict[RoleKey, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Stored profile per logged-in role",
    )


class TokenResponse(BaseModel):
    """Token lookup result for API-calling collaborators."""

    role: Optional[RoleKey] = None
    token: Optional[str] = None


class GuardDecisionResponse(BaseModel):
    """Route guard decision for a navigation."""

    state: str
    role: Optional[RoleKey] = None
    required_roles: List[RoleKey] = Field(default_factory=list)
    redirect_to: Optional[str] = None
