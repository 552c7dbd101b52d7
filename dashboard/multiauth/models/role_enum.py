"""
Role Enumeration Module
=======================

Defines every role a person can authenticate as, and the normalization
between backend role strings and the canonical keys.

Security Purpose:
- Prevents arbitrary role injection
- Unknown role strings never fall back to a default role
"""

from enum import Enum
from typing import Optional, Union


class RoleKey(str, Enum):
    """
    Canonical role identifiers used as session slot keys.
    """

    ADMIN = "admin"
    MODERATOR = "moderator"
    EMPLOYEE = "employee"
    VENDOR = "vendor"
    TRADER = "trader"
    CLIENT = "client"


# Deterministic order for token lookup and active-role listing
ROLE_PRIORITY: tuple[RoleKey, ...] = (
    RoleKey.ADMIN,
    RoleKey.MODERATOR,
    RoleKey.EMPLOYEE,
    RoleKey.VENDOR,
    RoleKey.TRADER,
    RoleKey.CLIENT,
)

# Backend strings that map onto a role other than their own name
ROLE_ALIASES: dict[str, RoleKey] = {
    "USER": RoleKey.CLIENT,
}


def normalize_role(value: Union[str, RoleKey, None]) -> Optional[RoleKey]:
    """
    Map an arbitrary-case backend role string onto a RoleKey.

    Args:
        value: Role string such as ``"EMPLOYEE"``, ``"user"`` or a RoleKey

    Returns:
        The matching RoleKey, or None when the value is not recognized
    """
    if isinstance(value, RoleKey):
        return value
    if not isinstance(value, str):
        return None

    candidate = value.strip().upper()
    if not candidate:
        return None
    if candidate in ROLE_ALIASES:
        return ROLE_ALIASES[candidate]

    try:
        return RoleKey(candidate.lower())
    except ValueError:
        return None


def to_backend_role(role: RoleKey) -> str:
    """Return the upper-case role string the backend expects."""
    return role.value.upper()


def same_role(first: Union[str, RoleKey, None], second: Union[str, RoleKey, None]) -> bool:
    """Check whether two role strings normalize to the same known role."""
    first_key = normalize_role(first)
    return first_key is not None and first_key == normalize_role(second)
