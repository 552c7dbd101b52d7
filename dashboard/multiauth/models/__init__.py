"""
Model Package Initialization
============================

Exports the role registry.

Usage:
    from multiauth.models import RoleKey, normalize_role
"""

from .role_enum import (
    ROLE_ALIASES,
    ROLE_PRIORITY,
    RoleKey,
    normalize_role,
    same_role,
    to_backend_role,
)

__all__ = [
    "ROLE_ALIASES",
    "ROLE_PRIORITY",
    "RoleKey",
    "normalize_role",
    "same_role",
    "to_backend_role",
]
