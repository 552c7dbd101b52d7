"""
Role Registry Unit Tests
========================

Tests for:
- RoleKey values and priority order
- normalize_role case handling and aliases
- Rejection of unknown role strings
- Backend role strings
"""

import pytest

from multiauth.models.role_enum import (
    ROLE_PRIORITY,
    RoleKey,
    normalize_role,
    same_role,
    to_backend_role,
)


pytestmark = pytest.mark.unit


class TestRoleKey:
    """Tests for the closed role enumeration."""

    def test_role_priority_order(self):
        """Priority order is admin, moderator, employee, vendor, trader, client."""
        # Assert
        assert ROLE_PRIORITY == (
            RoleKey.ADMIN,
            RoleKey.MODERATOR,
            RoleKey.EMPLOYEE,
            RoleKey.VENDOR,
            RoleKey.TRADER,
            RoleKey.CLIENT,
        )

    def test_priority_covers_every_role(self):
        """Every RoleKey appears exactly once in the priority order."""
        # Assert
        assert sorted(ROLE_PRIORITY) == sorted(RoleKey)
        assert len(set(ROLE_PRIORITY)) == len(RoleKey)

    def test_values_are_lower_case(self):
        """Canonical keys are lower-case singular strings."""
        # Assert
        assert all(role.value == role.value.lower() for role in RoleKey)


class TestNormalizeRole:
    """Tests for normalize_role."""

    @pytest.mark.parametrize("role", list(RoleKey))
    def test_upper_case_round_trip(self, role):
        """normalize(r.upper()) == r for every role."""
        # Act & Assert
        assert normalize_role(role.value.upper()) is role

    def test_mixed_case_and_whitespace(self):
        """Case and surrounding whitespace are ignored."""
        # Act & Assert
        assert normalize_role("  Trader ") is RoleKey.TRADER
        assert normalize_role("eMpLoYeE") is RoleKey.EMPLOYEE

    def test_user_alias_matches_client(self):
        """USER and CLIENT both normalize to client."""
        # Act & Assert
        assert normalize_role("USER") == normalize_role("CLIENT") == RoleKey.CLIENT
        assert normalize_role("user") is RoleKey.CLIENT

    def test_role_key_passes_through(self):
        """A RoleKey is returned unchanged."""
        # Act & Assert
        assert normalize_role(RoleKey.VENDOR) is RoleKey.VENDOR

    @pytest.mark.parametrize("value", ["superuser", "", "   ", None, 42, "admins"])
    def test_unknown_values_return_none(self, value):
        """Unrecognized input is a valid None result, not an error."""
        # Act & Assert
        assert normalize_role(value) is None


class TestBackendRoles:
    """Tests for backend-facing helpers."""

    def test_to_backend_role(self):
        """Backend role strings are upper-case."""
        # Act & Assert
        assert to_backend_role(RoleKey.CLIENT) == "CLIENT"
        assert to_backend_role(RoleKey.MODERATOR) == "MODERATOR"

    def test_same_role(self):
        """same_role compares normalized keys."""
        # Act & Assert
        assert same_role("USER", RoleKey.CLIENT)
        assert same_role("trader", "TRADER")
        assert not same_role("trader", "employee")
        assert not same_role("nobody", "nobody")
