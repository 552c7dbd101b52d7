"""
Session Store Module
====================

Keyed persistence of one credential bundle per role.

Layout (one backend key each):
- ``{role}_token``: opaque token string
- ``{role}_user``: JSON-encoded profile object
- ``active_role``: canonical role key

A slot is only valid when both its token and its profile read back cleanly;
anything else collapses to an empty record.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from multiauth.core.logging import get_logger
from multiauth.models.role_enum import ROLE_PRIORITY, RoleKey, normalize_role
from multiauth.schemas.session import SessionRecord
from multiauth.storage.backends import KeyValueBackend

logger = get_logger(__name__)


ACTIVE_ROLE_KEY = "active_role"


def token_key(role: RoleKey) -> str:
    return f"{role.value}_token"


def user_key(role: RoleKey) -> str:
    return f"{role.value}_user"


class SessionStore:
    """
    Durable session slots, one per RoleKey.

    Usage:
        store = SessionStore(FileKeyValueBackend(".sessions"))
        records = store.read()
        store.write(RoleKey.TRADER, record)
    """

    def __init__(self, backend: KeyValueBackend):
        self.backend = backend

    # --------------------------
    # Reads
    # --------------------------

    def read(self) -> Dict[RoleKey, SessionRecord]:
        """
        Load every role slot independently.

        Returns:
            Mapping covering the full RoleKey set; missing or corrupt
            slots are empty records
        """
        return {role: self.read_slot(role) for role in ROLE_PRIORITY}

    def read_slot(self, role: RoleKey) -> SessionRecord:
        try:
            raw_token = self.backend.get(token_key(role))
            raw_profile = self.backend.get(user_key(role))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("session_slot_unreadable", role=role.value, error=str(e))
            return SessionRecord.empty(role)

        token = raw_token.strip() if isinstance(raw_token, str) else None
        profile = self._decode_profile(raw_profile)

        if not token or profile is None:
            if raw_token is not None or raw_profile is not None:
                logger.warning(
                    "session_slot_invalid",
                    role=role.value,
                    has_token=bool(token),
                    has_profile=profile is not None,
                )
            return SessionRecord.empty(role)

        try:
            last_updated = self.backend.last_modified(token_key(role))
        except OSError:
            last_updated = None

        return SessionRecord(
            role=role,
            token=token,
            profile=profile,
            last_updated=last_updated,
        )

    def read_active_role(self) -> Optional[RoleKey]:
        try:
            raw = self.backend.get(ACTIVE_ROLE_KEY)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("active_role_unreadable", error=str(e))
            return None
        return normalize_role(raw)

    @staticmethod
    def _decode_profile(raw: Optional[str]) -> Optional[Dict[str, Any]]:
        if raw is None:
            return None
        try:
            profile = json.loads(raw)
        except (TypeError, ValueError):
            return None
        return profile if isinstance(profile, dict) else None

    # --------------------------
    # Writes
    # --------------------------

    def write(self, role: RoleKey, record: SessionRecord) -> None:
        """
        Write or erase exactly one role slot.

        The token is removed first and written last, so an interrupted
        write reads back as an empty slot rather than a mismatched pair.
        """
        if record.role != role:
            raise ValueError(f"Record for {record.role.value} written to {role.value} slot")

        self.backend.delete(token_key(role))
        if record.is_empty:
            self.backend.delete(user_key(role))
            return

        self.backend.set(user_key(role), json.dumps(record.profile, default=str))
        self.backend.set(token_key(role), record.token)

    def write_active_role(self, role: Optional[RoleKey]) -> None:
        if role is None:
            self.backend.delete(ACTIVE_ROLE_KEY)
        else:
            self.backend.set(ACTIVE_ROLE_KEY, role.value)

    def clear_all(self) -> None:
        """Erase every role slot and the active role."""
        for role in ROLE_PRIORITY:
            self.backend.delete(token_key(role))
            self.backend.delete(user_key(role))
        self.backend.delete(ACTIVE_ROLE_KEY)
