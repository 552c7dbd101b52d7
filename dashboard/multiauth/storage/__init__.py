"""
Storage Package Initialization
==============================

Usage:
    from multiauth.storage import SessionStore, FileKeyValueBackend
"""

from pathlib import Path

from multiauth.core.config import Settings
from multiauth.storage.backends import (
    FileKeyValueBackend,
    KeyValueBackend,
    MemoryKeyValueBackend,
)
from multiauth.storage.session_store import ACTIVE_ROLE_KEY, SessionStore


def build_session_store(settings: Settings) -> SessionStore:
    """Create the session store selected by ``storage_backend``."""
    if settings.storage_backend == "memory":
        return SessionStore(MemoryKeyValueBackend())
    return SessionStore(FileKeyValueBackend(Path(settings.storage_path)))


__all__ = [
    "ACTIVE_ROLE_KEY",
    "FileKeyValueBackend",
    "KeyValueBackend",
    "MemoryKeyValueBackend",
    "SessionStore",
    "build_session_store",
]
