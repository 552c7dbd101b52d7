"""
Key-Value Persistence Backends
==============================

Durable string storage addressed by fixed keys. Each key is stored on its
own, so writing one key never rewrites another.

Backends:
- FileKeyValueBackend: one file per key, atomic replace on write
- MemoryKeyValueBackend: process-local dict for tests and ephemeral runs
"""

from __future__ import annotations

import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Protocol

_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class KeyValueBackend(Protocol):
    """Minimal surface the session store needs from persistence."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def last_modified(self, key: str) -> Optional[datetime]:
        ...


def _check_key(key: str) -> str:
    if not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class FileKeyValueBackend:
    """
    Stores every key as a separate UTF-8 file inside a directory.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a reader sees either the old or the new
    value, never a partial one.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / _check_key(key)

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        target = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=str(self.directory),
            prefix=f".{key}.",
            delete=False,
            encoding="utf-8",
        ) as tf:
            tf.write(value)
            temp_path = Path(tf.name)
        try:
            os.replace(temp_path, target)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def last_modified(self, key: str) -> Optional[datetime]:
        try:
            mtime = self._path(key).stat().st_mtime
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(mtime, tz=timezone.utc)


class MemoryKeyValueBackend:
    """In-memory backend; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = {}
        self._modified: Dict[str, datetime] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[str]:
        return self._values.get(_check_key(key))

    def set(self, key: str, value: str) -> None:
        self._values[_check_key(key)] = value
        self._modified[key] = datetime.now(timezone.utc)

    def delete(self, key: str) -> None:
        self._values.pop(_check_key(key), None)
        self._modified.pop(key, None)

    def last_modified(self, key: str) -> Optional[datetime]:
        return self._modified.get(key)

    def keys(self) -> list[str]:
        return sorted(self._values)
