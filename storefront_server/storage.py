"""Persistent client-side storage: local key-value store and cookie jar."""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class KeyValueStorage(Protocol):
    """Durable string-keyed storage of JSON-compatible values."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, lost when the process exits."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self.data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStorage:
    """Storage backed by a single JSON document on disk.

    Every write rewrites the file before returning, so a mutation is
    durable as soon as the call that triggered it completes.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        """
        Initialize file storage.

        Args:
            path: Path to the state file (default: ~/.storefront_session.json)
        """
        if path is None:
            path = str(Path.home() / ".storefront_session.json")
        self.path = path
        self.data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            # If file is corrupted, start fresh
            logger.warning(f"Could not load state from {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring non-object state in {self.path}")
            return {}
        return data

    def _save(self) -> None:
        with open(self.path, "w") as f:
            json.dump(self.data, f, indent=2, default=str)
        # Set restrictive permissions on state file
        os.chmod(self.path, 0o600)

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if key in self.data:
            del self.data[key]
            self._save()


class CookieStore:
    """Cookie jar with absolute expirations, kept in a storage backend."""

    STORAGE_KEY = "cookies"

    def __init__(self, storage: KeyValueStorage, clock: Clock = time.time) -> None:
        self.storage = storage
        self.clock = clock

    def _jar(self) -> dict[str, dict[str, Any]]:
        jar = self.storage.get(self.STORAGE_KEY)
        return dict(jar) if isinstance(jar, dict) else {}

    def set(self, name: str, value: str, max_age: float, path: str = "/") -> float:
        """Store a cookie expiring ``max_age`` seconds from now; returns the expiry."""
        expires = self.clock() + max_age
        jar = self._jar()
        jar[name] = {"value": value, "path": path, "expires": expires}
        self.storage.set(self.STORAGE_KEY, jar)
        return expires

    def get(self, name: str) -> Optional[str]:
        """Return the cookie value, or None when absent or expired."""
        jar = self._jar()
        cookie = jar.get(name)
        if not cookie:
            return None
        if cookie.get("expires") is not None and cookie["expires"] <= self.clock():
            logger.info(f"Cookie '{name}' expired")
            del jar[name]
            self.storage.set(self.STORAGE_KEY, jar)
            return None
        return cookie.get("value")

    def expires_at(self, name: str) -> Optional[float]:
        if self.get(name) is None:
            return None
        return self._jar()[name].get("expires")

    def remove(self, name: str) -> None:
        jar = self._jar()
        if name in jar:
            del jar[name]
            self.storage.set(self.STORAGE_KEY, jar)
