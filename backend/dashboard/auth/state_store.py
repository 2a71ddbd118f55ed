from __future__ import annotations

import hmac
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Protocol

from sqlalchemy.orm import Session

from dashboard.core.time import utcnow
from dashboard.repos.oauth_states import consume_state, delete_expired_states, get_state, put_state


class StateStore(Protocol):
    def put(self, key: str, value: str, ttl: float) -> None: ...

    def get(self, key: str) -> str | None: ...

    def consume(self, key: str, value: str) -> bool: ...


class MemoryStateStore:
    """Process-local store with per-entry expiry. Safe to share across threads."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._items: dict[str, tuple[str, float]] = {}

    def put(self, key: str, value: str, ttl: float) -> None:
        now = self._clock()
        with self._lock:
            self._purge(now)
            self._items[key] = (value, now + ttl)

    def get(self, key: str) -> str | None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            value, expires = item
            if expires <= self._clock():
                del self._items[key]
                return None
            return value

    def consume(self, key: str, value: str) -> bool:
        """Remove the entry and return True only if it is live and holds ``value``."""

        with self._lock:
            item = self._items.get(key)
            if item is None:
                return False
            expected, expires = item
            if expires <= self._clock():
                del self._items[key]
                return False
            if not hmac.compare_digest(expected.encode("utf-8"), value.encode("utf-8")):
                return False
            del self._items[key]
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _purge(self, now: float) -> None:
        expired = [k for k, (_, expires) in self._items.items() if expires <= now]
        for k in expired:
            del self._items[k]


class DatabaseStateStore:
    """Store backed by the oauth_states table, for deployments with several app instances."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def put(self, key: str, value: str, ttl: float) -> None:
        with self._session_factory() as db:
            delete_expired_states(db)
            put_state(db, key=key, value=value, expires_at=utcnow() + timedelta(seconds=ttl))

    def get(self, key: str) -> str | None:
        with self._session_factory() as db:
            row = get_state(db, key=key)
            return row.value if row is not None else None

    def consume(self, key: str, value: str) -> bool:
        with self._session_factory() as db:
            return consume_state(db, key=key, value=value)
