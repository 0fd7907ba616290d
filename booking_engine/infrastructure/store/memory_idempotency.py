from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Iterator

from booking_engine.application.ports.idempotency_store import IdempotencyStorePort


class MemoryIdempotencyStore(IdempotencyStorePort):
    """
    Token -> appointment id records with a TTL.

    Per-token locks are reference counted and dropped once no caller holds
    or waits on them; expired records are swept on every `remember`.
    """

    def __init__(self, ttl_seconds: int = 86400) -> None:
        self._ttl_seconds = ttl_seconds
        self._entries: dict[str, tuple[str, float]] = {}
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._lock_lock = threading.Lock()

    def _acquire_ref(self, token: str) -> threading.Lock:
        with self._lock_lock:
            lock, refs = self._locks.get(token, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[token] = (lock, refs + 1)
            return lock

    def _release_ref(self, token: str) -> None:
        with self._lock_lock:
            lock, refs = self._locks[token]
            if refs <= 1:
                del self._locks[token]
            else:
                self._locks[token] = (lock, refs - 1)

    @contextmanager
    def hold(self, token: str) -> Iterator[None]:
        lock = self._acquire_ref(token)
        try:
            with lock:
                yield
        finally:
            self._release_ref(token)

    def get(self, token: str) -> str | None:
        with self._lock_lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            appointment_id, expires_at = entry
            if expires_at <= time.monotonic():
                del self._entries[token]
                return None
            return appointment_id

    def remember(self, token: str, appointment_id: str) -> None:
        now = time.monotonic()
        with self._lock_lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
            self._entries[token] = (appointment_id, now + self._ttl_seconds)

    def forget(self, token: str) -> None:
        with self._lock_lock:
            self._entries.pop(token, None)

    def held_tokens(self) -> int:
        with self._lock_lock:
            return len(self._locks)

    def __len__(self) -> int:
        with self._lock_lock:
            return len(self._entries)
