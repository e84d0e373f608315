from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class LockTimeout(TimeoutError):
    pass


class KeyedLocks:
    """One mutex per key, kept only while someone holds or waits for it."""

    def __init__(self, timeout: float) -> None:
        self._timeout = timeout
        self._locks: dict[object, threading.Lock] = {}
        self._users: dict[object, int] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: object) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: object) -> None:
        with self._guard:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, key: object) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self._timeout):
                raise LockTimeout(f"Timed out after {self._timeout}s waiting for lock on {key!r}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)
