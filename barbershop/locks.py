# barbershop/locks.py

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable

from .errors import BookingTimeoutError

logger = logging.getLogger(__name__)

CHIEF_ROLE_KEY = "chief-role"


class KeyedLock:
    """One exclusive lock per key, created the first time the key is used."""

    def __init__(self, name: str = "lock") -> None:
        self.name = name
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._mutex = threading.Lock()

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._mutex:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: Hashable, timeout: float):
        lock = self._lock_for(key)
        if not lock.acquire(timeout=timeout):
            logger.warning("Timed out after %.2fs waiting for %s %r", timeout, self.name, key)
            raise BookingTimeoutError(
                f"Timed out waiting for {self.name} {key!r}; try again"
            )
        try:
            yield
        finally:
            lock.release()


# Process-wide instances shared by every request.
barber_locks = KeyedLock("barber schedule")
role_locks = KeyedLock("chief role")
