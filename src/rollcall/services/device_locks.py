"""Device lock table enforcing one identifier per device and session phase."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from rollcall.core.settings import settings


@dataclass
class DeviceLock:
    device_key: str
    identifier: str
    expires_at: float


@dataclass(frozen=True)
class LockResult:
    """Outcome of :meth:`DeviceLockTable.acquire`."""

    ok: bool
    existing_identifier: str | None = None
    created: bool = False


class DeviceLockTable:
    """Binds a device key to the first identifier it submits.

    Re-submitting the same identifier refreshes the lock; a different
    identifier is refused while the lock is live and the recorded identifier
    is returned so the caller can audit the conflict.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds or settings.device_lock_ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._locks: dict[str, DeviceLock] = {}

    def acquire(self, device_key: str, identifier: str) -> LockResult:
        with self._lock:
            now = self._clock()
            self._purge(now)
            expires_at = now + self.ttl_seconds
            entry = self._locks.get(device_key)
            if entry is None:
                self._locks[device_key] = DeviceLock(device_key, identifier, expires_at)
                return LockResult(ok=True, created=True)
            if entry.identifier == identifier:
                entry.expires_at = expires_at
                return LockResult(ok=True)
            return LockResult(ok=False, existing_identifier=entry.identifier)

    def release(self, device_key: str, identifier: str) -> None:
        """Drop the lock on ``device_key`` if ``identifier`` still holds it."""
        with self._lock:
            entry = self._locks.get(device_key)
            if entry is not None and entry.identifier == identifier:
                del self._locks[device_key]

    def holder(self, device_key: str) -> str | None:
        """Identifier currently bound to ``device_key``, if any."""
        with self._lock:
            self._purge(self._clock())
            entry = self._locks.get(device_key)
            return entry.identifier if entry else None

    def clear(self) -> None:
        with self._lock:
            self._locks.clear()

    def _purge(self, now: float) -> None:
        expired = [key for key, entry in self._locks.items() if entry.expires_at <= now]
        for key in expired:
            del self._locks[key]
