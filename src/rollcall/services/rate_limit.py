"""Minimum-spacing limiter for check-in submissions."""

from __future__ import annotations

import time
from collections.abc import Callable
from threading import Lock

from rollcall.core.settings import settings


class CheckinRateLimiter:
    """Allows at most one submission per key per window."""

    def __init__(
        self,
        window_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.window_seconds = (
            settings.checkin_window_ms / 1000 if window_seconds is None else window_seconds
        )
        self._clock = clock
        self._lock = Lock()
        self._last_allowed: dict[str, float] = {}

    def allow(self, key: str) -> bool:
        """Return True and record the time if the key is outside its window."""
        with self._lock:
            now = self._clock()
            last = self._last_allowed.get(key)
            if last is not None and now - last < self.window_seconds:
                return False
            self._last_allowed[key] = now
            self._sweep(now)
            return True

    def retry_after(self, key: str) -> float:
        """Seconds until ``key`` may submit again; 0 when it already may."""
        with self._lock:
            last = self._last_allowed.get(key)
            if last is None:
                return 0.0
            return max(0.0, self.window_seconds - (self._clock() - last))

    def release(self, key: str) -> None:
        """Forget the last allowed submission for ``key``."""
        with self._lock:
            self._last_allowed.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._last_allowed.clear()

    def _sweep(self, now: float) -> None:
        stale = [k for k, last in self._last_allowed.items() if now - last >= self.window_seconds]
        for k in stale:
            del self._last_allowed[k]
