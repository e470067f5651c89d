"""Short-lived proof challenges keyed by session and phase."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from rollcall.core.settings import settings

CHALLENGE_BYTES = 16


@dataclass(frozen=True)
class Challenge:
    """A single issued challenge value."""

    value: str
    expires_at: float
    ttl_ms: int

    @property
    def expires_at_ms(self) -> int:
        return int(self.expires_at * 1000)


class ChallengeStore:
    """Sliding-window store of single-use challenges.

    Several challenges may be live for the same ``(session_id, phase)`` at once
    so a value photographed just before the display refreshed is still honoured.
    """

    def __init__(
        self,
        default_ttl_ms: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._default_ttl_ms = default_ttl_ms or settings.challenge_ttl_ms
        self._clock = clock
        self._lock = Lock()
        self._entries: dict[tuple[str, str], list[Challenge]] = {}

    def issue(self, session_id: str, phase: str, ttl_ms: int | None = None) -> Challenge:
        """Append a fresh challenge for the key and return it."""
        ttl = ttl_ms or self._default_ttl_ms
        key = (session_id, phase)
        with self._lock:
            now = self._clock()
            live = self._purge(key, now)
            challenge = Challenge(
                value=secrets.token_urlsafe(CHALLENGE_BYTES),
                expires_at=now + ttl / 1000,
                ttl_ms=ttl,
            )
            live.append(challenge)
            self._entries[key] = live
            return challenge

    def validate(self, session_id: str, phase: str, value: str) -> bool:
        """Return True once for a live matching value, then forget it.

        Unknown keys behave exactly like keys whose challenges all expired.
        """
        key = (session_id, phase)
        with self._lock:
            live = self._purge(key, self._clock())
            for index, challenge in enumerate(live):
                if challenge.value == value:
                    del live[index]
                    if not live:
                        self._entries.pop(key, None)
                    return True
            return False

    def live_count(self, session_id: str, phase: str) -> int:
        with self._lock:
            return len(self._purge((session_id, phase), self._clock()))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge(self, key: tuple[str, str], now: float) -> list[Challenge]:
        live = [c for c in self._entries.get(key, []) if c.expires_at > now]
        if live:
            self._entries[key] = live
        else:
            self._entries.pop(key, None)
        return live
