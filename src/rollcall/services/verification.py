"""Single-use verification tokens bound to a connection key."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from rollcall.core.settings import settings

TOKEN_BYTES = 16


@dataclass(frozen=True)
class VerificationToken:
    """A minted proof that the holder passed a presence check."""

    id: str
    connection_key: str
    expires_at: float
    method: str = "code"


class VerificationLedger:
    """Mints and consumes verification tokens.

    A token is redeemable once, and only with the exact connection key it was
    issued for, so a token observed on one connection cannot be replayed from
    another.
    """

    def __init__(
        self,
        default_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.default_ttl_seconds = default_ttl_seconds or settings.verification_ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._tokens: dict[str, VerificationToken] = {}

    def issue(
        self,
        connection_key: str,
        ttl_seconds: float | None = None,
        *,
        method: str = "code",
    ) -> str:
        """Create a token for ``connection_key`` and return its id."""
        ttl = ttl_seconds or self.default_ttl_seconds
        with self._lock:
            now = self._clock()
            self._purge(now)
            token = VerificationToken(
                id=secrets.token_urlsafe(TOKEN_BYTES),
                connection_key=connection_key,
                expires_at=now + ttl,
                method=method,
            )
            self._tokens[token.id] = token
            return token.id

    def redeem(self, token_id: str, connection_key: str) -> VerificationToken | None:
        """Consume a token and return it, or None if it cannot be consumed."""
        with self._lock:
            self._purge(self._clock())
            token = self._tokens.get(token_id)
            if token is None or token.connection_key != connection_key:
                return None
            del self._tokens[token_id]
            return token

    def restore(self, token: VerificationToken) -> bool:
        """Put back a redeemed token whose check-in was rolled back.

        Returns False if the token expired in the meantime.
        """
        with self._lock:
            now = self._clock()
            self._purge(now)
            if token.expires_at <= now:
                return False
            self._tokens.setdefault(token.id, token)
            return True

    def consume(self, token_id: str, connection_key: str) -> bool:
        """Return True exactly once for a live token with a matching key."""
        return self.redeem(token_id, connection_key) is not None

    def __len__(self) -> int:
        with self._lock:
            self._purge(self._clock())
            return len(self._tokens)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def _purge(self, now: float) -> None:
        expired = [tid for tid, token in self._tokens.items() if token.expires_at <= now]
        for tid in expired:
            del self._tokens[tid]
