"""Rotating salt and temporal code validation.

The server keeps two salt generations alive, ``current`` and ``previous``, and
replaces the pair atomically on a fixed period. A displayed code mixes the
salt into the wall-clock time; validation tolerates a small clock skew and a
code read just as the salt rolled over.

The flicker bit-sequence scheme in :mod:`rollcall.core.flicker` is the
documented alternative proof; it is a library only and not served over HTTP.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from typing import Literal

from rollcall.core import codes
from rollcall.core.settings import settings

logger = logging.getLogger(__name__)

SALT_UPPER_BOUND = 0x7FFFFFFF

FailureReason = Literal["format", "time", "salt"]


@dataclass(frozen=True)
class Salt:
    """One salt generation."""

    value: int
    created_at: float
    expires_at: float

    def accepts(self, now: float, accept_window: float) -> bool:
        """Return True while this generation is still honoured."""
        return now <= self.expires_at + accept_window


@dataclass(frozen=True)
class SaltPair:
    """Immutable snapshot of the two live generations."""

    current: Salt
    previous: Salt

    def generations(self) -> tuple[Salt, Salt]:
        return self.current, self.previous


class SaltRotator:
    """Owner of the process-wide salt pair."""

    def __init__(
        self,
        rotation_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.rotation_seconds = rotation_seconds or settings.rotation_seconds
        self._clock = clock
        now = clock()
        # The seeded previous generation expires at startup and only lives on
        # through the accept window.
        previous = self._make_salt(now - self.rotation_seconds)
        self._pair = SaltPair(current=self._make_salt(now), previous=previous)
        self._lock = Lock()

    def _make_salt(self, created_at: float) -> Salt:
        return Salt(
            value=secrets.randbelow(SALT_UPPER_BOUND),
            created_at=created_at,
            expires_at=created_at + self.rotation_seconds,
        )

    def snapshot(self) -> SaltPair:
        """Return the current pair; never a partially rotated one."""
        with self._lock:
            return self._pair

    def rotate(self) -> SaltPair:
        """Demote ``current`` to ``previous`` and mint a new ``current``."""
        with self._lock:
            self._pair = SaltPair(
                current=self._make_salt(self._clock()),
                previous=self._pair.current,
            )
            return self._pair

    def reset(self) -> None:
        """Discard both generations and start from a fresh pair."""
        with self._lock:
            now = self._clock()
            self._pair = SaltPair(
                current=self._make_salt(now),
                previous=self._make_salt(now - self.rotation_seconds),
            )


@dataclass(frozen=True)
class CodeCheck:
    """Result of validating a submitted temporal code."""

    ok: bool
    reason: FailureReason | None = None
    expected_codes: tuple[str, ...] = field(default_factory=tuple)


class TemporalCodeValidator:
    """Accepts codes within a bounded time and salt-rotation tolerance."""

    def __init__(
        self,
        rotator: SaltRotator,
        *,
        time_tolerance_seconds: int | None = None,
        accept_window_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rotator = rotator
        self.time_tolerance_seconds = (
            settings.code_time_tolerance_seconds
            if time_tolerance_seconds is None
            else time_tolerance_seconds
        )
        self.accept_window_seconds = (
            settings.accept_window_seconds
            if accept_window_seconds is None
            else accept_window_seconds
        )
        self._clock = clock

    @staticmethod
    def expected_code(salt: Salt, now: float) -> str:
        return codes.format_code(salt.value, now)

    def live_salts(self, now: float) -> list[Salt]:
        """Generations still inside their acceptance window, newest first."""
        pair = self._rotator.snapshot()
        return [s for s in pair.generations() if s.accepts(now, self.accept_window_seconds)]

    def expected_codes(self, now: float | None = None) -> tuple[str, ...]:
        """Codes the server would accept right now, for diagnostics."""
        now = self._clock() if now is None else now
        return tuple(dict.fromkeys(self.expected_code(s, now) for s in self.live_salts(now)))

    def validate(self, code: str, now: float | None = None) -> CodeCheck:
        now = self._clock() if now is None else now
        parsed = codes.parse_code(code)
        if parsed is None:
            return CodeCheck(ok=False, reason="format", expected_codes=self.expected_codes(now))

        distance = codes.circular_distance(parsed.second_of_hour, codes.second_of_hour(now))
        if distance > self.time_tolerance_seconds:
            return CodeCheck(ok=False, reason="time", expected_codes=self.expected_codes(now))

        for salt in self.live_salts(now):
            if codes.salt_digits(salt.value) == parsed.salt_digits:
                return CodeCheck(ok=True)
        return CodeCheck(ok=False, reason="salt", expected_codes=self.expected_codes(now))


class SaltRotationWorker:
    """Background task rotating the salt on a fixed period."""

    def __init__(self, rotator: SaltRotator, interval_seconds: float | None = None) -> None:
        self.rotator = rotator
        self.interval_seconds = interval_seconds or rotator.rotation_seconds
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the rotation loop if it is not already running."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())
        logger.info("Salt rotation started (every %.0f ms)", self.interval_seconds * 1000)

    async def stop(self) -> None:
        """Stop the rotation loop and wait for it to exit."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                self.rotator.rotate()
