"""Flicker bit-sequence verification.

Alternative proof scheme: the display encodes one pseudorandom bit per fixed
period (e.g. left/right luminance asymmetry) and the client reports the bits it
sampled. The expected bit at logical index ``i`` is drawn from a deterministic
PRNG seeded with ``seed + i`` so that display and server agree without sharing
state beyond the per-session seed.

The temporal code is the protocol of record; this module is kept as a library
so the display side and offline tooling can reproduce the sequence.
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from rollcall.core.settings import settings

UINT32_MASK = 0xFFFFFFFF
UINT32_RANGE = 4294967296
MULBERRY_INCREMENT = 0x6D2B79F5
DEFAULT_ALLOWED_MISMATCHES = 2


def _to_int32(value: int) -> int:
    value &= UINT32_MASK
    return value - UINT32_RANGE if value & 0x80000000 else value


def _imul(a: int, b: int) -> int:
    return ((a & UINT32_MASK) * (b & UINT32_MASK)) & UINT32_MASK


def hash32(text: str) -> int:
    """Return the signed 32-bit ``h = h * 31 + ch`` hash of ``text``."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & UINT32_MASK
    return _to_int32(h)


def mulberry32(seed: int) -> Callable[[], float]:
    """Return a mulberry32 generator yielding floats in ``[0, 1)``."""
    state = seed & UINT32_MASK

    def _next() -> float:
        nonlocal state
        state = (state + MULBERRY_INCREMENT) & UINT32_MASK
        t = _imul(state ^ (state >> 15), state | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK) ^ t
        return ((t ^ (t >> 14)) & UINT32_MASK) / UINT32_RANGE

    return _next


def get_bit(seed: int, index: int) -> int:
    """Expected bit at logical ``index`` for ``seed``."""
    return int(mulberry32(seed + index)() * 2)


def session_seed(session_id: str, phase: str) -> int:
    """Seed shared by the display and the validator for one session phase."""
    return hash32(f"{session_id}|{phase}")


def expected_bits(seed: int, last_index: int, length: int) -> list[int]:
    """Bits for indices ``last_index - length + 1 .. last_index``."""
    return [get_bit(seed, last_index - (length - 1 - j)) for j in range(length)]


@dataclass(frozen=True)
class FlickerResult:
    """Outcome of a bit-sequence check.

    On failure ``matched``/``offset`` describe the best alignment seen so the
    client can keep sampling.
    """

    ok: bool
    matched: int
    needed: int
    offset: int


def validate_bits(
    bits: Sequence[int],
    seed: int,
    now_ms: float,
    period_ms: int | None = None,
    *,
    window: int | None = None,
    threshold: int | None = None,
) -> FlickerResult:
    """Validate sampled bits against the server's own clock.

    Offset ``0`` assumes the last sampled bit is the one for the current
    period; offsets down to ``-(window - 1)`` absorb network and camera lag.
    """
    period_ms = period_ms or settings.flicker_bit_period_ms
    window = window or settings.flicker_window
    length = len(bits)
    needed = threshold if threshold is not None else max(0, length - DEFAULT_ALLOWED_MISMATCHES)
    if length == 0:
        return FlickerResult(ok=False, matched=0, needed=needed, offset=0)

    i_now = int(now_ms // period_ms)
    best_matched, best_offset = -1, 0
    for offset in range(0, -window, -1):
        expected = expected_bits(seed, i_now + offset, length)
        matched = sum(1 for got, want in zip(bits, expected) if got == want)
        if matched >= needed:
            return FlickerResult(ok=True, matched=matched, needed=needed, offset=offset)
        if matched > best_matched:
            best_matched, best_offset = matched, offset
    return FlickerResult(ok=False, matched=best_matched, needed=needed, offset=best_offset)
