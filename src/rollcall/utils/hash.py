# src/rollcall/utils/hash.py
"""Hashing helpers for deriving opaque keys from client attributes."""

from __future__ import annotations

from collections.abc import Iterable

from blake3 import blake3

KEY_SEPARATOR = "|"


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal BLAKE3 digest of the supplied data."""
    return blake3(data).hexdigest()


def fingerprint(parts: Iterable[str | None]) -> str:
    """Hash an ordered tuple of attributes into a fixed-length key.

    ``None`` is treated as an empty component so that a missing header never
    shifts the remaining fields.
    """
    joined = KEY_SEPARATOR.join("" if part is None else str(part) for part in parts)
    return blake3_hexdigest(joined.encode("utf-8"))
