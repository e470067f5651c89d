"""Temporal code helpers.

A displayed code has the shape ``MM:SS:DD``: the UTC minute and second of
server time followed by a two-digit projection of the rotating salt. These
helpers are pure so they can be exercised with any timestamp.
"""
from __future__ import annotations

import re
import time
from dataclasses import dataclass

CODE_PATTERN = re.compile(r"^(\d{2}):(\d{2}):(\d{2})$")
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SALT_DIGITS_MODULUS = 100


@dataclass(frozen=True)
class ParsedCode:
    """A syntactically valid code split into its components."""

    minute: int
    second: int
    salt_digits: int

    @property
    def second_of_hour(self) -> int:
        return self.minute * SECONDS_PER_MINUTE + self.second


def salt_digits(salt_value: int) -> int:
    """Project a salt value onto the two digits shown in the code."""
    return salt_value % SALT_DIGITS_MODULUS


def second_of_hour(now: float) -> int:
    """Return the UTC ``minute * 60 + second`` for a POSIX timestamp."""
    tm = time.gmtime(now)
    return tm.tm_min * SECONDS_PER_MINUTE + tm.tm_sec


def format_code(salt_value: int, now: float) -> str:
    """Derive the code the server expects at ``now`` for a given salt."""
    tm = time.gmtime(now)
    return f"{tm.tm_min:02d}:{tm.tm_sec:02d}:{salt_digits(salt_value):02d}"


def parse_code(code: str) -> ParsedCode | None:
    """Parse ``MM:SS:DD``; return None for anything malformed."""
    match = CODE_PATTERN.match(code.strip())
    if match is None:
        return None
    minute, second, digits = (int(part) for part in match.groups())
    if minute >= SECONDS_PER_MINUTE or second >= SECONDS_PER_MINUTE:
        return None
    return ParsedCode(minute=minute, second=second, salt_digits=digits)


def circular_distance(a: int, b: int, modulus: int = SECONDS_PER_HOUR) -> int:
    """Shortest distance between two positions on a clock of ``modulus`` ticks.

    ``59:59`` and ``00:00`` are one second apart.
    """
    diff = abs(a - b) % modulus
    return min(diff, modulus - diff)
