"""Tests for salt rotation and temporal code validation."""

import asyncio

import pytest

from rollcall.core.codes import format_code
from rollcall.services.salt import SaltRotationWorker, SaltRotator, TemporalCodeValidator
from tests.conftest import FakeClock


@pytest.fixture()
def fixed_salts(mocker):
    """Salt values handed out in creation order: previous, current, then rotations."""
    return mocker.patch(
        "rollcall.services.salt.secrets.randbelow",
        side_effect=[11, 22, 33, 44, 55],
    )


def _validator(rotator: SaltRotator, clock: FakeClock) -> TemporalCodeValidator:
    return TemporalCodeValidator(
        rotator, time_tolerance_seconds=1, accept_window_seconds=1.0, clock=clock
    )


def test_rotation_keeps_two_generations(clock: FakeClock, fixed_salts) -> None:
    rotator = SaltRotator(0.6, clock=clock)
    first = rotator.snapshot()
    assert (first.current.value, first.previous.value) == (22, 11)

    clock.advance(0.6)
    second = rotator.rotate()
    assert second.previous == first.current
    assert second.current.value == 33
    assert second.current.created_at == pytest.approx(clock.now)
    assert second.current.expires_at == pytest.approx(clock.now + 0.6)


def test_current_code_is_accepted(clock: FakeClock, fixed_salts) -> None:
    rotator = SaltRotator(0.6, clock=clock)
    validator = _validator(rotator, clock)
    code = validator.expected_code(rotator.snapshot().current, clock.now)

    assert code == format_code(22, clock.now)
    assert validator.validate(code).ok is True


def test_time_tolerance(clock: FakeClock, fixed_salts) -> None:
    rotator = SaltRotator(0.6, clock=clock)
    validator = _validator(rotator, clock)

    assert validator.validate(format_code(22, clock.now + 1)).ok is True
    assert validator.validate(format_code(22, clock.now - 1)).ok is True

    result = validator.validate(format_code(22, clock.now + 2))
    assert result.ok is False
    assert result.reason == "time"


def test_time_tolerance_across_hour_boundary(fixed_salts) -> None:
    top_of_hour = 1_700_000_000 - (1_700_000_000 % 3600) + 3600
    clock = FakeClock(top_of_hour - 1)  # XX:59:59
    rotator = SaltRotator(0.6, clock=clock)
    validator = _validator(rotator, clock)

    assert validator.validate("00:00:22").ok is True
    assert validator.validate("59:58:22").ok is True
    assert validator.validate("00:01:22").reason == "time"


def test_previous_salt_honoured_within_accept_window(clock: FakeClock, fixed_salts) -> None:
    rotator = SaltRotator(0.6, clock=clock)
    validator = _validator(rotator, clock)

    clock.advance(0.6)
    rotator.rotate()  # current=33, previous=22 expiring now
    assert validator.validate(format_code(22, clock.now)).ok is True

    clock.advance(0.9)
    assert validator.validate(format_code(22, clock.now)).ok is True

    clock.advance(0.2)
    result = validator.validate(format_code(22, clock.now))
    assert result.ok is False
    assert result.reason == "salt"
    assert validator.validate(format_code(33, clock.now)).ok is True

    clock.advance(0.6)
    assert validator.validate(format_code(33, clock.now)).reason == "salt"


def test_failure_lists_valid_codes_without_raw_salt(clock: FakeClock, fixed_salts) -> None:
    rotator = SaltRotator(0.6, clock=clock)
    validator = _validator(rotator, clock)

    result = validator.validate("xx")
    assert result.reason == "format"
    assert format_code(22, clock.now) in result.expected_codes
    assert all(len(code) == 8 for code in result.expected_codes)


def test_two_generations_beyond_window_are_rejected(clock: FakeClock, fixed_salts) -> None:
    rotator = SaltRotator(0.6, clock=clock)
    validator = _validator(rotator, clock)
    for _ in range(3):
        clock.advance(0.6)
        rotator.rotate()

    # 22 was the current salt three rotations ago and is no longer tracked.
    assert validator.validate(format_code(22, clock.now)).reason == "salt"
    assert validator.validate(format_code(55, clock.now)).ok is True


def test_reset_discards_previous_pair(clock: FakeClock, fixed_salts) -> None:
    rotator = SaltRotator(0.6, clock=clock)
    rotator.reset()
    pair = rotator.snapshot()
    assert {pair.current.value, pair.previous.value} == {33, 44}


@pytest.mark.asyncio
async def test_rotation_worker_rotates_until_stopped() -> None:
    rotator = SaltRotator(0.6)
    worker = SaltRotationWorker(rotator, interval_seconds=0.01)
    before = rotator.snapshot()

    await worker.start()
    assert worker.running
    await asyncio.sleep(0.1)
    await worker.stop()

    assert not worker.running
    assert rotator.snapshot() is not before
