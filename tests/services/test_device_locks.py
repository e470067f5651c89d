"""Tests for the device lock table."""

from concurrent.futures import ThreadPoolExecutor

from rollcall.services.device_locks import DeviceLockTable, LockResult
from tests.conftest import FakeClock


def test_first_identifier_wins(clock: FakeClock) -> None:
    table = DeviceLockTable(300, clock=clock)

    assert table.acquire("dev-9", "900001") == LockResult(ok=True, created=True)
    result = table.acquire("dev-9", "900002")
    assert result.ok is False
    assert result.existing_identifier == "900001"


def test_same_identifier_is_idempotent_and_refreshes(clock: FakeClock) -> None:
    table = DeviceLockTable(300, clock=clock)
    table.acquire("dev-9", "900001")

    clock.advance(200)
    assert table.acquire("dev-9", "900001").ok is True
    clock.advance(200)
    # Refreshed at t=200, so still held at t=400.
    assert table.holder("dev-9") == "900001"
    assert table.acquire("dev-9", "900002").ok is False


def test_lock_expires(clock: FakeClock) -> None:
    table = DeviceLockTable(300, clock=clock)
    table.acquire("dev-9", "900001")

    clock.advance(300)
    assert table.holder("dev-9") is None
    assert table.acquire("dev-9", "900002").ok is True


def test_devices_are_independent(clock: FakeClock) -> None:
    table = DeviceLockTable(300, clock=clock)
    assert table.acquire("dev-1", "900001").ok is True
    assert table.acquire("dev-2", "900002").ok is True


def test_concurrent_acquires_bind_one_identifier() -> None:
    table = DeviceLockTable(300)
    identifiers = [f"9000{i:02d}" for i in range(20)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda ident: table.acquire("dev-9", ident), identifiers))

    winners = [r for r in results if r.ok]
    assert len(winners) == 1
    holder = table.holder("dev-9")
    assert all(r.existing_identifier == holder for r in results if not r.ok)


def test_release_only_drops_matching_holder(clock: FakeClock) -> None:
    table = DeviceLockTable(300, clock=clock)
    table.acquire("dev-9", "900001")

    table.release("dev-9", "900002")
    assert table.holder("dev-9") == "900001"
    table.release("dev-9", "900001")
    assert table.holder("dev-9") is None
    assert table.acquire("dev-9", "900002").created is True
