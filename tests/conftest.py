# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

_TMP_ROOT = Path(tempfile.mkdtemp(prefix="rollcall-tests-"))
os.environ.setdefault("TEACHER_SECRET", "correct-horse")
os.environ.setdefault("CSV_DIR", str(_TMP_ROOT / "csv"))
os.environ.setdefault("MANUAL_OVERRIDE_LOG_PATH", str(_TMP_ROOT / "manual-overrides.log"))
os.environ.setdefault("ANOMALY_LOG_PATH", str(_TMP_ROOT / "anomalies.log"))

from rollcall.api.v1.dependencies import get_presence_service_dep
from rollcall.core.settings import Settings, settings
from rollcall.main import app as fastapi_app
from rollcall.services.audit import AuditLog
from rollcall.services.presence import ClientContext, PresenceService, get_presence_service
from rollcall.services.records import CsvRecordSink

CLOCK_START = 1_700_000_000.0
TEACHER_SECRET = "correct-horse"


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = CLOCK_START) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client_context() -> ClientContext:
    return ClientContext(ip="10.0.0.7", user_agent="Mozilla/5.0 (Test)")


@pytest.fixture()
def presence(clock: FakeClock, tmp_path: Path) -> PresenceService:
    """A presence service on a fake clock with sinks under ``tmp_path``."""
    config = Settings(TEACHER_SECRET=TEACHER_SECRET)
    return PresenceService(
        config,
        clock=clock,
        record_sink=CsvRecordSink(tmp_path / "csv"),
        anomaly_log=AuditLog(tmp_path / "anomalies.log", name="anomaly"),
        override_log=AuditLog(tmp_path / "overrides.log", name="manual-override"),
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def reset_presence_state() -> Iterator[None]:
    get_presence_service().reset()
    yield
    get_presence_service().reset()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def presence_client(app: FastAPI, presence: PresenceService) -> Iterator[TestClient]:
    """Client whose requests are served by the fake-clock ``presence`` fixture."""
    app.dependency_overrides[get_presence_service_dep] = lambda: presence
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_presence_service_dep, None)


@pytest.fixture()
def session_body() -> dict[str, Any]:
    return {"session": "MATH101-2025-10-03", "phase": "start", "connection_id": "page-1"}


@pytest.fixture()
def override_log_path() -> Path:
    return Path(settings.manual_override_log_path)


def issue_and_validate_challenge(client: TestClient, body: dict[str, Any]) -> str:
    """Run the QR challenge flow and return the verification id."""
    r = client.get("/api/v1/challenge", params={"session": body["session"], "phase": body["phase"]})
    assert r.status_code == 200
    r = client.post("/api/v1/validate-challenge", json={**body, "challenge": r.json()["challenge"]})
    assert r.status_code == 200, r.json()
    return r.json()["verification_id"]
