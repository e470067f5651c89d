"""Tests for system and transparency endpoints."""

from fastapi import status
from fastapi.testclient import TestClient

from tests.conftest import TEACHER_SECRET


def test_system_config(client: TestClient) -> None:
    """Test system configuration endpoint."""
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert {"app", "code", "challenge", "verification", "checkin", "manual_override"} <= set(data)
    assert data["code"]["rotation_ms"] == 600
    assert data["checkin"]["device_conflict_policy"] == "reject"
    assert data["checkin"]["phases"] == ["start", "break", "end"]
    assert data["manual_override"]["enabled"] is True


def test_system_config_hides_secrets(client: TestClient) -> None:
    r = client.get("/api/v1/system/config")
    assert TEACHER_SECRET not in r.text
    assert "csv_dir" not in r.text
