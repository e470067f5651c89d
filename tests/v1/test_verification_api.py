"""Tests for presence proof endpoints."""

from typing import Any

from fastapi import status
from fastapi.testclient import TestClient

from rollcall.core.codes import CODE_PATTERN, format_code
from tests.conftest import issue_and_validate_challenge


def _live_code(client: TestClient) -> str:
    data = client.get("/api/v1/time-and-salt").json()
    return format_code(data["salt_value"], data["now_ms"] / 1000)


def test_time_and_salt(client: TestClient) -> None:
    r = client.get("/api/v1/time-and-salt")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert set(data) == {"now_ms", "salt_value", "salt_expires_ms", "rotation_ms", "accept_window_ms"}
    assert data["rotation_ms"] == 600
    assert CODE_PATTERN.match(format_code(data["salt_value"], data["now_ms"] / 1000))


def test_issue_challenge(client: TestClient, session_body: dict[str, Any]) -> None:
    r = client.get("/api/v1/challenge", params={"session": session_body["session"], "phase": "start"})
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["challenge"]
    assert data["ttl_ms"] == 3000
    assert data["expires_at_ms"] > 0


def test_issue_challenge_rejects_bad_session(client: TestClient) -> None:
    r = client.get("/api/v1/challenge", params={"session": "no spaces!", "phase": "start"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    body = r.json()
    assert body == {"ok": False, "verified": False, "error": "Invalid session", "code": "invalid_input"}


def test_issue_challenge_rejects_unknown_phase(client: TestClient) -> None:
    r = client.get("/api/v1/challenge", params={"session": "MATH101", "phase": "lunch"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["error"] == "Invalid phase"


def test_challenge_validates_once(client: TestClient, session_body: dict[str, Any]) -> None:
    r = client.get("/api/v1/challenge", params={"session": session_body["session"], "phase": "start"})
    challenge = r.json()["challenge"]

    r = client.post("/api/v1/validate-challenge", json={**session_body, "challenge": challenge})
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["verified"] is True
    assert r.json()["verification_id"]

    r = client.post("/api/v1/validate-challenge", json={**session_body, "challenge": challenge})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "challenge_expired"


def test_challenge_from_other_phase_rejected(client: TestClient, session_body: dict[str, Any]) -> None:
    r = client.get("/api/v1/challenge", params={"session": session_body["session"], "phase": "end"})
    r = client.post(
        "/api/v1/validate-challenge", json={**session_body, "challenge": r.json()["challenge"]}
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "challenge_expired"


def test_helper_flow_returns_token(client: TestClient, session_body: dict[str, Any]) -> None:
    assert issue_and_validate_challenge(client, session_body)


def test_validate_code(client: TestClient, session_body: dict[str, Any]) -> None:
    r = client.post("/api/v1/validate-code", json={**session_body, "code": _live_code(client)})
    assert r.status_code == status.HTTP_200_OK, r.json()
    assert r.json()["verified"] is True


def test_validate_code_rejects_garbage(client: TestClient, session_body: dict[str, Any]) -> None:
    r = client.post("/api/v1/validate-code", json={**session_body, "code": "12:34"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    body = r.json()
    assert body["code"] == "code_mismatch"
    assert body["reason"] == "format"
    assert body["verified"] is False
    assert "expected_code" not in body


def test_validate_code_missing_field(client: TestClient, session_body: dict[str, Any]) -> None:
    r = client.post("/api/v1/validate-code", json=session_body)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {
        "ok": False, "verified": False, "error": "Invalid code", "code": "invalid_input",
    }


def test_validate_code_invalid_session(client: TestClient, session_body: dict[str, Any]) -> None:
    r = client.post(
        "/api/v1/validate-code",
        json={**session_body, "session": "x", "code": _live_code(client)},
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["error"] == "Invalid session"


def test_sid_alias_accepted(client: TestClient) -> None:
    r = client.post(
        "/api/v1/validate-code",
        json={"sid": "MATH101", "phase": "break", "page_session_id": "p", "code": _live_code(client)},
    )
    assert r.status_code == status.HTTP_200_OK, r.json()
