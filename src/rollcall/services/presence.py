"""Presence verification flows.

Wires the challenge store, temporal code validator, verification ledger,
device locks, rate limiter and override ledger into the operations exposed
over HTTP: prove presence, mint a token, spend it on exactly one check-in.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from rollcall.core.errors import (
    ChallengeExpired,
    CodeMismatch,
    DeviceConflict,
    OverrideDenied,
    OverrideUnavailable,
    PresenceError,
    RateLimited,
    VerificationRequired,
)
from rollcall.core.settings import Settings, settings
from rollcall.services.audit import AuditLog, utc_timestamp
from rollcall.services.challenges import Challenge, ChallengeStore
from rollcall.services.device_locks import DeviceLockTable
from rollcall.services.overrides import (
    ManualOverrideLedger,
    OverrideMeta,
    OverrideRecord,
    OverrideUsage,
    password_version,
    verify_teacher_secret,
)
from rollcall.services.rate_limit import CheckinRateLimiter
from rollcall.services.records import CheckinRecord, CsvRecordSink, shorten_user_agent
from rollcall.services.salt import SaltRotator, TemporalCodeValidator
from rollcall.services.verification import VerificationLedger
from rollcall.utils.hash import fingerprint

logger = logging.getLogger(__name__)

CODE_FAILURE_MESSAGES = {
    "format": "Invalid code",
    "time": "Code out of time window",
    "salt": "Salt expired",
}


@dataclass(frozen=True)
class ClientContext:
    """Transport-level attributes of the calling client."""

    ip: str
    user_agent: str


@dataclass(frozen=True)
class SessionScope:
    session_id: str
    phase: str
    connection_id: str = ""


@dataclass(frozen=True)
class CheckinSubmission:
    scope: SessionScope
    identifier: str
    verification_id: str
    device_id: str | None = None
    module: str | None = None
    group: str | None = None


@dataclass(frozen=True)
class CheckinResult:
    ok: bool
    warning: str | None = None
    manual_override: bool = False


def connection_key(client: ClientContext, scope: SessionScope) -> str:
    """Key binding a verification token to one page session of one client."""
    return fingerprint((
        client.ip, client.user_agent, scope.session_id, scope.phase, scope.connection_id,
    ))


def device_keys(client: ClientContext, scope: SessionScope, device_id: str | None) -> list[str]:
    """Keys identifying the submitting device within one session phase.

    The network key (address and user agent) always applies. A persisted
    device id adds a second key that follows the device across networks.
    """
    keys = [fingerprint(("net", client.ip, client.user_agent, scope.session_id, scope.phase))]
    if device_id:
        keys.append(fingerprint(("device", device_id, scope.session_id, scope.phase)))
    return keys


class PresenceService:
    """Owns every state table for the lifetime of the process."""

    def __init__(
        self,
        config: Settings | None = None,
        *,
        clock: Callable[[], float] = time.time,
        record_sink: CsvRecordSink | None = None,
        anomaly_log: AuditLog | None = None,
        override_log: AuditLog | None = None,
    ) -> None:
        self.config = config or settings
        self.clock = clock
        self.challenges = ChallengeStore(self.config.challenge_ttl_ms, clock=clock)
        self.rotator = SaltRotator(self.config.rotation_seconds, clock=clock)
        self.codes = TemporalCodeValidator(
            self.rotator,
            time_tolerance_seconds=self.config.code_time_tolerance_seconds,
            accept_window_seconds=self.config.accept_window_seconds,
            clock=clock,
        )
        self.ledger = VerificationLedger(self.config.verification_ttl_seconds, clock=clock)
        self.device_locks = DeviceLockTable(self.config.device_lock_ttl_seconds, clock=clock)
        self.rate_limiter = CheckinRateLimiter(self.config.checkin_window_ms / 1000, clock=clock)
        self.records = record_sink or CsvRecordSink(self.config.csv_dir)
        self.anomalies = anomaly_log or AuditLog(self.config.anomaly_log_path, name="anomaly")
        self.overrides = ManualOverrideLedger(
            override_log or AuditLog(self.config.manual_override_log_path, name="manual-override"),
            self.config.manual_override_ttl_seconds,
            clock=clock,
        )

    # --- Proof of presence --------------------------------------------------------
    def time_and_salt(self) -> dict[str, Any]:
        """Server clock and salt parameters for the display and capture UI."""
        pair = self.rotator.snapshot()
        return {
            "now_ms": int(self.clock() * 1000),
            "salt_value": pair.current.value,
            "salt_expires_ms": int(pair.current.expires_at * 1000),
            "rotation_ms": self.config.salt_rotation_ms,
            "accept_window_ms": self.config.salt_accept_window_ms,
        }

    def issue_challenge(self, session_id: str, phase: str) -> Challenge:
        return self.challenges.issue(session_id, phase)

    def verify_challenge(self, client: ClientContext, scope: SessionScope, value: str) -> str:
        """Spend a displayed challenge and mint a verification token."""
        if not self.challenges.validate(scope.session_id, scope.phase, value):
            raise ChallengeExpired("Challenge expired or already used, scan the current code")
        return self.ledger.issue(
            connection_key(client, scope),
            self.config.challenge_verification_ttl_seconds,
            method="challenge",
        )

    def verify_code(self, client: ClientContext, scope: SessionScope, code: str) -> str:
        """Check a temporal code and mint a verification token."""
        result = self.codes.validate(code)
        if not result.ok:
            extra: dict[str, Any] = {"reason": result.reason}
            if self.config.expose_expected_code and result.expected_codes:
                extra["expected_code"] = result.expected_codes[0]
            logger.debug("Code rejected session=%s reason=%s", scope.session_id, result.reason)
            raise CodeMismatch(CODE_FAILURE_MESSAGES[result.reason or "format"], **extra)
        return self.ledger.issue(
            connection_key(client, scope),
            self.config.verification_ttl_seconds,
            method="code",
        )

    # --- Check-in -----------------------------------------------------------------
    def checkin(self, client: ClientContext, submission: CheckinSubmission) -> CheckinResult:
        """Spend a verification token on one recorded check-in.

        A rejected or failed submission is rolled back before the error
        propagates, so a retry starts from a clean state.
        """
        scope = submission.scope
        conn_key = connection_key(client, scope)
        token = self.ledger.redeem(submission.verification_id, conn_key)
        if token is None:
            raise VerificationRequired("Verification required, verify presence again")

        acquired: list[str] = []
        stamped = False
        warning = None
        override: OverrideRecord | None = None
        try:
            if not self.rate_limiter.allow(conn_key):
                retry_after_ms = int(self.rate_limiter.retry_after(conn_key) * 1000)
                raise RateLimited(
                    f"Duplicate submission too soon (wait {retry_after_ms} ms)",
                    retry_after_ms=retry_after_ms,
                )
            stamped = True

            existing = None
            for key in device_keys(client, scope, submission.device_id):
                lock = self.device_locks.acquire(key, submission.identifier)
                if lock.created:
                    acquired.append(key)
                if not lock.ok and existing is None:
                    existing = lock.existing_identifier
            if existing is not None:
                self._report_device_conflict(client, submission, existing)
                if self.config.device_conflict_policy == "reject":
                    raise DeviceConflict(
                        "This device has already checked in a different identifier"
                    )
                warning = "Device used for multiple identifiers"

            if token.method == "override":
                override = self.overrides.consume(token.id)
                if override is None:
                    raise VerificationRequired("Manual override expired, ask the teacher again")

            self.records.append(CheckinRecord(
                ts_utc=utc_timestamp(),
                sid=scope.session_id,
                phase=scope.phase,
                student_id=submission.identifier,
                module=submission.module or "",
                group=submission.group or "",
                ip=client.ip,
                ua_short=shorten_user_agent(client.user_agent),
                device_id=submission.device_id or "",
                method=token.method,
            ))
        except PresenceError:
            for key in acquired:
                self.device_locks.release(key, submission.identifier)
            if stamped:
                self.rate_limiter.release(conn_key)
            if override is not None:
                self.overrides.restore(override)
            self.ledger.restore(token)
            raise

        if override is not None:
            self.overrides.log_usage(OverrideUsage(
                record=override,
                identifier=submission.identifier,
                verification_id=token.id,
                password_version=password_version(self.config.teacher_secret),
            ))
        logger.info(
            "Check-in accepted session=%s phase=%s method=%s",
            scope.session_id, scope.phase, token.method,
        )
        return CheckinResult(ok=True, warning=warning, manual_override=override is not None)

    def _report_device_conflict(
        self,
        client: ClientContext,
        submission: CheckinSubmission,
        existing_identifier: str | None,
    ) -> None:
        logger.warning(
            "Device lock conflict session=%s phase=%s identifier=%s existing=%s",
            submission.scope.session_id, submission.scope.phase,
            submission.identifier, existing_identifier,
        )
        self.anomalies.record({
            "type": "device_lock_conflict",
            "sid": submission.scope.session_id,
            "phase": submission.scope.phase,
            "student_id": submission.identifier,
            "existing_student_id": existing_identifier,
            "device_id": submission.device_id,
            "ip": client.ip,
            "policy": self.config.device_conflict_policy,
        })

    # --- Manual override ----------------------------------------------------------
    def check_override(self, client: ClientContext, meta: OverrideMeta) -> bool:
        """Availability pre-check; only leaves an audit line behind."""
        enabled = self.config.manual_override_enabled
        self.anomalies.record({
            "type": "manual_override_requested",
            "sid": meta.session_id,
            "phase": meta.phase,
            "module": meta.module,
            "group": meta.group,
            "device_id": meta.device_id,
            "ip": client.ip,
            "available": enabled,
        })
        return enabled

    def complete_override(
        self,
        client: ClientContext,
        scope: SessionScope,
        meta: OverrideMeta,
        teacher_secret: str,
    ) -> str:
        """Approve an override and mint the verification token it stands for."""
        if not self.config.manual_override_enabled:
            raise OverrideUnavailable("Manual override is not available")
        if not verify_teacher_secret(teacher_secret, self.config.teacher_secret):
            logger.warning(
                "Manual override denied session=%s phase=%s ip=%s",
                meta.session_id, meta.phase, client.ip,
            )
            raise OverrideDenied("Incorrect teacher secret")

        conn_key = connection_key(client, scope)
        token_id = self.ledger.issue(
            conn_key, self.config.manual_override_ttl_seconds, method="override"
        )
        override_id = self.overrides.register(token_id, meta)
        logger.info("Manual override approved id=%s session=%s", override_id, meta.session_id)
        return token_id

    def reset(self) -> None:
        """Drop all ephemeral state, as a restart would."""
        self.challenges.clear()
        self.ledger.clear()
        self.device_locks.clear()
        self.rate_limiter.clear()
        self.overrides.clear()
        self.rotator.reset()


_service: PresenceService | None = None


def get_presence_service() -> PresenceService:
    """Return the process-wide presence service."""
    global _service
    if _service is None:
        _service = PresenceService()
    return _service
