"""Manual override ledger.

A teacher can vouch for a student whose device cannot complete the optical
proof. The teacher secret is checked by the caller; this module keeps the
short-lived override records and the audit trail of every use.
"""

from __future__ import annotations

import hmac
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from rollcall.core.settings import settings
from rollcall.services.audit import AuditLog
from rollcall.utils.hash import blake3_hexdigest

OVERRIDE_ID_BYTES = 10
PASSWORD_VERSION_LENGTH = 12


@dataclass(frozen=True)
class OverrideMeta:
    """Session and device context captured when the override is approved."""

    session_id: str
    phase: str
    device_id: str | None = None
    module: str | None = None
    group: str | None = None


@dataclass(frozen=True)
class OverrideRecord:
    override_id: str
    token_id: str
    issued_at: float
    meta: OverrideMeta


@dataclass(frozen=True)
class OverrideUsage:
    """Everything written to the audit log when an override is used."""

    record: OverrideRecord
    identifier: str
    verification_id: str
    password_version: str


def password_version(secret: str | None) -> str:
    """Short fingerprint identifying which teacher secret was in force."""
    if not secret:
        return "none"
    return blake3_hexdigest(secret.encode("utf-8"))[:PASSWORD_VERSION_LENGTH]


def verify_teacher_secret(submitted: str, expected: str | None) -> bool:
    """Constant-time comparison of the submitted and configured secrets."""
    if not expected or not submitted:
        return False
    return hmac.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8"))


class ManualOverrideLedger:
    """Stores approved overrides until they are consumed or expire."""

    def __init__(
        self,
        audit_log: AuditLog,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.audit_log = audit_log
        self.ttl_seconds = ttl_seconds or settings.manual_override_ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._records: dict[str, OverrideRecord] = {}

    def register(self, token_id: str, meta: OverrideMeta) -> str:
        """Record an approved override under ``token_id``; return its override id."""
        with self._lock:
            now = self._clock()
            self._purge(now)
            override_id = secrets.token_hex(OVERRIDE_ID_BYTES)
            self._records[token_id] = OverrideRecord(
                override_id=override_id,
                token_id=token_id,
                issued_at=now,
                meta=meta,
            )
            return override_id

    def consume(self, token_id: str) -> OverrideRecord | None:
        """Return and forget the override for ``token_id``; None if absent or expired."""
        with self._lock:
            self._purge(self._clock())
            return self._records.pop(token_id, None)

    def restore(self, record: OverrideRecord) -> None:
        """Put back a consumed record whose check-in was rolled back."""
        with self._lock:
            now = self._clock()
            self._purge(now)
            if now - record.issued_at <= self.ttl_seconds:
                self._records.setdefault(record.token_id, record)

    def log_usage(self, usage: OverrideUsage) -> bool:
        """Append a usage line; a failed write is logged, never raised."""
        meta = usage.record.meta
        return self.audit_log.record({
            "manual_override_id": usage.record.override_id,
            "sid": meta.session_id,
            "module": meta.module,
            "group": meta.group,
            "phase": meta.phase,
            "student_id": usage.identifier,
            "device_id": meta.device_id,
            "verification_id": usage.verification_id,
            "password_version": usage.password_version,
        })

    def __len__(self) -> int:
        with self._lock:
            self._purge(self._clock())
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def _purge(self, now: float) -> None:
        expired = [
            tid for tid, record in self._records.items()
            if now - record.issued_at > self.ttl_seconds
        ]
        for tid in expired:
            del self._records[tid]
