"""Append-only JSON-lines audit log."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from threading import Lock
from typing import Any

from rollcall.core.errors import AuditWriteFailure

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class AuditLog:
    """Appends one JSON object per line to ``path``.

    When ``path`` is None the entries only go to the operational log.
    """

    def __init__(self, path: str | Path | None, *, name: str = "audit") -> None:
        self.path = Path(path) if path else None
        self.name = name
        self._lock = Lock()

    def append(self, entry: dict[str, Any]) -> None:
        """Write ``entry``; raise :class:`AuditWriteFailure` on I/O errors."""
        line = json.dumps({"ts_utc": utc_timestamp(), **entry}, sort_keys=False, default=str)
        logger.info("AUDIT %s %s", self.name, line)
        if self.path is None:
            return
        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
        except OSError as err:
            raise AuditWriteFailure(f"Failed to append to {self.path}: {err}") from err

    def record(self, entry: dict[str, Any]) -> bool:
        """Best-effort :meth:`append`: failures are logged and reported as False."""
        try:
            self.append(entry)
        except AuditWriteFailure as err:
            logger.error("Audit write failed for %s log, entry kept here for review: %s (%s)",
                         self.name, entry, err)
            return False
        return True
