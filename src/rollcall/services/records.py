"""Check-in record sink writing one CSV file per UTC day."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import astuple, dataclass, fields
from datetime import UTC, datetime
from pathlib import Path
from threading import Lock

from rollcall.core.errors import RecordWriteFailure

logger = logging.getLogger(__name__)

UNSAFE_CHARS = re.compile(r"[,\r\n]")
UA_SHORT_LENGTH = 120


@dataclass(frozen=True)
class CheckinRecord:
    """One accepted check-in, in CSV column order."""

    ts_utc: str
    sid: str
    phase: str
    student_id: str
    module: str
    group: str
    ip: str
    ua_short: str
    device_id: str
    method: str


def csv_header() -> list[str]:
    return [f.name for f in fields(CheckinRecord)]


def _sanitize(value: object) -> str:
    return UNSAFE_CHARS.sub(" ", "" if value is None else str(value))


class CsvRecordSink:
    """Appends :class:`CheckinRecord` rows to ``<directory>/YYYY-MM-DD.csv``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._lock = Lock()

    def path_for(self, when: datetime) -> Path:
        return self.directory / f"{when.astimezone(UTC):%Y-%m-%d}.csv"

    def append(self, record: CheckinRecord, *, when: datetime | None = None) -> Path:
        """Write ``record``, adding a header row to a new file."""
        when = when or datetime.now(UTC)
        path = self.path_for(when)
        row = [_sanitize(value) for value in astuple(record)]
        try:
            with self._lock:
                self.directory.mkdir(parents=True, exist_ok=True)
                new_file = not path.exists()
                with path.open("a", encoding="utf-8", newline="") as handle:
                    writer = csv.writer(handle)
                    if new_file:
                        writer.writerow(csv_header())
                    writer.writerow(row)
        except OSError as err:
            logger.error("Failed to write check-in record to %s: %s", path, err)
            raise RecordWriteFailure("Check-in could not be recorded, try again") from err
        return path


def shorten_user_agent(user_agent: str | None) -> str:
    return (user_agent or "")[:UA_SHORT_LENGTH]
